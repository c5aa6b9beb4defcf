# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Checkpoints for SampleGEMPy.

Pickle-based checkpoints of intermediate results (reduced model, warm-up
points). They are only written when the caller provides a checkpoint
directory. Every checkpoint stores a key describing the inputs it was computed
from, and is ignored when loaded with a different key.

Functions:
    - checkpoint_path: Path of a named checkpoint in a directory.
    - save_checkpoint: Pickle data together with its key.
    - load_checkpoint: Load data if the checkpoint exists and the key matches.
    - discard_checkpoint: Delete a checkpoint file.
"""

import os
import pickle
import logging

logger = logging.getLogger(__name__)


def checkpoint_path(checkpoint_dir, name):
    return os.path.join(checkpoint_dir, f"{name}.pkl")


def save_checkpoint(data, filename, key=None):
    """Save data and its key to a checkpoint file using pickle."""
    os.makedirs(os.path.dirname(os.path.abspath(filename)), exist_ok=True)
    with open(filename, "wb") as f:
        pickle.dump({"key": key, "data": data}, f)
    logger.info(f"Checkpoint saved to {filename}")


def load_checkpoint(filename, key=None):
    """
    Load data from a checkpoint file.

    Returns:
        The stored data, or None if the file does not exist or was saved with
        a different key.
    """
    if not os.path.exists(filename):
        return None

    with open(filename, "rb") as f:
        stored = pickle.load(f)
    if stored.get("key") != key:
        logger.info(f"Ignoring checkpoint {filename} computed for other inputs")
        return None

    logger.info(f"Loaded checkpoint from {filename}")
    return stored["data"]


def discard_checkpoint(filename):
    """Delete a checkpoint file. Returns True if a file was removed."""
    if os.path.exists(filename):
        os.remove(filename)
        logger.info(f"Checkpoint {filename} discarded")
        return True
    return False
