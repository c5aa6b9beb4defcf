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
Filesystem Utilities for SampleGEMPy.

Sample batches are stored one per file as ``<sample_file>_<i>.npy`` with a
1-based batch index. Each file is written completely to a temporary file in the
same directory and then renamed onto its final name, so a batch file is either
absent or complete.

Functions:
    - batch_file_name: Path of a batch file.
    - write_batch: Atomically write a batch of points.
    - read_batch: Read a batch of points.
    - list_batches: Indices of the batch files present on disk.
"""

import os
import re
import glob
import logging
import tempfile

import numpy as np

from samplegempy.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def batch_file_name(sample_file, batch_index):
    """Return the path of batch `batch_index` (1-based) for `sample_file`."""
    return f"{sample_file}_{batch_index}.npy"


def write_batch(sample_file, batch_index, points):
    """
    Write a batch of points.

    Args:
        sample_file (str): Base name of the sample files.
        batch_index (int): 1-based batch index.
        points (np.ndarray): Points, reactions x points.

    Returns:
        str: Path of the written file.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    path = batch_file_name(sample_file, batch_index)
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=directory, prefix=".batch_", suffix=".npy.tmp", delete=False
        ) as f:
            tmp_path = f.name
            np.save(f, np.asarray(points, dtype=float))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except (OSError, ValueError) as e:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise PersistenceError(
            f"Could not write sample batch {batch_index} to {path}: {e}",
            batch_index,
            path,
        ) from e

    logger.debug(f"Sample batch {batch_index} written to {path}")
    return path


def read_batch(sample_file, batch_index):
    """
    Read a batch of points written by `write_batch`.

    Raises:
        PersistenceError: If the file is missing, unreadable or not a matrix.
    """
    path = batch_file_name(sample_file, batch_index)
    try:
        points = np.load(path, allow_pickle=False)
    except (OSError, ValueError) as e:
        raise PersistenceError(
            f"Could not read sample batch {batch_index} from {path}: {e}",
            batch_index,
            path,
        ) from e

    if points.ndim != 2:
        raise PersistenceError(
            f"Sample batch {batch_index} in {path} is not a 2-D array",
            batch_index,
            path,
        )
    return points


def list_batches(sample_file):
    """Return the sorted batch indices for which a file exists."""
    pattern = re.compile(re.escape(os.path.basename(sample_file)) + r"_(\d+)\.npy$")
    indices = []
    for path in glob.glob(glob.escape(sample_file) + "_*.npy"):
        match = pattern.match(os.path.basename(path))
        if match:
            indices.append(int(match.group(1)))
    return sorted(indices)
