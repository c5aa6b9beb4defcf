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
Post-processing of Sample Batches.

Functions:
    - points_per_file_loaded: Number of points taken from each retained file.
    - subsample_indices: Evenly spaced, deterministic column selection.
    - load_samples: Load the retained batches and select the returned points.
    - flip_reaction_signs: Negate the samples of the given reactions.
    - convert_reversed_samples: Restore the original orientation of flipped reactions.
    - remove_loop_samples: Drop the samples of loop reactions.
"""

import logging

import numpy as np
import pandas as pd

from samplegempy.exceptions import ConfigurationError
from samplegempy.filesystem import read_batch
from samplegempy.parameters import points_per_file_loaded
from samplegempy.reduction import flip_reaction

logger = logging.getLogger(__name__)

__all__ = [
    "points_per_file_loaded",
    "subsample_indices",
    "load_samples",
    "flip_reaction_signs",
    "convert_reversed_samples",
    "remove_loop_samples",
]


def subsample_indices(n_available, n_selected):
    """
    Select `n_selected` of `n_available` columns, evenly spaced.

    The 1-based positions round(linspace(1, n_available, n_selected)) are
    returned as 0-based indices, with halves rounded up. A single selected
    point is the last one, as linspace with one point ends at its upper limit.
    """
    if n_selected > n_available:
        raise ConfigurationError(
            f"Cannot select {n_selected} points out of {n_available}"
        )
    if n_selected <= 0:
        return np.zeros(0, dtype=int)
    if n_selected == 1:
        return np.array([n_available - 1])
    positions = np.linspace(1, n_available, n_selected)
    return np.floor(positions + 0.5).astype(int) - 1


def load_samples(sample_file, sampling_opts):
    """
    Load the retained batch files and select the returned points.

    Files ``n_files_skipped + 1 .. n_files`` are read. From each one
    `points_per_file_loaded` evenly spaced points are taken, and
    `n_points_returned` evenly spaced points are then selected from their
    concatenation.

    Returns:
        np.ndarray: Samples, reactions x n_points_returned.

    Raises:
        ConfigurationError: If the files cannot supply the requested points.
        PersistenceError: If a batch file cannot be read.
    """
    per_file = points_per_file_loaded(sampling_opts)
    n_files = sampling_opts["n_files"]
    n_skipped = sampling_opts["n_files_skipped"]

    loaded = []
    for batch_index in range(n_skipped + 1, n_files + 1):
        points = read_batch(sample_file, batch_index)
        loaded.append(points[:, subsample_indices(points.shape[1], per_file)])
    samples = np.hstack(loaded)

    selected = subsample_indices(samples.shape[1], sampling_opts["n_points_returned"])
    logger.info(
        f"Loaded {samples.shape[1]} points from {n_files - n_skipped} files, "
        f"returning {selected.size}."
    )
    return samples[:, selected]


def flip_reaction_signs(samples, reaction_ids):
    """Return a copy of `samples` with the rows of `reaction_ids` negated."""
    flipped = samples.copy()
    rows = [rxn_id for rxn_id in reaction_ids if rxn_id in flipped.index]
    flipped.loc[rows] = -flipped.loc[rows]
    return flipped


def convert_reversed_samples(model, samples, reduction_map):
    """
    Restore the original direction of reactions flipped during reduction.

    Args:
        model (cobra.Model): The reduced model.
        samples (pd.DataFrame): Samples indexed by reduced reaction ids.
        reduction_map (ReductionMap): Map returned by the reduction.

    Returns:
        tuple: (model_sampling, samples), a copy of the model and of the
        samples in which flipped reactions carry their original ids and
        orientation.
    """
    model_sampling = model.copy()
    reduced_ids = [
        reduction_map.reduced_id(rxn_id)
        for rxn_id in reduction_map.flipped_ids
        if reduction_map.reduced_id(rxn_id) in model_sampling.reactions
    ]
    for rxn_id in reduced_ids:
        flip_reaction(model_sampling.reactions.get_by_id(rxn_id))

    converted = flip_reaction_signs(samples, reduced_ids)
    converted.index = [reduction_map.original_id(rxn_id) for rxn_id in converted.index]
    return model_sampling, converted


def remove_loop_samples(samples, loop_ids):
    """Drop the rows of loop reactions from a sample matrix."""
    rows = [rxn_id for rxn_id in loop_ids if rxn_id in samples.index]
    if rows:
        logger.info(f"Removing samples of {len(rows)} loop reactions.")
    return samples.drop(index=rows)


def samples_to_frame(samples, reaction_ids):
    """Wrap a reactions x points array in a DataFrame indexed by reaction id."""
    return pd.DataFrame(np.asarray(samples), index=list(reaction_ids))
