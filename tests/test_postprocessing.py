"""Tests for loading and post-processing sample batches."""

import numpy as np
import pandas as pd
import pytest

from samplegempy.exceptions import ConfigurationError
from samplegempy.filesystem import write_batch
from samplegempy.parameters import get_sampling_options
from samplegempy.postprocessing import (
    convert_reversed_samples,
    flip_reaction_signs,
    load_samples,
    remove_loop_samples,
    subsample_indices,
)
from samplegempy.reduction import reduce_model


def test_subsample_indices():
    assert subsample_indices(10, 4).tolist() == [0, 3, 6, 9]
    assert subsample_indices(5, 2).tolist() == [0, 4]
    # halves are rounded up
    assert subsample_indices(4, 3).tolist() == [0, 2, 3]
    # a single point is the last one
    assert subsample_indices(6, 1).tolist() == [5]
    assert subsample_indices(6, 0).tolist() == []

    with pytest.raises(ConfigurationError):
        subsample_indices(3, 4)


def _write_numbered_batches(sample_file, n_files, n_reactions, n_points):
    for batch_index in range(1, n_files + 1):
        values = 100 * batch_index + np.arange(n_points)
        write_batch(sample_file, batch_index, np.tile(values, (n_reactions, 1)))


def test_load_samples_skips_files_and_subsamples(tmp_path):
    sample_file = str(tmp_path / "samples")
    _write_numbered_batches(sample_file, 3, 2, 5)
    opts = get_sampling_options(
        {
            "n_files": 3,
            "n_files_skipped": 1,
            "n_points_per_file": 5,
            "n_points_returned": 4,
        }
    )

    samples = load_samples(sample_file, opts)

    assert samples.shape == (2, 4)
    assert samples[0].tolist() == [200, 204, 300, 304]
    assert np.array_equal(samples, load_samples(sample_file, opts))


def test_load_samples_odd_split(tmp_path):
    sample_file = str(tmp_path / "samples")
    _write_numbered_batches(sample_file, 2, 1, 10)
    opts = get_sampling_options(
        {
            "n_files": 2,
            "n_files_skipped": 0,
            "n_points_per_file": 10,
            "n_points_returned": 5,
        }
    )

    samples = load_samples(sample_file, opts)

    # 3 points per file, then 5 of the 6
    assert samples[0].tolist() == [100, 105, 200, 205, 209]


def test_load_single_point(tmp_path):
    sample_file = str(tmp_path / "samples")
    _write_numbered_batches(sample_file, 2, 1, 5)
    opts = get_sampling_options(
        {
            "n_files": 2,
            "n_files_skipped": 0,
            "n_points_per_file": 5,
            "n_points_returned": 1,
        }
    )

    assert load_samples(sample_file, opts).tolist() == [[204]]


def flipped_frame():
    return pd.DataFrame(
        [[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]], index=["EX_in", "R_back_r", "EX_out"]
    )


def test_flip_reaction_signs_is_an_involution():
    samples = flipped_frame()
    once = flip_reaction_signs(samples, ["R_back_r"])

    assert once.loc["R_back_r"].tolist() == [-3.0, -4.0]
    assert once.loc["EX_in"].tolist() == [1.0, 2.0]
    pd.testing.assert_frame_equal(flip_reaction_signs(once, ["R_back_r"]), samples)


def test_convert_reversed_samples(reversed_chain_model):
    reduced, reduction_map = reduce_model(reversed_chain_model)
    samples = flipped_frame().loc[[rxn.id for rxn in reduced.reactions]]

    model_sampling, converted = convert_reversed_samples(
        reduced, samples, reduction_map
    )

    assert "R_back" in converted.index
    assert converted.loc["R_back"].tolist() == [-3.0, -4.0]
    assert "R_back" in model_sampling.reactions
    assert model_sampling.reactions.R_back.bounds == pytest.approx((-10.0, 0.0))
    # the reduced model keeps its own orientation
    assert "R_back_r" in reduced.reactions


def test_remove_loop_samples():
    samples = pd.DataFrame(np.ones((4, 2)), index=["EX_A", "R1", "R2", "EX_B"])
    kept = remove_loop_samples(samples, ["R1", "R2", "R_absent"])

    assert kept.index.tolist() == ["EX_A", "EX_B"]
    assert remove_loop_samples(samples, []).shape == (4, 2)
