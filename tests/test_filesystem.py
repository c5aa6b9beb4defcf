"""Tests for sample batch storage."""

import os

import numpy as np
import pytest

from samplegempy.exceptions import PersistenceError
from samplegempy.filesystem import batch_file_name, list_batches, read_batch, write_batch


def test_write_then_read_is_exact(tmp_path):
    sample_file = str(tmp_path / "samples")
    points = np.random.default_rng(0).normal(size=(4, 7))

    path = write_batch(sample_file, 1, points)

    assert path == batch_file_name(sample_file, 1) == sample_file + "_1.npy"
    assert np.array_equal(read_batch(sample_file, 1), points)


def test_no_temporary_files_left(tmp_path):
    sample_file = str(tmp_path / "samples")
    for batch_index in (1, 2):
        write_batch(sample_file, batch_index, np.ones((2, 3)))

    assert sorted(os.listdir(tmp_path)) == ["samples_1.npy", "samples_2.npy"]
    assert list_batches(sample_file) == [1, 2]


def test_creates_missing_directory(tmp_path):
    sample_file = str(tmp_path / "nested" / "run" / "samples")
    write_batch(sample_file, 3, np.zeros((2, 2)))
    assert list_batches(sample_file) == [3]


def test_missing_batch_raises_with_index(tmp_path):
    sample_file = str(tmp_path / "samples")
    write_batch(sample_file, 1, np.ones((2, 3)))

    with pytest.raises(PersistenceError) as excinfo:
        read_batch(sample_file, 3)
    assert excinfo.value.batch_index == 3
    assert excinfo.value.path == sample_file + "_3.npy"


def test_non_matrix_batch_raises(tmp_path):
    sample_file = str(tmp_path / "samples")
    np.save(batch_file_name(sample_file, 1), np.ones(5))

    with pytest.raises(PersistenceError, match="not a 2-D array"):
        read_batch(sample_file, 1)


def test_unwritable_location_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(PersistenceError) as excinfo:
        write_batch(str(blocker / "samples"), 2, np.ones((2, 2)))
    assert excinfo.value.batch_index == 2
