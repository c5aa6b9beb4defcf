"""Tests for pickle checkpoints."""

import numpy as np

from samplegempy.checkpoints import (
    checkpoint_path,
    discard_checkpoint,
    load_checkpoint,
    save_checkpoint,
)


def test_save_and_load(tmp_path):
    filename = checkpoint_path(str(tmp_path / "ckpt"), "warmup_points")
    save_checkpoint(np.arange(6.0).reshape(2, 3), filename, key=("chain", 10))

    loaded = load_checkpoint(filename, key=("chain", 10))
    assert np.array_equal(loaded, np.arange(6.0).reshape(2, 3))


def test_other_key_is_ignored(tmp_path):
    filename = checkpoint_path(str(tmp_path), "warmup_points")
    save_checkpoint([1, 2, 3], filename, key=("chain", 10))

    assert load_checkpoint(filename, key=("chain", 20)) is None
    assert load_checkpoint(str(tmp_path / "missing.pkl")) is None


def test_discard(tmp_path):
    filename = checkpoint_path(str(tmp_path), "reduced_model")
    save_checkpoint({"a": 1}, filename)

    assert discard_checkpoint(filename)
    assert not discard_checkpoint(filename)
    assert load_checkpoint(filename) is None
