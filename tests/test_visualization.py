"""Tests for sample histograms."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from samplegempy.visualization import plot_sample_histograms


@pytest.fixture
def samples():
    rng = np.random.default_rng(0)
    return pd.DataFrame(rng.uniform(size=(5, 50)), index=list("ABCDE"))


def test_one_histogram_per_reaction(samples):
    fig = plot_sample_histograms(samples, n_cols=2)
    visible = [ax for ax in fig.axes if ax.get_visible()]

    assert len(fig.axes) == 6
    assert [ax.get_title() for ax in visible] == list("ABCDE")


def test_selected_reactions(samples):
    fig = plot_sample_histograms(samples, reaction_ids=["B", "D"])
    assert [ax.get_title() for ax in fig.axes] == ["B", "D"]


def test_unknown_reaction(samples):
    with pytest.raises(KeyError):
        plot_sample_histograms(samples, reaction_ids=["Z"])
