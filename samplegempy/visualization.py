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
Plotting of Flux Samples.

Functions:
    - plot_sample_histograms: One histogram per reaction in a grid of subplots.
"""

import math

import matplotlib.pyplot as plt


def plot_sample_histograms(samples, reaction_ids=None, n_bins=20, n_cols=4):
    """
    Plot the flux distribution of sampled reactions.

    Args:
        samples (pd.DataFrame): Samples indexed by reaction id.
        reaction_ids (list, optional): Reactions to plot. Defaults to all.
        n_bins (int): Number of histogram bins.
        n_cols (int): Number of subplot columns.

    Returns:
        matplotlib.figure.Figure: The figure.
    """
    if reaction_ids is None:
        reaction_ids = list(samples.index)
    missing = [rxn_id for rxn_id in reaction_ids if rxn_id not in samples.index]
    if missing:
        raise KeyError(f"Reactions not in the samples: {missing}")
    if not reaction_ids:
        raise ValueError("No reactions to plot")

    n_cols = min(n_cols, len(reaction_ids))
    n_rows = math.ceil(len(reaction_ids) / n_cols)
    fig, axes = plt.subplots(
        n_rows, n_cols, figsize=(3 * n_cols, 2.5 * n_rows), squeeze=False
    )

    for ax, rxn_id in zip(axes.flat, reaction_ids):
        ax.hist(samples.loc[rxn_id].values, bins=n_bins, color="steelblue")
        ax.set_title(rxn_id, fontsize=9)
        ax.set_xlabel("Flux")
    for ax in list(axes.flat)[len(reaction_ids):]:
        ax.set_visible(False)

    fig.tight_layout()
    return fig
