#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Basic example of using SampleGEMPy to sample a metabolic model.

This script samples the flux space of the E. coli core ("textbook") model
shipped with COBRApy and plots the flux distributions of a few reactions.
"""

import os
import tempfile

from cobra.io import load_model

from samplegempy.samplegem import sample_cb_model
from samplegempy.visualization import plot_sample_histograms


def main():
    # Create a temporary directory for outputs
    output_dir = tempfile.mkdtemp(prefix="samplegempy_example_")
    print(f"Output directory: {output_dir}")

    model = load_model("textbook")

    options = {
        "n_warmup_points": 200,
        "n_files": 5,
        "n_points_per_file": 200,
        "n_steps_per_point": 50,
        "n_points_returned": 500,
        "n_files_skipped": 1,
        "remove_loop_samples_flag": True,
        "seed": 42,
    }

    model_sampling, samples = sample_cb_model(
        model,
        os.path.join(output_dir, "ecoli_core"),
        options=options,
        checkpoint_dir=os.path.join(output_dir, "checkpoints"),
    )

    print(f"Sampled {samples.shape[1]} points for {samples.shape[0]} reactions")
    print(samples.T.describe().T.head(10))

    reactions = [r for r in ("PGI", "PFK", "CS", "ICDHyr") if r in samples.index]
    fig = plot_sample_histograms(samples, reaction_ids=reactions)
    fig.savefig(os.path.join(output_dir, "flux_histograms.png"))
    print(f"Histograms saved to {output_dir}")


if __name__ == "__main__":
    main()
