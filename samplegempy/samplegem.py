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
SampleGEMPy: uniform sampling of the flux space of constraint-based models.

This module is the main entry point of the sampling workflow. It reduces the
model, generates warm-up points, runs the hit-and-run sampler that writes the
sample batches, and post-processes the stored batches into the returned sample
matrix.

References:
    * Kaufman, D.E. and Smith, R.L., "Direction choice for accelerated
      convergence in hit-and-run sampling". Operations Research, 1998. 46(1).
    * Schellenberger, J. and Palsson, B.O., "Use of randomized sampling for
      analysis of metabolic networks". J. Biol. Chem., 2009. 284(9).
"""

import os
import logging
import argparse

import numpy as np
from tqdm.auto import tqdm
from cobra.io import load_json_model, load_matlab_model, read_sbml_model

from samplegempy.checkpoints import checkpoint_path, load_checkpoint, save_checkpoint
from samplegempy.filesystem import write_batch
from samplegempy.parameters import get_sampling_options, load_options
from samplegempy.polytope import Polytope
from samplegempy.postprocessing import (
    convert_reversed_samples,
    load_samples,
    remove_loop_samples,
    samples_to_frame,
)
from samplegempy.reduction import (
    find_loop_reactions,
    reduce_model,
    remove_loop_reactions,
)
from samplegempy.samplers import get_sampler
from samplegempy.solver import set_solver
from samplegempy.warmup import create_warmup_points


class SampleGEM:
    """
    Sampling workflow for a constraint-based model.

    Attributes:
        model (cobra.Model): The model to sample.
        sample_file (str): Base name of the sample batch files.
        options (dict): Validated sampling options.
        sampler_class (type): Sampler used for the walk.
        checkpoint_dir (str or None): Directory for checkpoints, if any.
        logger (logging.Logger): Logger for tracking workflow progress.
    """

    def __init__(
        self, model, sample_file, sampler_name="achr", options=None, checkpoint_dir=None
    ):
        # Options and sampler name are checked before any work is done
        self.options = get_sampling_options(options)
        self.sampler_class = get_sampler(sampler_name)

        if isinstance(model, Polytope):
            model = model.to_cobra()
        self.model = model
        self.sample_file = str(sample_file)
        self.checkpoint_dir = (
            str(checkpoint_dir) if checkpoint_dir is not None else None
        )
        self.logger = self._setup_logger()

        seeds = np.random.SeedSequence(self.options["seed"]).spawn(2)
        self._warmup_seed, self._sampler_seed = seeds

        self.reduced_model = None
        self.reduction_map = None
        self.warmup = None
        self.model_sampling = None
        self.samples = None

    def _setup_logger(self) -> logging.Logger:
        """Set up the package logger for the sampling workflow."""
        logger = logging.getLogger("samplegempy")
        logger.setLevel(logging.INFO if self.options["verbose"] else logging.WARNING)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        if not any(type(h) is logging.StreamHandler for h in logger.handlers):
            ch = logging.StreamHandler()
            ch.setLevel(logging.INFO)
            ch.setFormatter(formatter)
            logger.addHandler(ch)

        # Create file handler if a checkpoint directory is used
        if self.checkpoint_dir is not None:
            os.makedirs(self.checkpoint_dir, exist_ok=True)
            log_file = os.path.abspath(
                os.path.join(self.checkpoint_dir, "samplegempy.log")
            )
            if not any(
                isinstance(h, logging.FileHandler) and h.baseFilename == log_file
                for h in logger.handlers
            ):
                fh = logging.FileHandler(log_file)
                fh.setLevel(logging.DEBUG)
                fh.setFormatter(formatter)
                logger.addHandler(fh)

        return logger

    def _checkpoint(self, name):
        if self.checkpoint_dir is None:
            return None
        return checkpoint_path(self.checkpoint_dir, name)

    def _reduction_key(self):
        opts = self.options
        return (
            self.model.id,
            tuple(rxn.id for rxn in self.model.reactions),
            tuple(rxn.bounds for rxn in self.model.reactions),
            opts["reduction_tolerance"],
            opts["remove_loops_flag"],
            opts["remove_loop_samples_flag"],
        )

    def run(self):
        """
        Execute the complete sampling workflow.

        1. Model reduction and loop detection
        2. Warm-up point generation
        3. Hit-and-run sampling into batch files
        4. Loading, subsampling and direction correction of the samples

        Returns:
            tuple: (model_sampling, samples).
        """
        try:
            self.logger.info("Starting sampling workflow...")
            self._reduce_model()
            self._create_warmup_points()
            self._sample()
            self._post_process()
            self.logger.info("Sampling workflow completed successfully!")
        except Exception as e:
            self.logger.error(f"Error in sampling workflow: {str(e)}", exc_info=True)
            raise

        return self.model_sampling, self.samples

    def _reduce_model(self) -> None:
        """Reduce the model and find loop reactions."""
        self.logger.info("Reducing model...")
        checkpoint_file = self._checkpoint("reduced_model")
        key = self._reduction_key()
        reduced = load_checkpoint(checkpoint_file, key) if checkpoint_file else None

        if reduced is None:
            work_model = self.model.copy()
            set_solver(work_model, self.options)
            self.reduced_model, self.reduction_map = reduce_model(
                work_model,
                tolerance=self.options["reduction_tolerance"],
                processes=self.options["n_processes"],
            )
            self._find_loops()
            if checkpoint_file:
                save_checkpoint(
                    (self.reduced_model, self.reduction_map), checkpoint_file, key
                )
        else:
            self.reduced_model, self.reduction_map = reduced
            self.logger.info("Loaded reduced model from checkpoint.")

        self.logger.info(
            f"Reduced model has {len(self.reduced_model.reactions)} reactions and "
            f"{len(self.reduced_model.metabolites)} metabolites."
        )

    def _find_loops(self) -> None:
        """Detect loop reactions and optionally remove them from the model."""
        opts = self.options
        if not (opts["remove_loops_flag"] or opts["remove_loop_samples_flag"]):
            return

        loop_ids = find_loop_reactions(
            self.reduced_model,
            tolerance=opts["reduction_tolerance"],
            processes=opts["n_processes"],
        )
        self.reduction_map.loop_ids = [
            self.reduction_map.original_id(rxn_id) for rxn_id in loop_ids
        ]

        if opts["remove_loops_flag"] and loop_ids:
            removed = remove_loop_reactions(self.reduced_model, loop_ids)
            self.reduction_map.removed_loop_ids = [
                self.reduction_map.original_id(rxn_id) for rxn_id in removed
            ]

    def _create_warmup_points(self) -> None:
        """Generate (or load) the warm-up points."""
        self.logger.info("Creating warm-up points...")
        checkpoint_file = self._checkpoint("warmup_points")
        key = (
            self._reduction_key(),
            self.options["n_warmup_points"],
            self.options["seed"],
        )
        warmup = load_checkpoint(checkpoint_file, key) if checkpoint_file else None

        if warmup is None:
            self.warmup = create_warmup_points(
                self.reduced_model,
                self.options["n_warmup_points"],
                seed=self._warmup_seed,
                verbose=self.options["verbose"],
            )
            if checkpoint_file:
                save_checkpoint(self.warmup, checkpoint_file, key)
        else:
            self.warmup = warmup
            self.logger.info("Loaded warm-up points from checkpoint.")

    def _sample(self) -> None:
        """Run the sampler and write the sample batches."""
        opts = self.options
        self.logger.info(
            f"Sampling {opts['n_files']} files of {opts['n_points_per_file']} points "
            f"({opts['n_steps_per_point']} steps per point)..."
        )
        polytope = Polytope.from_cobra(self.reduced_model)
        sampler = self.sampler_class(
            polytope,
            self.warmup,
            seed=self._sampler_seed,
            projection_interval=opts["projection_interval"],
            max_direction_redraws=opts["max_direction_redraws"],
        )

        batches = sampler.batches(
            opts["n_files"],
            opts["n_points_per_file"],
            opts["n_steps_per_point"],
            n_processes=opts["n_processes"],
        )
        for batch_index, points in tqdm(
            batches,
            total=opts["n_files"],
            desc="Sample files",
            disable=not opts["verbose"],
        ):
            path = write_batch(self.sample_file, batch_index, points)
            self.logger.info(f"Sample batch {batch_index} saved to {path}")

    def _post_process(self) -> None:
        """Load the stored batches and build the returned sample matrix."""
        self.logger.info("Loading samples...")
        raw = load_samples(self.sample_file, self.options)
        samples = samples_to_frame(
            raw, [rxn.id for rxn in self.reduced_model.reactions]
        )
        self.model_sampling, samples = convert_reversed_samples(
            self.reduced_model, samples, self.reduction_map
        )

        if self.options["remove_loop_samples_flag"]:
            samples = remove_loop_samples(samples, self.reduction_map.loop_ids)
        self.samples = samples


def sample_cb_model(
    model, sample_file, sampler_name="achr", options=None, checkpoint_dir=None
):
    """
    Sample the flux space of a constraint-based model.

    Args:
        model (cobra.Model or Polytope): The model to sample.
        sample_file (str): Base name of the sample batch files
            (``<sample_file>_<i>.npy``).
        sampler_name (str): Sampler to use. Only "achr" is available.
        options (dict, optional): Sampling options overriding `DEFAULT_OPTIONS`.
        checkpoint_dir (str, optional): Directory for checkpoints of the reduced
            model and warm-up points.

    Returns:
        tuple: (model_sampling, samples) where `model_sampling` is the reduced
        model in the original reaction orientation and `samples` is a
        DataFrame of fluxes indexed by reaction id, one column per point.

    Raises:
        ConfigurationError: For invalid options or an unknown sampler.
        InfeasibleModelError: If the model has no feasible flux distribution.
        PersistenceError: If a sample batch cannot be written or read.
    """
    workflow = SampleGEM(
        model,
        sample_file,
        sampler_name=sampler_name,
        options=options,
        checkpoint_dir=checkpoint_dir,
    )
    return workflow.run()


def load_model(model_file):
    """Load a model from a JSON, MATLAB or SBML file."""
    extension = os.path.splitext(model_file)[1].lower()
    if extension == ".json":
        return load_json_model(model_file)
    if extension == ".mat":
        return load_matlab_model(model_file)
    if extension in (".xml", ".sbml"):
        return read_sbml_model(model_file)
    raise ValueError(f"Unsupported model file format: {extension}")


def main(argv=None):
    """Command line entry point."""
    parser = argparse.ArgumentParser(
        description="SampleGEMPy: Sample the flux space of metabolic models"
    )
    parser.add_argument("-m", "--model", help="Path to the model file", required=True)
    parser.add_argument(
        "-o", "--output", help="Base name of the sample files", required=True
    )
    parser.add_argument("-c", "--config", help="Path to a YAML options file")
    parser.add_argument("-s", "--sampler", default="achr", help="Sampler name")
    parser.add_argument("--checkpoint-dir", help="Directory for checkpoints")
    parser.add_argument("--csv", help="Write the returned samples to this CSV file")
    args = parser.parse_args(argv)

    options = load_options(args.config) if args.config else None
    model = load_model(args.model)
    _, samples = sample_cb_model(
        model,
        args.output,
        sampler_name=args.sampler,
        options=options,
        checkpoint_dir=args.checkpoint_dir,
    )

    if args.csv:
        samples.to_csv(args.csv)
    return samples


if __name__ == "__main__":
    main()
