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
Hit-and-Run Samplers for SampleGEMPy.

This module implements Artificial Centering Hit-and-Run (ACHR) sampling of the
polytope {x : S x = b, lb <= x <= ub}. Directions are drawn from the warm-up
points towards a running center, so they stay in the null space of S.

Classes:
    - WalkerState: Lifecycle of a sampler.
    - HRSampler: Shared machinery of hit-and-run samplers.
    - ACHRSampler: Artificial Centering Hit-and-Run.

Functions:
    - get_sampler: Look up a sampler class by name.
"""

import logging
from enum import Enum
from multiprocessing import Pool

import numpy as np
from scipy import linalg

from samplegempy.exceptions import (
    ConfigurationError,
    DegenerateDirectionError,
    InfeasibleModelError,
)

logger = logging.getLogger(__name__)

# Direction components smaller than this are ignored for the step bounds
DIRECTION_TOLERANCE = 1e-9
# Minimum admissible step length in either direction
STEP_TOLERANCE = 1e-9
# Maximum allowed residual of S x = b before reprojection
PROJECTION_TOLERANCE = 1e-9


class WalkerState(Enum):
    INITIALIZED = "initialized"
    STEPPING = "stepping"
    BATCH_COMPLETE = "batch_complete"
    DONE = "done"


class HRSampler:
    """
    Base class for hit-and-run samplers.

    Args:
        polytope (Polytope): The polytope to sample.
        warmup (np.ndarray): Feasible warm-up points, reactions x points.
        seed (int or np.random.SeedSequence, optional): Random seed.
        projection_interval (int): Reproject onto S x = b every this many steps.
        max_direction_redraws (int): Consecutive degenerate directions allowed
            before the walker is reset to the center.
    """

    def __init__(
        self,
        polytope,
        warmup,
        seed=None,
        projection_interval=10,
        max_direction_redraws=1000,
    ):
        warmup = np.asarray(warmup, dtype=float)
        if warmup.ndim != 2 or warmup.shape[0] != polytope.n_reactions:
            raise ValueError(
                f"Warm-up points must be a {polytope.n_reactions} x N matrix, "
                f"got shape {warmup.shape}"
            )
        if warmup.shape[1] < 1:
            raise ValueError("At least one warm-up point is required")

        self.polytope = polytope
        self.warmup = warmup
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.projection_interval = projection_interval
        self.max_direction_redraws = max_direction_redraws
        self.lb = polytope.lb
        self.ub = polytope.ub
        self.n_steps = 0
        self.state = WalkerState.INITIALIZED
        self._S_pinv = None

    def project(self, x):
        """Move x back onto S x = b if it drifted, then clip it to the bounds."""
        residual = self.polytope.residual(x)
        if residual.size and np.max(np.abs(residual)) > PROJECTION_TOLERANCE:
            if self._S_pinv is None:
                self._S_pinv = linalg.pinv(self.polytope.S.toarray())
            x = x - self._S_pinv @ residual
        return np.clip(x, self.lb, self.ub)

    def step_bounds(self, x, direction):
        """
        Feasible step lengths along a direction.

        Returns:
            tuple: (min_step, max_step) such that lb <= x + t * direction <= ub
            for every t in the interval.

        Raises:
            DegenerateDirectionError: If the segment is empty or has zero length.
        """
        positive = direction > DIRECTION_TOLERANCE
        negative = direction < -DIRECTION_TOLERANCE
        if not (positive.any() or negative.any()):
            raise DegenerateDirectionError("Direction has no significant component")

        max_candidates = np.concatenate(
            (
                (self.ub[positive] - x[positive]) / direction[positive],
                (self.lb[negative] - x[negative]) / direction[negative],
            )
        )
        min_candidates = np.concatenate(
            (
                (self.lb[positive] - x[positive]) / direction[positive],
                (self.ub[negative] - x[negative]) / direction[negative],
            )
        )
        max_step = max_candidates.min()
        min_step = min_candidates.max()

        if (abs(min_step) < STEP_TOLERANCE and abs(max_step) < STEP_TOLERANCE) or (
            min_step > max_step
        ):
            raise DegenerateDirectionError(
                f"Empty step interval [{min_step}, {max_step}]"
            )
        return min_step, max_step

    def sample(self, n_points, n_steps_per_point):
        raise NotImplementedError

    def batches(self, n_files, n_points_per_file, n_steps_per_point, n_processes=1):
        raise NotImplementedError


class ACHRSampler(HRSampler):
    """
    Artificial Centering Hit-and-Run sampler.

    The walker starts at the centroid of the warm-up points. At each step a
    warm-up point is drawn at random and the walker moves along the line
    through the current center and that point, to a position drawn uniformly
    on the feasible segment. The center is the running mean of the warm-up
    points and all visited points.

    Raises:
        InfeasibleModelError: If the centroid of the warm-up points is not
            feasible.
    """

    def __init__(self, polytope, warmup, **kwargs):
        super().__init__(polytope, warmup, **kwargs)
        self.center = self.warmup.mean(axis=1)
        if not polytope.is_feasible(self.center, tolerance=1e-6):
            raise InfeasibleModelError(
                "Initial point (warm-up centroid) violates the model constraints"
            )
        self.x = np.clip(self.center, self.lb, self.ub)
        self.n_warmup = self.warmup.shape[1]
        spread = np.linalg.norm(self.warmup - self.center[:, None], axis=0)
        self.constant = bool(np.all(spread < DIRECTION_TOLERANCE))
        if self.constant:
            logger.info("All warm-up points coincide; the polytope is a single point.")

    def _random_direction(self):
        """Unit vector from the center towards a random warm-up point, or None."""
        j = self.rng.integers(self.n_warmup)
        direction = self.warmup[:, j] - self.center
        norm = np.linalg.norm(direction)
        if norm < DIRECTION_TOLERANCE:
            return None
        return direction / norm

    def step(self):
        """Perform one hit-and-run step."""
        self.state = WalkerState.STEPPING
        if self.constant:
            return self.x

        for _ in range(self.max_direction_redraws):
            direction = self._random_direction()
            if direction is None:
                continue
            try:
                min_step, max_step = self.step_bounds(self.x, direction)
            except DegenerateDirectionError:
                continue
            break
        else:
            logger.warning(
                f"No usable direction after {self.max_direction_redraws} draws; "
                "resetting the walker to the center."
            )
            self.x = self.project(self.center.copy())
            return self.x

        t = self.rng.uniform(min_step, max_step)
        x = self.x + t * direction
        self.n_steps += 1
        if self.n_steps % self.projection_interval == 0:
            x = self.project(x)
        else:
            x = np.clip(x, self.lb, self.ub)
        self.x = x

        total = self.n_warmup + self.n_steps
        self.center = (total * self.center + self.x) / (total + 1)
        return self.x

    def burn_in(self, n_steps):
        """Walk `n_steps` steps without saving any point."""
        for _ in range(n_steps):
            self.step()
        return self.x

    def sample(self, n_points, n_steps_per_point):
        """
        Collect one batch of points.

        Returns:
            np.ndarray: Points, reactions x n_points.
        """
        points = np.zeros((self.polytope.n_reactions, n_points))
        for i in range(n_points):
            for _ in range(n_steps_per_point):
                self.step()
            self.x = self.project(self.x)
            points[:, i] = self.x
        self.state = WalkerState.BATCH_COMPLETE
        return points

    def batches(self, n_files, n_points_per_file, n_steps_per_point, n_processes=1):
        """
        Generate the sample batches.

        With a single process one chain produces every batch. With several
        processes each batch is produced by an independent chain started at
        the warm-up centroid with its own random stream. Each chain first walks
        as many steps as one batch takes and discards them, so its saved points
        do not start at the centroid.

        Yields:
            tuple: (batch_index, points), with 1-based batch indices.
        """
        if n_processes > 1:
            seed_sequence = (
                self.seed
                if isinstance(self.seed, np.random.SeedSequence)
                else np.random.SeedSequence(self.seed)
            )
            children = seed_sequence.spawn(n_files)
            chain_args = [
                (
                    self.polytope,
                    self.warmup,
                    child,
                    n_points_per_file,
                    n_steps_per_point,
                    self.projection_interval,
                    self.max_direction_redraws,
                )
                for child in children
            ]
            with Pool(n_processes) as pool:
                for batch_index, points in enumerate(
                    pool.imap(_sample_chain, chain_args), start=1
                ):
                    self.state = WalkerState.BATCH_COMPLETE
                    yield batch_index, points
        else:
            for batch_index in range(1, n_files + 1):
                yield batch_index, self.sample(n_points_per_file, n_steps_per_point)
        self.state = WalkerState.DONE


def _sample_chain(args):
    """Run an independent ACHR chain producing a single batch after a burn-in."""
    (
        polytope,
        warmup,
        seed,
        n_points,
        n_steps_per_point,
        projection_interval,
        max_direction_redraws,
    ) = args
    sampler = ACHRSampler(
        polytope,
        warmup,
        seed=seed,
        projection_interval=projection_interval,
        max_direction_redraws=max_direction_redraws,
    )
    sampler.burn_in(n_points * n_steps_per_point)
    return sampler.sample(n_points, n_steps_per_point)


SAMPLERS = {"achr": ACHRSampler}


def get_sampler(name):
    """
    Look up a sampler class by (case-insensitive) name.

    Raises:
        ConfigurationError: If the sampler is unknown or not available.
    """
    key = str(name).lower()
    if key == "mfe":
        raise ConfigurationError(
            "The MFE sampler (volume estimation) is not available; use 'achr'"
        )
    if key not in SAMPLERS:
        raise ConfigurationError(f"Unknown sampler: {name}")
    return SAMPLERS[key]
