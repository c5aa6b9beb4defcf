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
Warm-up Point Generation for SampleGEMPy.

Warm-up points are obtained by optimising flux objectives: each reaction is
maximised and minimised in turn, and any additional points use random
objectives. The points are finally pulled towards their centroid so that they
lie in the relative interior of the polytope.
"""

import logging

import numpy as np
from tqdm.auto import tqdm

from samplegempy.exceptions import InfeasibleModelError
from samplegempy.solver import solve_lp

logger = logging.getLogger(__name__)

CENTER_WEIGHT = 0.67


def create_warmup_points(model, n_points, seed=None, verbose=True):
    """
    Create warm-up points for hit-and-run sampling.

    Args:
        model (cobra.Model): The (reduced) model to sample.
        n_points (int): Requested number of warm-up points. Raised to twice the
            number of reactions if smaller, and never below 2.
        seed (int, optional): Seed for the random objectives.
        verbose (bool): Show a progress bar.

    Returns:
        np.ndarray: Warm-up points, reactions x points.

    Raises:
        InfeasibleModelError: If any of the LPs is not solved to optimality.
    """
    n_rxns = len(model.reactions)
    if n_rxns == 0:
        raise InfeasibleModelError("Cannot create warm-up points for a model without reactions")

    if n_points < 2 * n_rxns:
        logger.warning(
            f"Need at least {2 * n_rxns} warm-up points for {n_rxns} reactions; "
            f"using {2 * n_rxns} instead of {n_points}."
        )
        n_points = 2 * n_rxns
    n_points = max(n_points, 2)

    rng = np.random.default_rng(seed)
    lb = np.array([rxn.lower_bound for rxn in model.reactions])
    ub = np.array([rxn.upper_bound for rxn in model.reactions])
    warmup = np.zeros((n_rxns, n_points))

    # A fresh copy starts the solver from the same basis on every call
    lp_model = model.copy()
    for i in tqdm(range(n_points), desc="Warm-up points", disable=not verbose):
        if i < 2 * n_rxns:
            coefficients = {lp_model.reactions[i // 2]: 1.0}
            direction = "max" if i % 2 == 0 else "min"
        else:
            coefficients = dict(zip(lp_model.reactions, rng.random(n_rxns) - 0.5))
            direction = "max"

        status, x = solve_lp(lp_model, coefficients, direction)
        if x is None:
            raise InfeasibleModelError(
                f"Warm-up LP {i + 1} of {n_points} failed (solver status: {status})"
            )
        warmup[:, i] = np.clip(x, lb, ub)

    center = warmup.mean(axis=1)
    warmup = (1 - CENTER_WEIGHT) * warmup + CENTER_WEIGHT * center[:, None]
    logger.info(f"Created {n_points} warm-up points.")
    return warmup
