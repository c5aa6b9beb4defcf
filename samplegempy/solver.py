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
Solver Configuration Module for SampleGEMPy.

This module configures the LP solver of a COBRApy model and solves the
flux-objective LPs needed by the warm-up generator.

Functions:
    - set_solver: Configure the solver for the model.
    - set_flux_objective: Replace the objective by a linear combination of fluxes.
    - solve_lp: Optimise a flux objective and return the status and flux vector.
"""

import logging

import numpy as np
from cobra.util.solver import set_objective

logger = logging.getLogger(__name__)


def set_solver(model, sampling_opts):
    """
    Configure solver settings for the model.

    Args:
        model: The COBRApy model to configure.
        sampling_opts (dict): Sampling options, including:
            - solver (str or None): Solver interface name (e.g. "glpk", "cplex",
              "gurobi"). None keeps the model's current solver.

    Returns:
        The configured model.

    Raises:
        ValueError: If the specified solver is not supported.
    """
    solver = sampling_opts.get("solver")
    if solver is not None:
        solver = solver.lower()
        if solver not in ("glpk", "glpk_exact", "cplex", "gurobi", "osqp", "hybrid"):
            raise ValueError(f"Unsupported solver option: {solver}")
        model.solver = solver

    tolerances = model.solver.configuration.tolerances
    for name in ("feasibility", "optimality"):
        # Not every interface exposes every tolerance (GLPK has no optimality)
        try:
            setattr(tolerances, name, 1e-9)
        except AttributeError:
            logger.debug(f"Solver {model.solver.interface.__name__} has no {name} tolerance")
    return model


def set_flux_objective(model, coefficients, direction="max"):
    """
    Set the objective to sum(c_j * v_j) over the given reactions.

    Args:
        model: The COBRApy model.
        coefficients (dict): Reaction (or reaction id) to objective coefficient.
        direction (str): "max" or "min".
    """
    objective = {
        (model.reactions.get_by_id(rxn) if isinstance(rxn, str) else rxn): coef
        for rxn, coef in coefficients.items()
        if coef != 0
    }
    set_objective(model, objective, additive=False)
    model.objective_direction = direction


def solve_lp(model, coefficients, direction="max"):
    """
    Optimise a flux objective.

    Returns:
        tuple: (status, x) where x holds the net flux of every reaction in
        model order, or None when the status is not optimal.
    """
    set_flux_objective(model, coefficients, direction)
    model.slim_optimize()
    status = model.solver.status
    if status != "optimal":
        return status, None

    primals = model.solver.primal_values
    x = np.array(
        [primals[rxn.id] - primals[rxn.reverse_id] for rxn in model.reactions]
    )
    return status, x
