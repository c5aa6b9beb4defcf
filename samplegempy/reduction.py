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
Model Reduction for SampleGEMPy.

This module shrinks a model to the part of the flux space that can actually be
sampled: blocked reactions are removed, bounds are tightened to the flux
variability ranges, and reactions that can only run backwards are flipped so
that every kept reaction carries non-negative flux in its stored orientation.
It also locates reactions taking part in thermodynamically infeasible loops.

Classes:
    - ReductionMap: Bookkeeping between the original and the reduced model.

Functions:
    - reduce_model: Reduce a model and return the reduced copy with its map.
    - find_loop_reactions: Identify internal reactions that can carry loop flux.
    - remove_loop_reactions: Remove loop reactions while keeping the model feasible.
"""

import logging

import numpy as np
from scipy import linalg
from cobra.exceptions import OptimizationError
from cobra.flux_analysis import flux_variability_analysis
from cobra.util.array import create_stoichiometric_matrix
from cobra.util.solver import set_objective

from samplegempy.exceptions import EmptyPolytopeError, InfeasibleModelError
from samplegempy.polytope import Polytope

logger = logging.getLogger(__name__)

FLIPPED_SUFFIX = "_r"


class ReductionMap:
    """
    Mapping from a reduced model back to the model it was built from.

    Attributes:
        original_ids (list): Reaction ids of the input model.
        removed_ids (list): Blocked reactions removed from the model.
        flipped_ids (list): Original ids of reactions stored reversed, under
            the id ``<id>_r``.
        removed_metabolite_ids (list): Metabolites dropped as linearly dependent.
        loop_ids (list): Reactions found to take part in internal loops.
        removed_loop_ids (list): Loop reactions removed from the model.
    """

    def __init__(self, original_ids):
        self.original_ids = list(original_ids)
        self.removed_ids = []
        self.flipped_ids = []
        self.removed_metabolite_ids = []
        self.loop_ids = []
        self.removed_loop_ids = []

    def reduced_id(self, rxn_id):
        """Id of an original reaction in the reduced model."""
        if rxn_id in self.flipped_ids:
            return rxn_id + FLIPPED_SUFFIX
        return rxn_id

    def original_id(self, rxn_id):
        """Id in the original model of a reduced-model reaction."""
        if rxn_id.endswith(FLIPPED_SUFFIX):
            base = rxn_id[: -len(FLIPPED_SUFFIX)]
            if base in self.flipped_ids:
                return base
        return rxn_id

    def __repr__(self):
        return (
            f"<ReductionMap original={len(self.original_ids)} "
            f"removed={len(self.removed_ids)} flipped={len(self.flipped_ids)} "
            f"loops={len(self.loop_ids)}>"
        )


def _clear_objective(model):
    set_objective(model, {}, additive=False)


def _run_fva(model, tolerance, processes):
    """FVA over the whole flux space with values below tolerance set to zero."""
    try:
        fva = flux_variability_analysis(
            model, fraction_of_optimum=0.0, processes=processes
        )
    except OptimizationError as e:
        raise InfeasibleModelError(
            f"Flux variability analysis failed for model {model.id}: {e}"
        ) from e
    return fva.where(fva.abs() >= tolerance, 0.0)


def flip_reaction(reaction):
    """
    Reverse a reaction in place.

    The stoichiometry and the bounds are negated, and the ``_r`` suffix is added
    to the id or removed from it, so applying it twice restores the reaction.

    Raises:
        ValueError: If the model already contains a reaction with the new id.
    """
    if reaction.id.endswith(FLIPPED_SUFFIX):
        new_id = reaction.id[: -len(FLIPPED_SUFFIX)]
    else:
        new_id = reaction.id + FLIPPED_SUFFIX
    if reaction.model is not None and new_id in reaction.model.reactions:
        raise ValueError(
            f"Cannot flip reaction {reaction.id}: the model already has a "
            f"reaction with id {new_id}"
        )

    reaction.add_metabolites(
        {met: -coefficient for met, coefficient in reaction.metabolites.items()},
        combine=False,
    )
    lower, upper = reaction.bounds
    reaction.bounds = (-upper, -lower)
    reaction.id = new_id
    return reaction


def _remove_dependent_rows(model, tolerance):
    """Remove metabolites whose mass balances are linear combinations of others."""
    S = create_stoichiometric_matrix(model, array_type="dense")
    if S.size == 0:
        return []
    _, R, pivots = linalg.qr(S.T, mode="economic", pivoting=True)
    diagonal = np.abs(np.diag(R))
    rank = int(np.sum(diagonal > tolerance * max(diagonal.max(initial=0.0), 1.0)))
    dependent = [model.metabolites[i] for i in sorted(pivots[rank:])]
    removed_ids = [met.id for met in dependent]
    if dependent:
        model.remove_metabolites(dependent)
        logger.info(f"Removed {len(removed_ids)} linearly dependent metabolites.")
    return removed_ids


def reduce_model(model, tolerance=1e-6, processes=1, remove_dependent_rows=False):
    """
    Reduce a model to its sampleable part.

    Args:
        model (cobra.Model): The model to reduce. It is not modified.
        tolerance (float): Flux values below this magnitude are treated as zero.
        processes (int): Number of processes used by flux variability analysis.
        remove_dependent_rows (bool): Also drop linearly dependent mass balances.

    Returns:
        tuple: (reduced_model, ReductionMap).

    Raises:
        EmptyPolytopeError: If the model admits no feasible flux distribution.
    """
    reduced = model.copy()
    _clear_objective(reduced)
    reduction_map = ReductionMap(rxn.id for rxn in model.reactions)

    reduced.slim_optimize()
    if reduced.solver.status != "optimal":
        raise EmptyPolytopeError(
            f"Model {model.id} is infeasible (solver status: {reduced.solver.status})"
        )

    fva = _run_fva(reduced, tolerance, processes)
    blocked = fva.index[(fva["minimum"] == 0) & (fva["maximum"] == 0)].tolist()
    logger.info(f"FVA identified {len(blocked)} blocked reactions.")
    if blocked:
        reduced.remove_reactions(blocked, remove_orphans=True)
    reduction_map.removed_ids = blocked

    for rxn in list(reduced.reactions):
        minimum, maximum = fva.at[rxn.id, "minimum"], fva.at[rxn.id, "maximum"]
        rxn.bounds = (min(minimum, maximum), max(minimum, maximum))
        if maximum <= 0:
            reduction_map.flipped_ids.append(rxn.id)
            flip_reaction(rxn)

    if reduction_map.flipped_ids:
        logger.info(
            f"Flipped {len(reduction_map.flipped_ids)} reactions that only carry negative flux."
        )

    if remove_dependent_rows:
        reduction_map.removed_metabolite_ids = _remove_dependent_rows(
            reduced, tolerance
        )

    if len(reduced.reactions) == 0:
        raise EmptyPolytopeError(f"All reactions of model {model.id} are blocked")

    return reduced, reduction_map


def find_loop_reactions(model, tolerance=1e-6, processes=1):
    """
    Identify reactions that can carry flux in internal cycles.

    All exchange reactions are closed, the bounds of internal reactions are
    relaxed to include zero, and FVA is run on what remains. Any reaction still
    able to carry flux does so through a loop.

    Returns:
        list: Ids of loop reactions.
    """
    polytope = Polytope.from_cobra(model)
    boundary_ids = {
        rxn_id
        for rxn_id, is_boundary in zip(polytope.reaction_ids, polytope.boundary_mask())
        if is_boundary
    }

    with model:
        _clear_objective(model)
        for rxn in model.reactions:
            if rxn.id in boundary_ids:
                rxn.bounds = (0.0, 0.0)
            else:
                # forced internal fluxes would make the closed model infeasible
                rxn.bounds = (min(rxn.lower_bound, 0.0), max(rxn.upper_bound, 0.0))
        fva = _run_fva(model, tolerance, processes)

    loop_ids = [
        rxn_id
        for rxn_id, row in fva.iterrows()
        if rxn_id not in boundary_ids and (row["minimum"] != 0 or row["maximum"] != 0)
    ]
    logger.info(f"Found {len(loop_ids)} reactions taking part in internal loops.")
    return loop_ids


def remove_loop_reactions(model, loop_ids):
    """
    Remove loop reactions one by one, keeping each removal only when the model
    remains feasible.

    Returns:
        list: Ids of the reactions actually removed.
    """
    removed = []
    for rxn_id in loop_ids:
        model_copy = model.copy()
        model_copy.remove_reactions([rxn_id], remove_orphans=True)
        _clear_objective(model_copy)
        model_copy.slim_optimize()

        if model_copy.solver.status == "optimal":
            logger.info(f"Removing loop reaction: {rxn_id}")
            model.remove_reactions([rxn_id], remove_orphans=True)
            removed.append(rxn_id)
        else:
            logger.info(
                f"Keeping loop reaction {rxn_id} (removal causes infeasibility)"
            )
    return removed
