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
Polytope Representation of Constraint-Based Models.

This module provides an array view of a metabolic model, the polytope
{x : S x = b, lb <= x <= ub}, and conversions to and from COBRApy models.

Classes:
    - Polytope: Stoichiometric matrix, bounds and right-hand side of a model.
"""

import numpy as np
from scipy import sparse
from cobra import Metabolite, Model, Reaction
from cobra.util.array import create_stoichiometric_matrix


class Polytope:
    """
    Feasible flux space of a metabolic model.

    Attributes:
        S (scipy.sparse.csr_matrix): Stoichiometric matrix (metabolites x reactions).
        lb (np.ndarray): Lower flux bounds, one per reaction.
        ub (np.ndarray): Upper flux bounds, one per reaction.
        b (np.ndarray): Right-hand side of the mass balances, one per metabolite.
        reaction_ids (list): Reaction identifiers, in column order.
        metabolite_ids (list): Metabolite identifiers, in row order.
    """

    def __init__(self, S, lb, ub, b=None, reaction_ids=None, metabolite_ids=None):
        self.S = sparse.csr_matrix(S, dtype=float)
        n_mets, n_rxns = self.S.shape
        self.lb = np.asarray(lb, dtype=float).ravel()
        self.ub = np.asarray(ub, dtype=float).ravel()
        self.b = (
            np.zeros(n_mets) if b is None else np.asarray(b, dtype=float).ravel()
        )
        self.reaction_ids = (
            list(reaction_ids)
            if reaction_ids is not None
            else [f"R{j + 1}" for j in range(n_rxns)]
        )
        self.metabolite_ids = (
            list(metabolite_ids)
            if metabolite_ids is not None
            else [f"M{i + 1}" for i in range(n_mets)]
        )

        if self.lb.size != n_rxns or self.ub.size != n_rxns:
            raise ValueError(
                f"Bounds must have one entry per reaction ({n_rxns}), "
                f"got {self.lb.size} and {self.ub.size}"
            )
        if self.b.size != n_mets:
            raise ValueError(f"b must have one entry per metabolite ({n_mets})")
        if len(self.reaction_ids) != n_rxns or len(self.metabolite_ids) != n_mets:
            raise ValueError("Identifier lists do not match the matrix dimensions")
        if np.any(self.lb > self.ub):
            bad = [
                self.reaction_ids[j] for j in np.flatnonzero(self.lb > self.ub)
            ]
            raise ValueError(f"Lower bound exceeds upper bound for: {bad}")

    @property
    def n_reactions(self):
        return self.S.shape[1]

    @property
    def n_metabolites(self):
        return self.S.shape[0]

    @classmethod
    def from_cobra(cls, model):
        """Build the polytope of a COBRApy model."""
        S = create_stoichiometric_matrix(model, array_type="lil").tocsr()
        lb = [rxn.lower_bound for rxn in model.reactions]
        ub = [rxn.upper_bound for rxn in model.reactions]
        b = [met.constraint.lb or 0.0 for met in model.metabolites]
        return cls(
            S,
            lb,
            ub,
            b,
            reaction_ids=[rxn.id for rxn in model.reactions],
            metabolite_ids=[met.id for met in model.metabolites],
        )

    def to_cobra(self, model_id="polytope"):
        """
        Build a COBRApy model with the same constraints.

        The objective of the returned model is empty.
        """
        model = Model(model_id)
        metabolites = [
            Metabolite(met_id, compartment="c") for met_id in self.metabolite_ids
        ]
        model.add_metabolites(metabolites)

        S = self.S.tocsc()
        reactions = []
        for j, rxn_id in enumerate(self.reaction_ids):
            rxn = Reaction(rxn_id)
            rxn.bounds = (self.lb[j], self.ub[j])
            column = S.getcol(j)
            rxn.add_metabolites(
                {
                    metabolites[i]: coefficient
                    for i, coefficient in zip(column.indices, column.data)
                }
            )
            reactions.append(rxn)
        model.add_reactions(reactions)

        for met, rhs in zip(model.metabolites, self.b):
            set_mass_balance_rhs(model, met, rhs)
        return model

    def residual(self, x):
        """Return S x - b for a point or for a matrix of points (one per column)."""
        x = np.asarray(x, dtype=float)
        if x.ndim == 1:
            return self.S @ x - self.b
        return self.S @ x - self.b[:, None]

    def is_feasible(self, x, tolerance=1e-6):
        """Check the mass balances and the flux bounds for a point or point matrix."""
        x = np.asarray(x, dtype=float)
        lb, ub = self.lb, self.ub
        if x.ndim == 2:
            lb, ub = lb[:, None], ub[:, None]
        if x.size and np.max(np.abs(self.residual(x)), initial=0.0) > tolerance:
            return False
        return bool(np.all(x >= lb - tolerance) and np.all(x <= ub + tolerance))

    def boundary_mask(self):
        """Boolean mask of reactions involving a single metabolite (exchanges)."""
        return np.asarray((self.S != 0).sum(axis=0)).ravel() == 1


def set_mass_balance_rhs(model, metabolite, rhs):
    """Fix the right-hand side of a metabolite's mass balance in a COBRApy model."""
    constraint = metabolite.constraint
    # optlang rejects lb > ub while the bounds are updated one at a time
    if rhs > (constraint.ub or 0.0):
        constraint.ub = rhs
        constraint.lb = rhs
    else:
        constraint.lb = rhs
        constraint.ub = rhs
