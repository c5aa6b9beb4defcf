"""Small hand-built models shared by the tests."""

import numpy as np
import pytest

from samplegempy.polytope import Polytope


def chain_polytope(ub=10.0):
    """EX_in -> A -> B -> EX_out, all fluxes equal and in [0, ub]."""
    S = np.array([[1.0, -1.0, 0.0], [0.0, 1.0, -1.0]])
    return Polytope(
        S,
        lb=[0.0, 0.0, 0.0],
        ub=[ub, ub, ub],
        reaction_ids=["EX_in", "R_mid", "EX_out"],
        metabolite_ids=["A", "B"],
    )


@pytest.fixture
def chain():
    return chain_polytope()


@pytest.fixture
def chain_model():
    return chain_polytope().to_cobra("chain")


@pytest.fixture
def reversed_chain_model():
    """Chain whose middle reaction is written backwards and only runs in reverse."""
    S = np.array([[1.0, 1.0, 0.0], [0.0, -1.0, -1.0]])
    polytope = Polytope(
        S,
        lb=[0.0, -1000.0, 0.0],
        ub=[10.0, 1000.0, 10.0],
        reaction_ids=["EX_in", "R_back", "EX_out"],
        metabolite_ids=["A", "B"],
    )
    return polytope.to_cobra("reversed_chain")


@pytest.fixture
def blocked_model():
    """Chain plus a reaction producing a dead-end metabolite from A."""
    S = np.array(
        [
            [1.0, -1.0, 0.0, -1.0],
            [0.0, 1.0, -1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )
    polytope = Polytope(
        S,
        lb=[0.0, 0.0, 0.0, 0.0],
        ub=[10.0, 1000.0, 10.0, 1000.0],
        reaction_ids=["EX_in", "R_mid", "EX_out", "R_dead"],
        metabolite_ids=["A", "B", "C"],
    )
    return polytope.to_cobra("blocked")


@pytest.fixture
def loop_model():
    """A and B interconvert through R1 and R2, forming an internal cycle."""
    S = np.array([[1.0, -1.0, 1.0, 0.0], [0.0, 1.0, -1.0, -1.0]])
    polytope = Polytope(
        S,
        lb=[0.0, 0.0, 0.0, 0.0],
        ub=[10.0, 10.0, 10.0, 10.0],
        reaction_ids=["EX_A", "R1", "R2", "EX_B"],
        metabolite_ids=["A", "B"],
    )
    return polytope.to_cobra("loop")


@pytest.fixture
def infeasible_model():
    """Chain forced to carry at least 5 units through a reaction capped at 2."""
    polytope = chain_polytope()
    polytope.lb[0] = 5.0
    polytope.ub[2] = 2.0
    return polytope.to_cobra("infeasible")


@pytest.fixture
def chain_warmup():
    """Feasible warm-up points t * (1, 1, 1) of the chain polytope."""
    return np.outer(np.ones(3), np.linspace(1.0, 9.0, 9))
