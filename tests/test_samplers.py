"""Tests for the ACHR sampler."""

import logging

import numpy as np
import pytest

from samplegempy.exceptions import (
    ConfigurationError,
    DegenerateDirectionError,
    InfeasibleModelError,
)
from samplegempy.polytope import Polytope
from samplegempy.samplers import ACHRSampler, WalkerState, get_sampler


def test_samples_are_feasible(chain, chain_warmup):
    sampler = ACHRSampler(chain, chain_warmup, seed=1)
    points = sampler.sample(20, 5)

    assert points.shape == (3, 20)
    assert chain.is_feasible(points, tolerance=1e-8)
    # the walk actually moves
    assert np.ptp(points[0]) > 0.0


def test_state_transitions(chain, chain_warmup):
    sampler = ACHRSampler(chain, chain_warmup, seed=1)
    assert sampler.state is WalkerState.INITIALIZED

    sampler.step()
    assert sampler.state is WalkerState.STEPPING

    indices = []
    for batch_index, points in sampler.batches(3, 4, 2):
        assert sampler.state is WalkerState.BATCH_COMPLETE
        assert points.shape == (3, 4)
        indices.append(batch_index)

    assert indices == [1, 2, 3]
    assert sampler.state is WalkerState.DONE


def test_same_seed_same_points(chain, chain_warmup):
    first = ACHRSampler(chain, chain_warmup, seed=5).sample(10, 3)
    second = ACHRSampler(chain, chain_warmup, seed=5).sample(10, 3)
    assert np.array_equal(first, second)


def test_starts_at_warmup_centroid(chain, chain_warmup):
    sampler = ACHRSampler(chain, chain_warmup)
    assert np.allclose(sampler.x, [5.0, 5.0, 5.0])


def test_infeasible_centroid_raises(chain):
    warmup = np.array([[1.0, 2.0], [1.0, 2.0], [0.0, 0.0]])
    with pytest.raises(InfeasibleModelError):
        ACHRSampler(chain, warmup)


def test_warmup_shape_is_checked(chain):
    with pytest.raises(ValueError):
        ACHRSampler(chain, np.ones((2, 4)))


def test_step_bounds(chain, chain_warmup):
    sampler = ACHRSampler(chain, chain_warmup)
    direction = np.ones(3) / np.sqrt(3.0)

    min_step, max_step = sampler.step_bounds(np.full(3, 5.0), direction)
    assert min_step == pytest.approx(-5.0 * np.sqrt(3.0))
    assert max_step == pytest.approx(5.0 * np.sqrt(3.0))


def test_zero_length_segment_is_degenerate():
    box = Polytope(np.zeros((0, 2)), lb=[0.0, 0.0], ub=[1.0, 0.0])
    sampler = ACHRSampler(box, np.array([[0.2, 0.8], [0.0, 0.0]]))

    with pytest.raises(DegenerateDirectionError):
        sampler.step_bounds(np.array([0.5, 0.0]), np.array([0.0, 1.0]))
    with pytest.raises(DegenerateDirectionError):
        sampler.step_bounds(np.array([0.5, 0.0]), np.zeros(2))


def test_degenerate_directions_reset_to_center(chain, chain_warmup, monkeypatch, caplog):
    sampler = ACHRSampler(chain, chain_warmup, seed=2, max_direction_redraws=5)
    sampler.sample(3, 3)
    center = sampler.center.copy()

    def always_degenerate(x, direction):
        raise DegenerateDirectionError("no room")

    monkeypatch.setattr(sampler, "step_bounds", always_degenerate)
    with caplog.at_level(logging.WARNING):
        x = sampler.step()

    assert np.allclose(x, center)
    assert "resetting the walker" in caplog.text


def test_single_point_polytope():
    point = Polytope(np.array([[1.0, -1.0]]), lb=[2.0, 2.0], ub=[2.0, 2.0])
    sampler = ACHRSampler(point, np.full((2, 4), 2.0), seed=0)

    points = sampler.sample(5, 10)
    assert np.allclose(points, 2.0)


def test_parallel_chains(chain, chain_warmup):
    sampler = ACHRSampler(chain, chain_warmup, seed=11)
    batches = list(sampler.batches(2, 3, 2, n_processes=2))

    assert [index for index, _ in batches] == [1, 2]
    for _, points in batches:
        assert chain.is_feasible(points, tolerance=1e-8)
    assert sampler.state is WalkerState.DONE


def test_burn_in_discards_steps(chain, chain_warmup):
    sampler = ACHRSampler(chain, chain_warmup, seed=4)
    x = sampler.burn_in(7)

    assert sampler.n_steps == 7
    assert chain.is_feasible(x, tolerance=1e-8)
    assert sampler.state is WalkerState.STEPPING


def test_nonzero_right_hand_side():
    # x1 - x2 = 2 with both fluxes in [0, 10]
    shifted = Polytope(np.array([[1.0, -1.0]]), lb=[0.0, 0.0], ub=[10.0, 10.0], b=[2.0])
    warmup = np.array([[3.0, 5.0, 9.0], [1.0, 3.0, 7.0]])
    sampler = ACHRSampler(shifted, warmup, seed=2, projection_interval=1)

    points = sampler.sample(30, 3)

    assert shifted.is_feasible(points, tolerance=1e-8)
    assert np.allclose(points[0] - points[1], 2.0)
    assert np.ptp(points[0]) > 0.0


def test_get_sampler():
    assert get_sampler("achr") is ACHRSampler
    assert get_sampler("ACHR") is ACHRSampler

    with pytest.raises(ConfigurationError, match="MFE"):
        get_sampler("mfe")
    with pytest.raises(ConfigurationError, match="Unknown sampler"):
        get_sampler("gibbs")
