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
Sampling Diagnostics.

Functions:
    - mix_fraction: Compare two sets of points to judge how well a chain mixed.
    - check_samples: Constraint violations of a sample matrix.
"""

import numpy as np


def mix_fraction(sample1, sample2, fixed=None):
    """
    Compare two sets of sampled points and determine how mixed they are.

    Each point of `sample1` is paired with the point in the same column of
    `sample2`. For every reaction the two values are classified as above or
    not above the median of their own set, and the fraction of pairs falling
    on the same side is returned. Pairs where either value equals the median
    are not counted.

    Args:
        sample1 (np.ndarray): Points, reactions x points.
        sample2 (np.ndarray): Points in the same order as `sample1`.
        fixed (sequence, optional): Indices of reactions with fixed flux, which
            are ignored.

    Returns:
        float: The mix fraction, 0.5 for well mixed sets and 1 for completely
        unmixed ones. NaN if no pair can be compared.
    """
    sample1 = np.asarray(sample1, dtype=float)
    sample2 = np.asarray(sample2, dtype=float)
    if sample1.shape != sample2.shape:
        raise ValueError(
            f"Samples must have the same shape, got {sample1.shape} and {sample2.shape}"
        )

    # NaN rows
    ignore_rows = np.isnan(sample1).any(axis=1) | np.isnan(sample2).any(axis=1)
    if fixed is not None and len(fixed) > 0:
        ignore_rows[np.asarray(fixed)] = True
    sample1 = sample1[~ignore_rows]
    sample2 = sample2[~ignore_rows]

    m1 = np.median(sample1, axis=1)[:, None]
    m2 = np.median(sample2, axis=1)[:, None]
    above1 = sample1 > m1
    above2 = sample2 > m2
    ties = (sample1 == m1) | (sample2 == m2)

    n_compared = above1.size - ties.sum()
    if n_compared == 0:
        return float("nan")
    return float(((above1 == above2) & ~ties).sum()) / float(n_compared)


def check_samples(polytope, samples):
    """
    Measure how far sampled points are from satisfying the constraints.

    Args:
        polytope (Polytope): The polytope the points were sampled from.
        samples (np.ndarray or pd.DataFrame): Points, reactions x points, in
            the reaction order of the polytope.

    Returns:
        dict: ``max_residual`` (largest |S x - b|) and ``max_bound_violation``
        (largest distance outside [lb, ub]).
    """
    points = np.asarray(samples, dtype=float)
    residual = np.abs(polytope.residual(points))
    below = polytope.lb[:, None] - points
    above = points - polytope.ub[:, None]
    return {
        "max_residual": float(residual.max(initial=0.0)),
        "max_bound_violation": float(
            max(below.max(initial=0.0), above.max(initial=0.0), 0.0)
        ),
    }
