#!/usr/bin/env python
"""Sampling of analytic hydrogenic orbitals.

Two proposal schemes are available:

- `Proposal.UNIFORM`: points are proposed uniformly inside a ball of
  radius `max_radius` (`r = R U^{1/3}`, `cos θ ~ U(-1, 1)`,
  `φ ~ U(0, 2π)`), so the proposal is uniform in space and the
  acceptance weight is :math:`|\\psi|^2` alone.  The envelope
  `max_prob` is estimated once per call by a grid scan, see
  `find_max_probability`.
- `Proposal.RADIAL`: :math:`R_{nl}` is tabulated on a grid and the
  radius is drawn by CDF inversion, the direction by angular rejection
  (see `radial.generate_orbital_samples_from_radial`).

`Proposal.AUTO` (the default) uses the uniform proposal whenever its
expected acceptance rate, :math:`1 / (V \\max|\\psi|^2)`, can fill the
request within the attempt budget, and the radial proposal otherwise.
Compact orbitals in large balls (1s with `max_radius = 20` accepts
about one proposal in ten thousand) always take the radial route.

Proposals are drawn in vectorised batches.  The total number of
proposals never exceeds `num_samples * MAX_ATTEMPTS_FACTOR`; when the
budget runs out fewer samples than requested are returned.

Example:
    >>> qn = QuantumNumbers(1, 0, 0)
    >>> rng = np.random.default_rng(42)
    >>> samples = generate_orbital_samples(qn, 100, 20.0, rng=rng)
    >>> samples.shape
    (100, 3)
"""

import enum
import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .hydrogen import (
    AngularBasis,
    QuantumNumbers,
    azimuthal_extrema,
    probability_density,
)
from .radial import (
    HYDROGENIC_GRID_STEPS,
    RadialKind,
    generate_orbital_samples_from_radial,
    tabulate_hydrogenic,
)
from .utils import concat_points, to_points

logger = logging.getLogger(__name__)

R_STEPS = 100
THETA_STEPS = 20
MAX_ATTEMPTS_FACTOR = 100
BATCH_SIZE = 65536
NUCLEUS_PROBE = 1e-4
"""Fraction of `max_radius` probed explicitly near the nucleus."""
MIN_ENVELOPE = 1e-30
MIN_EXPECTED_YIELD = 4.0
"""Expected accepted samples per requested sample needed by `Proposal.AUTO`
to keep the uniform proposal."""
GRID_POINTS_PER_SHELL = 40
"""Radial grid resolution of `Proposal.RADIAL`, in points per `n` Bohr radii."""


class Proposal(enum.Enum):
    """Proposal distribution of `generate_orbital_samples`."""

    AUTO = "auto"
    UNIFORM = "uniform"
    RADIAL = "radial"


def find_max_probability(
    qn: QuantumNumbers,
    max_radius: float,
    basis: AngularBasis = AngularBasis.COMPLEX,
    r_steps: int = R_STEPS,
    theta_steps: int = THETA_STEPS,
) -> float:
    """Approximate maximum of :math:`|\\psi|^2` inside the ball.

    Scans a grid with quadratic spacing in `r` (dense near the nucleus)
    and uniform `θ`.  The complex basis is azimuthally symmetric so
    `φ = 0` is representative; the real basis also scans `φ` through
    the extrema of its `cos(|m|φ)`/`sin(|m|φ)` factor.  The nucleus is
    probed separately to catch the sharp s-orbital peak.

    Args:
            qn (QuantumNumbers): The orbital.
            max_radius (float): Radius of the sampling ball (a₀).
            basis (AngularBasis): Angular basis.
            r_steps (int): Number of radial grid points.
            theta_steps (int): Number of polar grid points.

    Returns:
            float: The envelope, never smaller than `MIN_ENVELOPE`.

    >>> round(find_max_probability(QuantumNumbers(1, 0, 0), 20.0) * np.pi, 2)
    1.0
    """
    t = (np.arange(r_steps) + 1.0) / r_steps
    r = max_radius * t * t
    theta = (np.arange(theta_steps) + 0.5) / theta_steps * np.pi
    phi = azimuthal_extrema(qn.m, basis)
    R, TH, PH = np.meshgrid(r, theta, phi, indexing="ij")
    max_prob = float(np.max(probability_density(R, TH, PH, qn, basis)))

    near_nucleus = probability_density(
        max_radius * NUCLEUS_PROBE, np.pi / 2, phi, qn, basis
    )
    max_prob = max(max_prob, float(np.max(near_nucleus)))
    return max(max_prob, MIN_ENVELOPE)


def expected_acceptance(max_prob: float, max_radius: float) -> float:
    """Upper bound of the uniform proposal's acceptance rate.

    A normalised density integrates to at most one inside the ball, so
    the rate is at most :math:`1 / (V \\cdot \\mathrm{max\\_prob})`.
    """
    volume = 4.0 / 3.0 * np.pi * max_radius**3
    return min(1.0, 1.0 / (volume * max_prob))


def _choose_proposal(proposal, max_prob, max_radius):
    if proposal != Proposal.AUTO:
        return proposal
    rate = expected_acceptance(max_prob, max_radius)
    if rate * MAX_ATTEMPTS_FACTOR >= MIN_EXPECTED_YIELD:
        return Proposal.UNIFORM
    return Proposal.RADIAL


def _sample_uniform(qn, num_samples, max_radius, basis, rng, max_prob, batch_size):
    max_attempts = num_samples * MAX_ATTEMPTS_FACTOR
    attempts = 0
    accepted = 0
    parts = []
    while accepted < num_samples and attempts < max_attempts:
        size = min(batch_size, max_attempts - attempts)
        attempts += size

        r = max_radius * rng.random(size) ** (1.0 / 3.0)
        theta = np.arccos(rng.uniform(-1.0, 1.0, size))
        phi = rng.uniform(0.0, 2.0 * np.pi, size)

        prob = probability_density(r, theta, phi, qn, basis)
        keep = rng.random(size) < prob / max_prob
        parts.append(to_points(r[keep], theta[keep], phi[keep]))
        accepted += int(np.count_nonzero(keep))
    return concat_points(parts)[:num_samples]


def _grid_steps(qn: QuantumNumbers, max_radius: float) -> int:
    steps = int(GRID_POINTS_PER_SHELL * max_radius / qn.n) + 1
    return max(HYDROGENIC_GRID_STEPS, steps)


def generate_orbital_samples(
    qn: QuantumNumbers,
    num_samples: int,
    max_radius: float,
    basis: AngularBasis = AngularBasis.COMPLEX,
    rng: Optional[np.random.Generator] = None,
    proposal: Proposal = Proposal.AUTO,
    batch_size: int = BATCH_SIZE,
) -> NDArray:
    """Sample points from :math:`|\\psi_{nlm}|^2`.

    Args:
            qn (QuantumNumbers): The orbital.
            num_samples (int): Number of points requested.
            max_radius (float): Radius of the sampling ball (a₀).
            basis (AngularBasis): Angular basis of the orbital shape.
            rng (np.random.Generator, optional): Source of randomness.
            proposal (Proposal): Proposal scheme, see the module docstring.
            batch_size (int): Proposals evaluated per vectorised step of
                the uniform proposal.

    Returns:
            np.ndarray: Accepted points, shape `(N, 3)`, `float32`, with
            `N <= num_samples` (`N < num_samples` only if the attempt
            budget was exhausted).
    """
    if num_samples < 0:
        raise ValueError("num_samples should not be negative.")
    if max_radius <= 0:
        raise ValueError("max_radius should be positive.")
    rng = np.random.default_rng() if rng is None else rng

    max_prob = find_max_probability(qn, max_radius, basis)
    chosen = _choose_proposal(proposal, max_prob, max_radius)
    logger.debug(
        "Sampling %s (%s basis): envelope %.4g, %s proposal.",
        qn,
        basis.value,
        max_prob,
        chosen.value,
    )

    if chosen == Proposal.UNIFORM:
        samples = _sample_uniform(
            qn, num_samples, max_radius, basis, rng, max_prob, batch_size
        )
    else:
        orbital = tabulate_hydrogenic(qn, max_radius, _grid_steps(qn, max_radius))
        samples = generate_orbital_samples_from_radial(
            orbital.r,
            orbital.value,
            qn.l,
            qn.m,
            num_samples,
            max_radius,
            RadialKind.R,
            basis,
            rng,
        )

    if len(samples) < num_samples:
        logger.warning(
            "Attempt budget exhausted for %s: %d of %d samples accepted.",
            qn,
            len(samples),
            num_samples,
        )
    return samples
