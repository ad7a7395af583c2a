#!/usr/bin/env python
"""
Two-state superpositions.

A superposition of two stationary states evolves in time as

.. math::

    \\Psi(t) = \\sqrt{w}\\,\\psi_A + \\sqrt{1-w}\\,\\psi_B\\,e^{-i\\Delta E t},
    \\qquad \\Delta E = E_B - E_A,

(global phase dropped) so its density oscillates with the period
:math:`2\\pi / \\Delta E`.

Sampling proposes from the mixture :math:`w|\\psi_A|^2 + (1-w)|\\psi_B|^2`
(pick a constituent, then draw its radius by CDF inversion and its
direction by angular rejection) and accepts with

.. math::

    \\min\\left(1, \\frac{|\\Psi|^2}{2 (w|\\psi_A|^2 + (1-w)|\\psi_B|^2)}\\right).

Because :math:`|x + y|^2 \\le 2(|x|^2 + |y|^2)` the factor 2 makes the
mixture a true envelope, so the acceptance never saturates.

In amplitude mode every proposal is kept together with the two
constituent amplitudes, so that a renderer can recompute the density
for any `t` without resampling (`amplitude_density`).

Main contents
-------------
- `OrbitalComponent` :
    One constituent: radial table, `(l, m)` and optionally the exact
    hydrogenic quantum numbers.
- `generate_superposition_samples` :
    Density or amplitude mode sampling.
- `amplitude_density` :
    :math:`|\\psi_1 + \\psi_2 e^{-i\\Delta E t}|^2` from stored amplitudes.
- `hydrogenic_delta_e`, `tabulated_delta_e`, `is_degenerate` :
    Energy splittings.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .hydrogen import (
    AngularBasis,
    QuantumNumbers,
    angular_part,
    hydrogenic_energy,
    radial_wavefunction,
)
from .radial import (
    HYDROGENIC_GRID_STEPS,
    RadialKind,
    TabulatedOrbital,
    build_radial_cdf,
    build_radial_grid,
    max_angular_prob,
    radial_from_table,
    sample_angles,
    sample_r,
)
from .utils import orbital_label, to_points

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_FACTOR = 200
DEGENERACY_EPSILON = 1e-6
MIN_BATCH = 1024


@dataclass(frozen=True, eq=False)
class OrbitalComponent:
    """One constituent of a superposition.

    Args:
        r (np.ndarray): Strictly ascending radial grid (a₀).
        value (np.ndarray): Radial function on the grid.
        l (int): Azimuthal quantum number.
        m (int): Magnetic quantum number.
        kind (RadialKind): Meaning of `value`.
        qn (QuantumNumbers, optional): Exact hydrogenic state; when set
            the closed form :math:`R_{nl}` is used for point evaluation
            and the table only drives the radial proposal.
        label (str): Human readable label.
    """

    r: NDArray
    value: NDArray
    l: int  # noqa: E741
    m: int
    kind: RadialKind = RadialKind.R
    qn: Optional[QuantumNumbers] = None
    label: str = field(default="")

    def __post_init__(self):
        object.__setattr__(self, "r", np.asarray(self.r, dtype=float))
        object.__setattr__(self, "value", np.asarray(self.value, dtype=float))
        if self.r.shape != self.value.shape:
            raise ValueError("Grid and values must have equal length.")
        if abs(self.m) > self.l:
            raise ValueError(f"|m| = {abs(self.m)} exceeds l = {self.l}.")

    @classmethod
    def hydrogenic(
        cls,
        qn: QuantumNumbers,
        max_radius: float,
        steps: int = HYDROGENIC_GRID_STEPS,
    ) -> "OrbitalComponent":
        """Component for an analytic hydrogenic state.

        >>> OrbitalComponent.hydrogenic(QuantumNumbers(2, 1, 1), 20.0).label
        '2p'
        """
        r = build_radial_grid(max_radius, steps)
        return cls(
            r,
            radial_wavefunction(r, qn.n, qn.l),
            qn.l,
            qn.m,
            RadialKind.R,
            qn,
            orbital_label(qn.n, qn.l),
        )

    @classmethod
    def tabulated(cls, orbital: TabulatedOrbital, m: int = 0) -> "OrbitalComponent":
        """Component for a tabulated orbital; `m` is clamped to `[-l, l]`."""
        m = max(-orbital.l, min(orbital.l, m))
        return cls(
            orbital.r, orbital.value, orbital.l, m, orbital.kind, label=orbital.label
        )

    def radial(self, r: ArrayLike) -> NDArray:
        """Radial wavefunction :math:`R(r)` at `r`."""
        r = np.asarray(r, dtype=float)
        if self.qn is not None:
            return radial_wavefunction(r, self.qn.n, self.qn.l)
        return radial_from_table(r, self.r, self.value, self.kind)

    def psi(
        self,
        r: ArrayLike,
        theta: ArrayLike,
        phi: ArrayLike,
        basis: AngularBasis = AngularBasis.COMPLEX,
    ) -> NDArray:
        """Complex wavefunction :math:`R(r) Y(\\theta, \\phi)`."""
        y_re, y_im = angular_part(theta, phi, self.l, self.m, basis)
        return self.radial(r) * (y_re + 1j * y_im)


@dataclass
class SuperpositionSamples:
    """Output of `generate_superposition_samples`.

    `psi1` and `psi2` hold `(re, im)` rows aligned with `samples` in
    amplitude mode and are `None` in density mode.  `psi2` is the
    un-phased amplitude :math:`\\sqrt{1-w}\\,\\psi_B`.  `signs` is filled
    by callers that reconstruct the sign of the superposition.
    """

    samples: NDArray
    psi1: Optional[NDArray] = None
    psi2: Optional[NDArray] = None
    signs: Optional[NDArray] = None

    def __len__(self):
        return len(self.samples)


def hydrogenic_delta_e(
    qa: QuantumNumbers, qb: QuantumNumbers, Z: float = 1.0
) -> float:
    """Energy splitting :math:`E_B - E_A` of two hydrogenic states (Hartree).

    >>> hydrogenic_delta_e(QuantumNumbers(1, 0, 0), QuantumNumbers(2, 1, 0))
    0.375
    """
    return hydrogenic_energy(qb.n, Z) - hydrogenic_energy(qa.n, Z)


def tabulated_delta_e(element, a: TabulatedOrbital, b: TabulatedOrbital) -> float:
    """Energy splitting from an element's eigenvalue table.

    Returns 0 when either eigenvalue is missing (static phase).
    """
    e_a = element.eigenvalues.get((a.n, a.l))
    e_b = element.eigenvalues.get((b.n, b.l))
    if e_a is None or e_b is None:
        return 0.0
    return float(e_b - e_a)


def is_degenerate(delta_e: float, eps: float = DEGENERACY_EPSILON) -> bool:
    """Whether the superposition density is time invariant."""
    return abs(delta_e) < eps


def amplitude_density(
    psi1: ArrayLike, psi2: ArrayLike, delta_e: float, time: float
) -> NDArray:
    """Density :math:`|\\psi_1 + \\psi_2 e^{-i\\Delta E t}|^2`.

    Args:
            psi1 (np.ndarray): `(N, 2)` amplitudes of the first state.
            psi2 (np.ndarray): `(N, 2)` un-phased amplitudes of the second.
            delta_e (float): Energy splitting (Hartree).
            time (float): Time (atomic units).

    Returns:
            np.ndarray: `(N,)` densities.

    >>> amplitude_density([[1.0, 0.0]], [[1.0, 0.0]], 1.0, 0.0)
    array([4.])
    """
    psi1 = np.asarray(psi1, dtype=float).reshape(-1, 2)
    psi2 = np.asarray(psi2, dtype=float).reshape(-1, 2)
    total = psi1[:, 0] + 1j * psi1[:, 1]
    total = total + (psi2[:, 0] + 1j * psi2[:, 1]) * np.exp(-1j * delta_e * time)
    return np.abs(total) ** 2


def _as_pairs(psi: NDArray) -> NDArray:
    return np.column_stack([psi.real, psi.imag]).astype(np.float32).reshape(-1, 2)


def _propose(a, b, cdfs, envelopes, mix, size, rng, basis):
    """Draw `size` proposals from the two-component mixture."""
    r = np.zeros(size)
    theta = np.zeros(size)
    phi = np.zeros(size)
    ok = np.zeros(size, dtype=bool)
    pick_a = rng.random(size) < mix
    for component, cdf, max_ang, mask in (
        (a, cdfs[0], envelopes[0], pick_a),
        (b, cdfs[1], envelopes[1], ~pick_a),
    ):
        count = int(np.count_nonzero(mask))
        if count == 0:
            continue
        r[mask] = sample_r(cdf, component.r, rng, count)
        th, ph, done = sample_angles(
            component.l, component.m, count, rng, basis, max_ang
        )
        theta[mask] = th
        phi[mask] = ph
        ok[mask] = done
    return r[ok], theta[ok], phi[ok]


def generate_superposition_samples(
    a: OrbitalComponent,
    b: OrbitalComponent,
    mix: float,
    time: float,
    num_samples: int,
    max_radius: float,
    delta_e: float,
    with_psi: bool = False,
    rng: Optional[np.random.Generator] = None,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> SuperpositionSamples:
    """Sample the density of a time evolved two-state superposition.

    Args:
            a (OrbitalComponent): First constituent.
            b (OrbitalComponent): Second constituent.
            mix (float): Weight `w` of `a`, strictly between 0 and 1.
            time (float): Time (atomic units).
            num_samples (int): Number of points requested.
            max_radius (float): Truncation radius of both radial tables.
            delta_e (float): Energy splitting :math:`E_B - E_A` (Hartree).
            with_psi (bool): Amplitude mode; keep every proposal and
                return `psi1`/`psi2`.
            rng (np.random.Generator, optional): Source of randomness.
            basis (AngularBasis): Angular basis of both constituents.

    Returns:
            SuperpositionSamples: At most `num_samples` points; empty if
            either constituent has no density inside `max_radius`.
    """
    if not 0.0 < mix < 1.0:
        raise ValueError("mix should be strictly between 0 and 1.")
    if num_samples < 0:
        raise ValueError("num_samples should not be negative.")
    rng = np.random.default_rng() if rng is None else rng

    empty = SuperpositionSamples(
        np.empty((0, 3), dtype=np.float32),
        np.empty((0, 2), dtype=np.float32) if with_psi else None,
        np.empty((0, 2), dtype=np.float32) if with_psi else None,
    )
    cdfs = (
        build_radial_cdf(a.r, a.value, max_radius, a.kind),
        build_radial_cdf(b.r, b.value, max_radius, b.kind),
    )
    if cdfs[0].size == 0 or cdfs[1].size == 0:
        logger.debug("Superposition constituent without density; no samples.")
        return empty
    envelopes = (
        max_angular_prob(a.l, a.m, basis),
        max_angular_prob(b.l, b.m, basis),
    )

    amp_a = np.sqrt(mix)
    amp_b = np.sqrt(1.0 - mix)
    phase = np.exp(-1j * delta_e * time)

    max_attempts = num_samples * MAX_ATTEMPTS_FACTOR
    attempts = 0
    accepted = 0
    points, psi1, psi2 = [], [], []
    while accepted < num_samples and attempts < max_attempts:
        missing = num_samples - accepted
        size = missing if with_psi else max(2 * missing, MIN_BATCH)
        size = min(size, max_attempts - attempts)
        attempts += size

        r, theta, phi = _propose(a, b, cdfs, envelopes, mix, size, rng, basis)
        psi_a = amp_a * a.psi(r, theta, phi, basis)
        psi_b = amp_b * b.psi(r, theta, phi, basis)
        mixture = np.abs(psi_a) ** 2 + np.abs(psi_b) ** 2
        keep = mixture > 0.0
        if not with_psi:
            density = np.abs(psi_a + psi_b * phase) ** 2
            safe = np.where(keep, mixture, 1.0)
            accept = np.minimum(1.0, density / (2.0 * safe))
            keep &= rng.random(len(r)) < accept

        points.append(to_points(r[keep], theta[keep], phi[keep]))
        if with_psi:
            psi1.append(_as_pairs(psi_a[keep]))
            psi2.append(_as_pairs(psi_b[keep]))
        accepted += int(np.count_nonzero(keep))

    if not points:
        return empty
    result = SuperpositionSamples(np.concatenate(points)[:num_samples])
    if with_psi:
        result.psi1 = np.concatenate(psi1)[:num_samples]
        result.psi2 = np.concatenate(psi2)[:num_samples]
    if len(result) < num_samples:
        logger.warning(
            "Superposition attempt budget exhausted: %d of %d samples.",
            len(result),
            num_samples,
        )
    return result


def component_pair(
    qa: QuantumNumbers,
    qb: QuantumNumbers,
    max_radius: float,
    steps: int = HYDROGENIC_GRID_STEPS,
) -> Tuple[OrbitalComponent, OrbitalComponent]:
    """Hydrogenic components of both states on a shared grid."""
    return (
        OrbitalComponent.hydrogenic(qa, max_radius, steps),
        OrbitalComponent.hydrogenic(qb, max_radius, steps),
    )
