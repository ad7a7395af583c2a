#!/usr/bin/env python
"""
Sampling of orbitals with tabulated radial functions.

Used when the radial part comes from external data (pseudopotential or
LDA radial functions) instead of the closed form :math:`R_{nl}`.  The
radius is drawn exactly by inverting the radial cumulative
distribution (importance sampling, no wasted proposals); the direction
is drawn by rejection against :math:`|Y|^2`.

Main contents
-------------
- `RadialKind` :
    Whether the table holds :math:`R(r)` or the reduced :math:`\\chi(r) = rR(r)`.
- `TabulatedOrbital` :
    Radial grid, aligned values and labels of one orbital.
- `build_radial_cdf`, `sample_r`, `interp_radial`, `radial_from_table` :
    CDF construction, inversion and interpolation on a grid.
- `max_angular_prob`, `sample_angles` :
    Angular envelope and bounded angular rejection sampling.
- `generate_orbital_samples_from_radial` :
    Single orbital with an angular shape.
- `generate_isotropic_density_samples`, `generate_weighted_orbital_samples` :
    Occupation weighted mixtures of several orbitals.
- `build_radial_grid`, `tabulate_hydrogenic` :
    Discretise the analytic radial function onto a grid.

Conventions
-----------
- Radial grids are strictly ascending, in Bohr radii.
- The sampling weight is :math:`r^2 f(r)^2` for `RadialKind.R` and
  :math:`f(r)^2` for `RadialKind.CHI`.
- An empty CDF means "no usable density"; samplers then return no points.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.integrate import cumulative_trapezoid

from .hydrogen import (
    AngularBasis,
    QuantumNumbers,
    angular_wavefunction_basis,
    azimuthal_extrema,
    radial_wavefunction,
)
from .utils import concat_points, orbital_label, random_theta_phi, to_points

logger = logging.getLogger(__name__)

ANGULAR_THETA_STEPS = 720
ANGULAR_MAX_TRIES = 256
"""Angular proposals per radius before the radius is abandoned."""
MAX_ATTEMPTS_FACTOR = 100
MIN_ANGULAR_ENVELOPE = 1e-8
HYDROGENIC_GRID_STEPS = 800


class RadialKind(enum.Enum):
    """What a radial table stores."""

    R = "R"
    """The radial wavefunction :math:`R(r)`."""
    CHI = "chi"
    """The reduced radial function :math:`\\chi(r) = r R(r)`."""


@dataclass(frozen=True, eq=False)
class TabulatedOrbital:
    """An orbital whose radial part is given on a grid.

    Args:
        n (int): Principal quantum number label.
        l (int): Azimuthal quantum number.
        r (np.ndarray): Strictly ascending radial grid (a₀).
        value (np.ndarray): Radial function on the grid.
        kind (RadialKind): Meaning of `value`.
        weight (float, optional): Occupation used when mixing orbitals.
        label (str): Human readable label, e.g. `"3d"`.

    Examples:
        >>> orb = TabulatedOrbital(1, 0, [0.0, 1.0, 2.0], [0.0, 1.0, 0.0])
        >>> orb.label
        '1s'
        >>> TabulatedOrbital(1, 0, [0.0, 2.0, 1.0], [0.0, 1.0, 0.0])
        Traceback (most recent call last):
        ...
        ValueError: Radial grid of 1s is not strictly ascending.
    """

    n: int
    l: int  # noqa: E741
    r: NDArray
    value: NDArray
    kind: RadialKind = RadialKind.R
    weight: Optional[float] = None
    label: str = field(default="")

    def __post_init__(self):
        r = np.asarray(self.r, dtype=float)
        value = np.asarray(self.value, dtype=float)
        object.__setattr__(self, "r", r)
        object.__setattr__(self, "value", value)
        if not self.label:
            object.__setattr__(self, "label", orbital_label(self.n, self.l))
        if r.ndim != 1 or r.shape != value.shape:
            raise ValueError(
                f"Grid and values of {self.label} must be 1D arrays of equal length."
            )
        if len(r) < 2:
            raise ValueError(f"Grid of {self.label} needs at least 2 points.")
        if np.any(np.diff(r) <= 0):
            raise ValueError(f"Radial grid of {self.label} is not strictly ascending.")

    @property
    def r_max(self) -> float:
        """Largest radius of the grid."""
        return float(self.r[-1])

    @property
    def effective_weight(self) -> float:
        """Mixing weight, 1 when no occupation is given."""
        return 1.0 if self.weight is None else float(self.weight)

    def radial(self, r: ArrayLike) -> NDArray:
        """Radial wavefunction :math:`R(r)` interpolated at `r`.

        See `radial_from_table` for reduced (`CHI`) tables.
        """
        return radial_from_table(r, self.r, self.value, self.kind)


def build_radial_grid(max_radius: float, steps: int) -> NDArray:
    """Uniform grid on `[0, max_radius]` with at least two points."""
    return np.linspace(0.0, max_radius, max(steps, 2))


def tabulate_hydrogenic(
    qn: QuantumNumbers, max_radius: float, steps: int = HYDROGENIC_GRID_STEPS
) -> TabulatedOrbital:
    """Discretise :math:`R_{nl}` on a uniform grid.

    >>> orb = tabulate_hydrogenic(QuantumNumbers(2, 1, 0), 20.0, steps=5)
    >>> orb.r
    array([ 0.,  5., 10., 15., 20.])
    """
    r = build_radial_grid(max_radius, steps)
    return TabulatedOrbital(qn.n, qn.l, r, radial_wavefunction(r, qn.n, qn.l))


def interp_radial(r: ArrayLike, grid: ArrayLike, values: ArrayLike) -> NDArray:
    """Linear interpolation of tabulated values.

    Values outside the grid are clamped to the first/last value (no
    extrapolation); an empty table yields zeros.

    >>> interp_radial([-1.0, 0.5, 5.0], [0.0, 1.0, 2.0], [3.0, 5.0, 7.0])
    array([3., 4., 7.])
    """
    r = np.asarray(r, dtype=float)
    grid = np.asarray(grid, dtype=float)
    values = np.asarray(values, dtype=float)
    if grid.size == 0 or values.size == 0:
        return np.zeros_like(r)
    return np.interp(r, grid, values)


def radial_from_table(
    r: ArrayLike,
    grid: ArrayLike,
    values: ArrayLike,
    kind: RadialKind = RadialKind.R,
) -> NDArray:
    """Radial wavefunction :math:`R(r)` from a table of `kind`.

    Reduced (`CHI`) tables are divided by `r`; at the origin, where that
    division is undefined, the value at the first positive grid radius
    is used instead.

    >>> chi = [0.0, 2.0, 3.0]
    >>> radial_from_table([0.0, 2.0], [0.0, 1.0, 2.0], chi, RadialKind.CHI)
    array([2. , 1.5])
    """
    r = np.asarray(r, dtype=float)
    grid = np.asarray(grid, dtype=float)
    values = np.asarray(values, dtype=float)
    result = interp_radial(r, grid, values)
    if kind != RadialKind.CHI or grid.size == 0:
        return result
    positive = np.flatnonzero(grid > 0.0)
    at_origin = values[positive[0]] / grid[positive[0]] if positive.size else 0.0
    safe_r = np.where(r > 0.0, r, 1.0)
    return np.where(r > 0.0, result / safe_r, at_origin)


def build_radial_cdf(
    r: ArrayLike,
    value: ArrayLike,
    max_radius: float,
    kind: RadialKind = RadialKind.R,
) -> NDArray:
    """Normalised cumulative radial probability on the grid.

    Trapezoidal integration of the sampling weight over the grid
    intervals; intervals ending beyond `max_radius` carry no mass.

    Args:
            r (np.ndarray): Ascending radial grid.
            value (np.ndarray): Radial function on the grid.
            max_radius (float): Truncation radius.
            kind (RadialKind): Meaning of `value`.

    Returns:
            np.ndarray: Non-decreasing CDF ending at 1, or an empty array
            when the total mass is zero.

    >>> build_radial_cdf([0.0, 1.0, 2.0], [0.0, 1.0, 0.0], 10.0)
    array([0. , 0.5, 1. ])
    """
    r = np.asarray(r, dtype=float)
    value = np.asarray(value, dtype=float)
    if r.size < 2 or r.shape != value.shape:
        return np.empty(0)

    weight = value * value
    if kind == RadialKind.R:
        weight = weight * r * r

    cdf = cumulative_trapezoid(weight, r, initial=0.0)
    inside = np.count_nonzero(r <= max_radius)
    if inside == 0:
        return np.empty(0)
    cdf[inside:] = cdf[inside - 1]

    total = cdf[-1]
    if not total > 0.0:
        return np.empty(0)
    return cdf / total


def sample_r(
    cdf: NDArray,
    r: NDArray,
    rng: np.random.Generator,
    size: Optional[int] = None,
) -> NDArray:
    """Draw radii by inverting a radial CDF.

    A uniform variate is located in the CDF by binary search and the
    radius is linearly interpolated inside the bracketing interval.

    Args:
            cdf (np.ndarray): Output of `build_radial_cdf` (non-empty).
            r (np.ndarray): The grid the CDF was built on.
            rng (np.random.Generator): Source of randomness.
            size (int, optional): Number of radii; `None` for a scalar.

    Returns:
            np.ndarray: Sampled radii.
    """
    r = np.asarray(r, dtype=float)
    u = rng.random(size)
    idx = np.minimum(np.searchsorted(cdf, u), len(cdf) - 1)
    lo = np.maximum(idx - 1, 0)
    c0, c1 = cdf[lo], cdf[idx]
    r0, r1 = r[lo], r[idx]
    span = np.where(c1 > c0, c1 - c0, 1.0)
    t = np.where(c1 > c0, (u - c0) / span, 0.0)
    return np.where(idx == 0, r[0], r0 + (r1 - r0) * t)


def max_angular_prob(
    l: int,  # noqa: E741
    m: int,
    basis: AngularBasis = AngularBasis.COMPLEX,
    theta_steps: int = ANGULAR_THETA_STEPS,
) -> float:
    """Envelope of the angular density :math:`|Y|^2`.

    Scans `θ` (cell midpoints) and, for the real basis, the azimuthal
    extrema; clamped away from zero.

    >>> round(max_angular_prob(0, 0) * 4 * np.pi, 6)
    1.0
    """
    theta = (np.arange(theta_steps) + 0.5) / theta_steps * np.pi
    phi = azimuthal_extrema(m, basis)
    TH, PH = np.meshgrid(theta, phi, indexing="ij")
    ang = angular_wavefunction_basis(TH, PH, l, m, basis)
    return max(float(np.max(ang * ang)), MIN_ANGULAR_ENVELOPE)


def sample_angles(
    l: int,  # noqa: E741
    m: int,
    size: int,
    rng: np.random.Generator,
    basis: AngularBasis = AngularBasis.COMPLEX,
    max_ang: Optional[float] = None,
    max_tries: int = ANGULAR_MAX_TRIES,
) -> Tuple[NDArray, NDArray, NDArray]:
    """Rejection sample `size` directions from :math:`|Y|^2`.

    Every slot gets at most `max_tries` proposals.  Slots that never
    accept are reported through the returned mask so that the caller
    can draw a new radius instead of stalling.

    Returns:
            (np.ndarray, np.ndarray, np.ndarray): `theta`, `phi` and the
            boolean mask of slots that accepted a direction.
    """
    if max_ang is None:
        max_ang = max_angular_prob(l, m, basis)
    theta = np.zeros(size)
    phi = np.zeros(size)
    done = np.zeros(size, dtype=bool)
    for _ in range(max_tries):
        pending = np.flatnonzero(~done)
        if pending.size == 0:
            break
        th = np.arccos(rng.uniform(-1.0, 1.0, pending.size))
        ph = rng.uniform(0.0, 2.0 * np.pi, pending.size)
        ang = angular_wavefunction_basis(th, ph, l, m, basis)
        ok = rng.random(pending.size) < ang * ang / max_ang
        idx = pending[ok]
        theta[idx] = th[ok]
        phi[idx] = ph[ok]
        done[idx] = True
    return theta, phi, done


def generate_orbital_samples_from_radial(
    r: ArrayLike,
    value: ArrayLike,
    l: int,  # noqa: E741
    m: int,
    num_samples: int,
    max_radius: float,
    kind: RadialKind = RadialKind.R,
    basis: AngularBasis = AngularBasis.COMPLEX,
    rng: Optional[np.random.Generator] = None,
) -> NDArray:
    """Sample an orbital given its tabulated radial function.

    Radii come from CDF inversion, directions from angular rejection
    sampling.  At most `num_samples * MAX_ATTEMPTS_FACTOR` radii are
    drawn.

    Args:
            r (np.ndarray): Ascending radial grid.
            value (np.ndarray): Radial function on the grid.
            l (int): Azimuthal quantum number.
            m (int): Magnetic quantum number.
            num_samples (int): Number of points requested.
            max_radius (float): Truncation radius.
            kind (RadialKind): Meaning of `value`.
            basis (AngularBasis): Angular basis of the orbital shape.
            rng (np.random.Generator, optional): Source of randomness.

    Returns:
            np.ndarray: Points of shape `(N, 3)`, `N <= num_samples`;
            empty when the table carries no density.
    """
    if num_samples < 0:
        raise ValueError("num_samples should not be negative.")
    rng = np.random.default_rng() if rng is None else rng
    r = np.asarray(r, dtype=float)

    cdf = build_radial_cdf(r, value, max_radius, kind)
    if cdf.size == 0:
        logger.debug("No radial density below r=%g; returning no samples.", max_radius)
        return np.empty((0, 3), dtype=np.float32)
    max_ang = max_angular_prob(l, m, basis)

    max_attempts = num_samples * MAX_ATTEMPTS_FACTOR
    attempts = 0
    accepted = 0
    parts = []
    while accepted < num_samples and attempts < max_attempts:
        size = min(num_samples - accepted, max_attempts - attempts)
        attempts += size
        radii = sample_r(cdf, r, rng, size)
        theta, phi, ok = sample_angles(l, m, size, rng, basis, max_ang)
        parts.append(to_points(radii[ok], theta[ok], phi[ok]))
        accepted += int(np.count_nonzero(ok))

    samples = concat_points(parts)[:num_samples]
    if len(samples) < num_samples:
        logger.warning(
            "Attempt budget exhausted (l=%d, m=%d): %d of %d samples.",
            l,
            m,
            len(samples),
            num_samples,
        )
    return samples


def sample_tabulated_orbital(
    orbital: TabulatedOrbital,
    m: int,
    num_samples: int,
    max_radius: float,
    basis: AngularBasis = AngularBasis.COMPLEX,
    rng: Optional[np.random.Generator] = None,
) -> NDArray:
    """`generate_orbital_samples_from_radial` for a `TabulatedOrbital`."""
    return generate_orbital_samples_from_radial(
        orbital.r,
        orbital.value,
        orbital.l,
        m,
        num_samples,
        max_radius,
        orbital.kind,
        basis,
        rng,
    )


def partition_counts(weights: Sequence[float], num_samples: int) -> list:
    """Split `num_samples` proportionally to `weights`.

    Counts are rounded; the last entry absorbs the remainder so the
    total always equals `num_samples`.

    >>> partition_counts([2.0, 1.0, 1.0], 10)
    [5, 3, 2]
    """
    total = float(sum(weights))
    counts = []
    remaining = num_samples
    for i, weight in enumerate(weights):
        if i == len(weights) - 1:
            count = remaining
        else:
            count = min(int(np.floor(num_samples * weight / total + 0.5)), remaining)
        counts.append(count)
        remaining -= count
    return counts


def _usable(orbitals, max_radius, kind):
    usable = []
    for index, orbital in enumerate(orbitals):
        if orbital.effective_weight <= 0.0:
            continue
        cdf = build_radial_cdf(
            orbital.r, orbital.value, max_radius, kind or orbital.kind
        )
        if cdf.size == 0:
            continue
        usable.append((index, orbital, cdf))
    return usable


def generate_isotropic_density_samples(
    orbitals: Sequence[TabulatedOrbital],
    num_samples: int,
    max_radius: float,
    kind: Optional[RadialKind] = None,
    rng: Optional[np.random.Generator] = None,
) -> NDArray:
    """Spherically averaged density of several occupied orbitals.

    The count is split by occupation weight (see `partition_counts`),
    each orbital's radius is drawn from its own CDF and the direction is
    uniform on the sphere.  Orbitals with non-positive weight or no
    density are skipped.

    Args:
            orbitals (list[TabulatedOrbital]): The occupied orbitals.
            num_samples (int): Total number of points.
            max_radius (float): Truncation radius.
            kind (RadialKind, optional): Override each orbital's `kind`.
            rng (np.random.Generator, optional): Source of randomness.

    Returns:
            np.ndarray: Points of shape `(num_samples, 3)`, or `(0, 3)`
            when no orbital carries density.
    """
    rng = np.random.default_rng() if rng is None else rng
    usable = _usable(orbitals, max_radius, kind)
    if not usable:
        return np.empty((0, 3), dtype=np.float32)

    weights = [orbital.effective_weight for _, orbital, _ in usable]
    parts = []
    for (_, orbital, cdf), count in zip(
        usable, partition_counts(weights, num_samples)
    ):
        if count == 0:
            continue
        radii = sample_r(cdf, orbital.r, rng, count)
        theta, phi = random_theta_phi(count, rng)
        parts.append(to_points(radii, theta, phi))
    return concat_points(parts)


def generate_weighted_orbital_samples(
    orbitals: Sequence[TabulatedOrbital],
    num_samples: int,
    max_radius: float,
    kind: Optional[RadialKind] = None,
    basis: AngularBasis = AngularBasis.COMPLEX,
    ms: Optional[Sequence[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> NDArray:
    """Occupation weighted mixture of shaped orbitals.

    Like `generate_isotropic_density_samples` but every channel keeps
    its angular shape (`m` from `ms`, default 0) and is sampled with
    `generate_orbital_samples_from_radial`.
    """
    rng = np.random.default_rng() if rng is None else rng
    ms = [0] * len(orbitals) if ms is None else list(ms)
    if len(ms) != len(orbitals):
        raise ValueError("`ms` must have one entry per orbital.")

    usable = _usable(orbitals, max_radius, kind)
    if not usable:
        return np.empty((0, 3), dtype=np.float32)

    weights = [orbital.effective_weight for _, orbital, _ in usable]
    parts = []
    for (index, orbital, _), count in zip(
        usable, partition_counts(weights, num_samples)
    ):
        if count == 0:
            continue
        parts.append(
            generate_orbital_samples_from_radial(
                orbital.r,
                orbital.value,
                orbital.l,
                ms[index],
                count,
                max_radius,
                kind or orbital.kind,
                basis,
                rng,
            )
        )
    return concat_points(parts)
