#!/usr/bin/env python
"""Closed-form hydrogenic estimates and sampling diagnostics.

All lengths in Bohr radii, energies in Hartree, times in atomic units.
The nuclear charge `Z` scales lengths by `1/Z`.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.integrate import quad
from scipy.optimize import minimize_scalar
from sklearn.metrics import r2_score

from .hydrogen import QuantumNumbers, radial_wavefunction
from .superposition import is_degenerate


def expectation_radius(n: int, l: int, Z: float = 1.0) -> float:  # noqa: E741
    """Expectation value :math:`\\langle r \\rangle` of a hydrogenic state.

    .. math:: \\langle r \\rangle = \\frac{3n^2 - l(l+1)}{2Z}

    >>> expectation_radius(1, 0)
    1.5
    >>> expectation_radius(2, 1)
    5.0
    """
    return (3 * n * n - l * (l + 1)) / (2.0 * Z)


def radial_probability(
    r: ArrayLike, n: int, l: int, Z: float = 1.0  # noqa: E741
) -> NDArray:
    """Radial probability density :math:`P(r) = r^2 |R_{nl}(r)|^2`.

    Normalised to one over :math:`[0, \\infty)` for any `Z`.
    """
    r = np.asarray(r, dtype=float)
    radial = radial_wavefunction(Z * r, n, l)
    return Z**3 * r * r * radial * radial


def most_probable_radius(n: int, l: int, Z: float = 1.0) -> float:  # noqa: E741
    """Position of the global maximum of :math:`P(r)`.

    Found by a grid scan refined with a bounded scalar minimisation.

    Args:
            n (int): Principal quantum number.
            l (int): Azimuthal quantum number.
            Z (float): Nuclear charge.

    Returns:
            float: Radius of the global maximum of :math:`P(r)` (a₀).

    >>> round(most_probable_radius(1, 0), 4)
    1.0
    >>> round(most_probable_radius(3, 2), 4)
    9.0
    """
    upper = 4.0 * n * n + 10.0
    r = np.linspace(0.0, upper, 4001)
    i = int(np.argmax(radial_probability(r, n, l)))
    lo = r[max(i - 1, 0)]
    hi = r[min(i + 1, len(r) - 1)]
    res = minimize_scalar(
        lambda x: -float(radial_probability(x, n, l)),
        bounds=(lo, hi),
        method="bounded",
        options={"xatol": 1e-10},
    )
    return float(res.x) / Z


def radial_probability_within(
    radius: float, n: int, l: int, Z: float = 1.0  # noqa: E741
) -> float:
    """Probability of finding the electron within `radius`.

    >>> round(radial_probability_within(20.0, 1, 0), 6)
    1.0
    """
    # Split at the most probable radius so quad sees the peak.
    peak = min(most_probable_radius(n, l, Z), radius)
    inner, _ = quad(radial_probability, 0.0, peak, args=(n, l, Z))
    outer, _ = quad(radial_probability, peak, radius, args=(n, l, Z), limit=200)
    return inner + outer


def radial_histogram(samples: ArrayLike, bins: int = 50, max_radius=None):
    """Normalised histogram of the sample radii.

    Args:
            samples (np.ndarray): `(N, 3)` Cartesian points.
            bins (int): Number of bins.
            max_radius (float, optional): Upper edge, defaults to the
                largest radius.

    Returns:
            (np.ndarray, np.ndarray): Bin centres and densities.
    """
    samples = np.asarray(samples, dtype=float).reshape(-1, 3)
    radii = np.linalg.norm(samples, axis=1)
    if max_radius is None:
        max_radius = float(radii.max()) if radii.size else 1.0
    density, edges = np.histogram(
        radii, bins=bins, range=(0.0, max_radius), density=True
    )
    return 0.5 * (edges[:-1] + edges[1:]), density


def radial_distribution_r2(
    samples: ArrayLike,
    qn: QuantumNumbers,
    max_radius: float,
    bins: int = 50,
    Z: float = 1.0,
) -> float:
    """Goodness of fit of sampled radii against the analytic :math:`P(r)`.

    The analytic density is renormalised to the ball of radius
    `max_radius` and compared with `radial_histogram` through the
    coefficient of determination.

    Returns:
            float: :math:`R^2`, 1 for a perfect match.
    """
    centres, density = radial_histogram(samples, bins, max_radius)
    expected = radial_probability(centres, qn.n, qn.l, Z)
    expected = expected / radial_probability_within(max_radius, qn.n, qn.l, Z)
    return float(r2_score(expected, density))


def oscillation_period(delta_e: float) -> float:
    """Period :math:`2\\pi / |\\Delta E|` of a superposition density.

    Infinite for degenerate states.

    >>> round(oscillation_period(0.375), 4)
    16.7552
    >>> oscillation_period(0.0)
    inf
    """
    if is_degenerate(delta_e):
        return float("inf")
    return 2.0 * np.pi / abs(delta_e)
