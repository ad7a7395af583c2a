#!/usr/bin/env python
"""
Hydrogenic wavefunctions.

Analytic eigenfunctions of the one-electron Coulomb problem,
:math:`\\psi_{nlm}(r, \\theta, \\phi) = R_{nl}(r) Y_{lm}(\\theta, \\phi)`,
in atomic units (a₀ = 1).  The nuclear charge `Z` is not part of the
wavefunction: callers scale coordinates by `1/Z` (and energies by `Z²`).

Main contents
-------------
- `QuantumNumbers` :
    Validated `(n, l, m)` triple.
- `AngularBasis` :
    Complex (physicist's :math:`Y_{lm}`) or real (chemist's lobes) basis.
- `radial_wavefunction`, `spherical_harmonic`, `real_spherical_harmonic` :
    The building blocks of ψ.
- `angular_wavefunction`, `angular_wavefunction_basis` :
    Unsigned angular sampling weights.
- `wavefunction`, `probability_density` :
    Full ψ and :math:`|\\psi|^2`.
- `hydrogenic_energy` :
    Bohr energy levels.

All functions accept scalars or `numpy` arrays for the coordinates.

Examples:
    >>> QuantumNumbers.new(2, 1, 2) is None
    True
    >>> QuantumNumbers.new(2, 1, -1)
    QuantumNumbers(n=2, l=1, m=-1)
    >>> round(float(radial_wavefunction(0.0, 1, 0)), 6)
    2.0
    >>> hydrogenic_energy(2)
    -0.125
"""

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .special import associated_legendre, factorial, laguerre


class AngularBasis(enum.Enum):
    """Angular basis used for the orbital shape."""

    COMPLEX = "complex"
    REAL = "real"

    @classmethod
    def from_query(cls, value: Optional[str]) -> "AngularBasis":
        """Parse a user supplied basis name.

        `"real"` (any case) selects `REAL`, anything else (including
        `None`) selects `COMPLEX`.

        >>> AngularBasis.from_query("Real")
        <AngularBasis.REAL: 'real'>
        >>> AngularBasis.from_query(None)
        <AngularBasis.COMPLEX: 'complex'>
        """
        if value is not None and value.lower() == "real":
            return cls.REAL
        return cls.COMPLEX


@dataclass(frozen=True)
class QuantumNumbers:
    """Principal, azimuthal and magnetic quantum numbers.

    Invariant: `n >= 1`, `0 <= l <= n - 1` and `|m| <= l`.  The
    constructor raises `ValueError` on violation, `QuantumNumbers.new`
    returns `None` instead.
    """

    n: int
    l: int  # noqa: E741
    m: int

    def __post_init__(self):
        if not self.is_valid(self.n, self.l, self.m):
            raise ValueError(
                f"Invalid quantum numbers (n={self.n}, l={self.l}, m={self.m})."
            )

    @staticmethod
    def is_valid(n: int, l: int, m: int) -> bool:  # noqa: E741
        """Check the invariant without constructing."""
        return n >= 1 and 0 <= l < n and abs(m) <= l

    @classmethod
    def new(cls, n: int, l: int, m: int) -> Optional["QuantumNumbers"]:  # noqa: E741
        """Validating factory.

        Returns:
            QuantumNumbers or None: `None` if the numbers are not a
            valid hydrogenic state.
        """
        if not cls.is_valid(n, l, m):
            return None
        return cls(n, l, m)


def radial_wavefunction(r: ArrayLike, n: int, l: int) -> NDArray:  # noqa: E741
    """Radial wavefunction :math:`R_{nl}(r)`.

    .. math::

        R_{nl}(r) = \\left(\\frac{2}{n}\\right)^{3/2}
        \\sqrt{\\frac{(n-l-1)!}{2n(n+l)!}}
        \\rho^l e^{-\\rho/2} L_{n-l-1}^{2l+1}(\\rho),
        \\qquad \\rho = 2r/n.

    Args:
            r (float or np.ndarray): Distance(s) from the nucleus (a₀).
            n (int): Principal quantum number.
            l (int): Azimuthal quantum number.

    Returns:
            np.ndarray: :math:`R_{nl}(r)`, zero where `r < 0`.
    """
    r = np.asarray(r, dtype=float)
    rho = 2.0 * np.clip(r, 0.0, None) / n
    norm = (2.0 / n) ** 1.5 * np.sqrt(
        factorial(n - l - 1) / (2.0 * n * factorial(n + l))
    )
    poly = laguerre(rho, n - l - 1, 2 * l + 1)
    result = norm * rho**l * np.exp(-rho / 2.0) * poly
    return np.where(r < 0.0, 0.0, result)


def spherical_harmonic(
    theta: ArrayLike, phi: ArrayLike, l: int, m: int  # noqa: E741
) -> Tuple[NDArray, NDArray]:
    """Complex spherical harmonic :math:`Y_{lm}(\\theta, \\phi)`.

    The Condon-Shortley sign :math:`(-1)^{|m|}` is applied on top of
    `special.associated_legendre`, so that
    :math:`Y_{11} \\propto +\\sin\\theta\\,e^{i\\phi}` and the real `p_x`
    lobe is positive along `+x`. Negative `m` is the conjugate,
    :math:`Y_{l,-m} = Y_{lm}^*`.

    Args:
            theta (float or np.ndarray): Polar angle(s) in [0, π].
            phi (float or np.ndarray): Azimuthal angle(s).
            l (int): Degree.
            m (int): Order, `|m| <= l`.

    Returns:
            (np.ndarray, np.ndarray): Real and imaginary parts.
    """
    theta = np.asarray(theta, dtype=float)
    phi = np.asarray(phi, dtype=float)
    m_abs = abs(m)

    legendre = associated_legendre(np.cos(theta), l, m_abs)
    norm = np.sqrt(
        (2 * l + 1) / (4 * np.pi) * factorial(l - m_abs) / factorial(l + m_abs)
    )
    base_re = norm * legendre * np.cos(m_abs * phi)
    base_im = norm * legendre * np.sin(m_abs * phi)

    sign = -1.0 if m_abs % 2 else 1.0
    if m >= 0:
        return sign * base_re, sign * base_im
    return sign * base_re, -sign * base_im


def real_spherical_harmonic(
    theta: ArrayLike, phi: ArrayLike, l: int, m: int  # noqa: E741
) -> NDArray:
    """Real (chemistry style) spherical harmonic.

    `m > 0` gives the cos-like combination :math:`\\sqrt{2}\\,\\mathrm{Re}\\,Y_{l|m|}`,
    `m < 0` the sin-like :math:`\\sqrt{2}\\,\\mathrm{Im}\\,Y_{l|m|}` and
    `m = 0` is :math:`Y_{l0}` itself.
    """
    if m == 0:
        return spherical_harmonic(theta, phi, l, 0)[0]
    re, im = spherical_harmonic(theta, phi, l, abs(m))
    if m > 0:
        return np.sqrt(2.0) * re
    return np.sqrt(2.0) * im


def angular_wavefunction(
    theta: ArrayLike, phi: ArrayLike, l: int, m: int  # noqa: E741
) -> NDArray:
    """Magnitude :math:`|Y_{lm}(\\theta, \\phi)|`."""
    re, im = spherical_harmonic(theta, phi, l, m)
    return np.sqrt(re * re + im * im)


def angular_wavefunction_basis(
    theta: ArrayLike,
    phi: ArrayLike,
    l: int,  # noqa: E741
    m: int,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> NDArray:
    """Unsigned angular weight in the selected basis."""
    if basis == AngularBasis.REAL:
        return np.abs(real_spherical_harmonic(theta, phi, l, m))
    return angular_wavefunction(theta, phi, l, m)


def azimuthal_extrema(m: int, basis: AngularBasis = AngularBasis.COMPLEX) -> NDArray:
    """Azimuthal angles on which an angular envelope scan must look.

    The complex basis is azimuthally symmetric in magnitude, so `φ = 0`
    suffices.  The real basis varies as `cos(|m|φ)` or `sin(|m|φ)`,
    whose extrema sit on multiples of `π / (2|m|)`.

    >>> azimuthal_extrema(1, AngularBasis.REAL) / np.pi
    array([0. , 0.5, 1. , 1.5])
    """
    if basis == AngularBasis.COMPLEX or m == 0:
        return np.zeros(1)
    m_abs = abs(m)
    return np.arange(4 * m_abs) * np.pi / (2 * m_abs)


def angular_part(
    theta: ArrayLike,
    phi: ArrayLike,
    l: int,  # noqa: E741
    m: int,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> Tuple[NDArray, NDArray]:
    """Signed angular factor as `(re, im)` in the selected basis.

    For the real basis the imaginary part is identically zero.
    """
    if basis == AngularBasis.REAL:
        re = real_spherical_harmonic(theta, phi, l, m)
        return re, np.zeros_like(re)
    return spherical_harmonic(theta, phi, l, m)


def wavefunction(
    r: ArrayLike,
    theta: ArrayLike,
    phi: ArrayLike,
    qn: QuantumNumbers,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> Tuple[NDArray, NDArray]:
    """Hydrogenic wavefunction :math:`\\psi_{nlm}` as `(re, im)`."""
    radial = radial_wavefunction(r, qn.n, qn.l)
    y_re, y_im = angular_part(theta, phi, qn.l, qn.m, basis)
    return radial * y_re, radial * y_im


def probability_density(
    r: ArrayLike,
    theta: ArrayLike,
    phi: ArrayLike,
    qn: QuantumNumbers,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> NDArray:
    """Probability density :math:`|\\psi_{nlm}(r, \\theta, \\phi)|^2`."""
    radial = radial_wavefunction(r, qn.n, qn.l)
    angular = angular_wavefunction_basis(theta, phi, qn.l, qn.m, basis)
    psi = radial * angular
    return psi * psi


def hydrogenic_energy(n: int, Z: float = 1.0) -> float:
    """Bohr energy level :math:`E_n = -Z^2 / (2 n^2)` in Hartree."""
    return -0.5 * Z * Z / (n * n)
