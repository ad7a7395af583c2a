#!/usr/bin/env python
"""
Point-wise reconstruction of ψ at sampled points.

Renderers colour samples by the sign or the phase of the wavefunction
and size them by its intensity; none of these are produced by the
samplers, so they are recomputed here from the Cartesian coordinates.

Conventions:

- :math:`r, \\theta, \\phi` follow `utils.cartesian_to_spherical`.
- Points with `r <= ORIGIN_EPSILON` get sign `+1` and phase 0.  ψ and
  the intensity are evaluated there like anywhere else, so `s` states
  keep their finite maximum at the nucleus.
- The sign is `+1` where :math:`\\mathrm{Re}\\,\\psi \\ge 0`, `-1`
  elsewhere, as `int8`.
- Phases lie in :math:`(-\\pi, \\pi]`.

Orbitals are given either as `QuantumNumbers` (exact hydrogenic ψ) or as
`superposition.OrbitalComponent` (tabulated radial part, reduced `CHI`
tables divided by `r`).

>>> points = [[0.0, 0.0, 1.0], [0.0, 0.0, -1.0], [0.0, 0.0, 0.0]]
>>> orbital_signs(points, QuantumNumbers(2, 1, 0))
array([ 1, -1,  1], dtype=int8)
"""

from typing import Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .hydrogen import AngularBasis, QuantumNumbers, wavefunction
from .superposition import OrbitalComponent
from .utils import ORIGIN_EPSILON, cartesian_to_spherical

Orbital = Union[QuantumNumbers, OrbitalComponent]


def _spherical(samples: ArrayLike):
    samples = np.asarray(samples, dtype=float).reshape(-1, 3)
    r, theta, phi = cartesian_to_spherical(
        samples[:, 0], samples[:, 1], samples[:, 2]
    )
    return r, theta, phi, r <= ORIGIN_EPSILON


def _psi(r, theta, phi, orbital, basis):
    if isinstance(orbital, QuantumNumbers):
        re, im = wavefunction(r, theta, phi, orbital, basis)
        return re + 1j * im
    return orbital.psi(r, theta, phi, basis)


def _signs(psi: NDArray, at_origin: NDArray) -> NDArray:
    signs = np.where(psi.real >= 0.0, 1, -1).astype(np.int8)
    signs[at_origin] = 1
    return signs


def _phases(psi: NDArray, at_origin: NDArray) -> NDArray:
    phases = np.angle(psi)
    phases = np.where(phases <= -np.pi, np.pi, phases)
    return np.where(at_origin, 0.0, phases)


def _intensities(psi: NDArray) -> NDArray:
    return np.abs(psi) ** 2


def orbital_psi(
    samples: ArrayLike,
    orbital: Orbital,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> Tuple[NDArray, NDArray]:
    """Wavefunction of a single orbital at `(N, 3)` points as `(re, im)`."""
    r, theta, phi, _ = _spherical(samples)
    psi = _psi(r, theta, phi, orbital, basis)
    return psi.real, psi.imag


def orbital_signs(
    samples: ArrayLike,
    orbital: Orbital,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> NDArray:
    """Sign of :math:`\\mathrm{Re}\\,\\psi` per point (`int8`, ±1)."""
    r, theta, phi, at_origin = _spherical(samples)
    return _signs(_psi(r, theta, phi, orbital, basis), at_origin)


def orbital_phases(
    samples: ArrayLike,
    orbital: Orbital,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> NDArray:
    """Phase :math:`\\arg\\psi` per point in :math:`(-\\pi, \\pi]`."""
    r, theta, phi, at_origin = _spherical(samples)
    return _phases(_psi(r, theta, phi, orbital, basis), at_origin)


def orbital_intensities(
    samples: ArrayLike,
    orbital: Orbital,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> NDArray:
    """Density :math:`|\\psi|^2` per point."""
    r, theta, phi, _ = _spherical(samples)
    return _intensities(_psi(r, theta, phi, orbital, basis))


def _superposition(samples, a, b, mix, time, delta_e, basis):
    if not 0.0 < mix < 1.0:
        raise ValueError("mix should be strictly between 0 and 1.")
    r, theta, phi, at_origin = _spherical(samples)
    psi = np.sqrt(mix) * _psi(r, theta, phi, a, basis)
    psi = psi + np.sqrt(1.0 - mix) * _psi(r, theta, phi, b, basis) * np.exp(
        -1j * delta_e * time
    )
    return psi, at_origin


def superposition_psi(
    samples: ArrayLike,
    a: Orbital,
    b: Orbital,
    mix: float,
    time: float,
    delta_e: float,
    basis: AngularBasis = AngularBasis.COMPLEX,
) -> Tuple[NDArray, NDArray]:
    """Superposed wavefunction at `(N, 3)` points as `(re, im)`.

    .. math::

        \\Psi = \\sqrt{w}\\,\\psi_A + \\sqrt{1-w}\\,\\psi_B\\,e^{-i\\Delta E t}

    Args:
            samples (np.ndarray): `(N, 3)` Cartesian points (a₀).
            a (QuantumNumbers or OrbitalComponent): First constituent.
            b (QuantumNumbers or OrbitalComponent): Second constituent.
            mix (float): Weight `w` of `a`, strictly between 0 and 1.
            time (float): Time (atomic units).
            delta_e (float): Energy splitting :math:`E_B - E_A` (Hartree).
            basis (AngularBasis): Angular basis of both constituents.

    Returns:
            (np.ndarray, np.ndarray): Real and imaginary parts.
    """
    psi, _ = _superposition(samples, a, b, mix, time, delta_e, basis)
    return psi.real, psi.imag


def superposition_signs(
    samples, a, b, mix, time, delta_e, basis=AngularBasis.COMPLEX
):
    """Sign of :math:`\\mathrm{Re}\\,\\Psi` per point, see `superposition_psi`."""
    psi, at_origin = _superposition(samples, a, b, mix, time, delta_e, basis)
    return _signs(psi, at_origin)


def superposition_phases(
    samples, a, b, mix, time, delta_e, basis=AngularBasis.COMPLEX
):
    """Phase of :math:`\\Psi` per point, see `superposition_psi`."""
    psi, at_origin = _superposition(samples, a, b, mix, time, delta_e, basis)
    return _phases(psi, at_origin)


def superposition_intensities(
    samples, a, b, mix, time, delta_e, basis=AngularBasis.COMPLEX
):
    """Density :math:`|\\Psi|^2` per point, see `superposition_psi`."""
    psi, _ = _superposition(samples, a, b, mix, time, delta_e, basis)
    return _intensities(psi)
