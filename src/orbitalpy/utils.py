#!/usr/bin/env python
"""
Utility functions.

Small helpers shared by the samplers, the reconstructors and the
examples.

Main contents:

    Geometry
        - ``cartesian_to_spherical(x, y, z)``: (r, θ, φ) with the origin guarded.
        - ``spherical_to_cartesian(r, theta, phi)``: Inverse transform.
        - ``random_theta_phi(num_samples, rng)``: Uniform directions on the sphere.
        - ``to_points(r, theta, phi)``: Stack spherical samples into an (N, 3) array.
        - ``concat_points(parts)``: Join point blocks.

    Unit conversions
        - ``bohr_to_angstrom``, ``hartree_to_eV``, ``atomic_time_to_fs``.

    Labels
        - ``ELEMENT_SYMBOLS``, ``symbol_for_z(z)``, ``l_to_letter(l)``,
          ``orbital_label(n, l)``.

    CLI/testing
        - ``is_fast_run()``: Check ``--fast`` CLI flag to run lighter examples.
"""
import argparse
from typing import Optional, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .shared import Q_
from .shared import constants as C

ORIGIN_EPSILON = 1e-8
"""Distances at or below this are treated as the nucleus itself."""

ELEMENT_SYMBOLS = (
    "H", "He", "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar", "K", "Ca",
    "Sc", "Ti", "V", "Cr", "Mn", "Fe", "Co", "Ni", "Cu", "Zn",
    "Ga", "Ge", "As", "Se", "Br", "Kr", "Rb", "Sr", "Y", "Zr",
    "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd", "In", "Sn",
    "Sb", "Te", "I", "Xe", "Cs", "Ba", "La", "Ce", "Pr", "Nd",
    "Pm", "Sm", "Eu", "Gd", "Tb", "Dy", "Ho", "Er", "Tm", "Yb",
    "Lu", "Hf", "Ta", "W", "Re", "Os", "Ir", "Pt", "Au", "Hg",
    "Tl", "Pb", "Bi", "Po", "At", "Rn", "Fr", "Ra", "Ac", "Th",
    "Pa", "U", "Np", "Pu", "Am", "Cm", "Bk", "Cf", "Es", "Fm",
    "Md", "No", "Lr", "Rf", "Db", "Sg", "Bh", "Hs", "Mt", "Ds",
    "Rg", "Cn", "Nh", "Fl", "Mc", "Lv", "Ts", "Og",
)  # fmt: skip

_L_LETTERS = "spdfghi"


def is_fast_run():
    """Is the `--fast` parameter set at execution.

    This function helps examples to be used as tests.  By running the
    example with the `--fast` option, a faster version of main can be
    called (e.g., by drawing fewer samples).
    """
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--fast",
        default=False,
        action="store_true",
        help="If set, the example should draw a reduced number of samples.",
    )
    args, _ = parser.parse_known_args()
    return args.fast


def cartesian_to_spherical(
    x: ArrayLike, y: ArrayLike, z: ArrayLike
) -> Tuple[NDArray, NDArray, NDArray]:
    """Convert Cartesian coordinates to spherical coordinates.

    Points at the origin get `theta = 0` instead of a NaN.

    Args:
            x (float or np.ndarray): Coordinate(s) in the x plane.
            y (float or np.ndarray): Coordinate(s) in the y plane.
            z (float or np.ndarray): Coordinate(s) in the z plane.

    Returns:
            r (np.ndarray): The radial distance(s).
            theta (np.ndarray): The polar angle(s) in [0, π].
            phi (np.ndarray): The azimuthal angle(s) in (-π, π].
    """
    x, y, z = (np.asarray(v, dtype=float) for v in (x, y, z))
    r = np.sqrt(x**2 + y**2 + z**2)
    safe_r = np.where(r > ORIGIN_EPSILON, r, 1.0)
    cos_theta = np.where(r > ORIGIN_EPSILON, z / safe_r, 1.0)
    theta = np.arccos(np.clip(cos_theta, -1.0, 1.0))
    phi = np.arctan2(y, x)
    return r, theta, phi


def spherical_to_cartesian(
    r: ArrayLike, theta: ArrayLike, phi: ArrayLike
) -> Tuple[NDArray, NDArray, NDArray]:
    """Spherical coordinates to Cartesian coordinates.

    Args:
            r (float or np.ndarray): The radial distance(s).
            theta (float or np.ndarray): The polar angle(s).
            phi (float or np.ndarray): The azimuthal angle(s).

    Returns:
            (np.ndarray, np.ndarray, np.ndarray): x, y and z.
    """
    sin_theta = np.sin(theta)
    return (
        r * sin_theta * np.cos(phi),
        r * sin_theta * np.sin(phi),
        r * np.cos(theta),
    )


def to_points(r: ArrayLike, theta: ArrayLike, phi: ArrayLike) -> NDArray:
    """Stack spherical samples into a single-precision `(N, 3)` array."""
    x, y, z = spherical_to_cartesian(
        np.asarray(r, dtype=float),
        np.asarray(theta, dtype=float),
        np.asarray(phi, dtype=float),
    )
    return np.column_stack([x, y, z]).astype(np.float32).reshape(-1, 3)


def concat_points(parts: list) -> NDArray:
    """Concatenate `(N_i, 3)` point blocks; empty `(0, 3)` for no blocks."""
    if not parts:
        return np.empty((0, 3), dtype=np.float32)
    return np.concatenate(parts).astype(np.float32)


def random_theta_phi(
    num_samples: int = 1, rng: Optional[np.random.Generator] = None
) -> NDArray:
    """Uniform random directions on the unit sphere.

    Samples directions uniformly over the unit sphere using inverse
    transform sampling (`cos θ` uniform in [-1, 1]).

    Args:
        num_samples (int, optional): Number of random angle pairs to
            generate. Defaults to 1.
        rng (np.random.Generator, optional): Source of randomness.

    Returns:
        np.ndarray: Array of shape (2, num_samples) containing sampled
        angles in radians:
        - [0]: θ ∈ [0, π] (polar angle)
        - [1]: φ ∈ [0, 2π) (azimuthal angle)
    """
    rng = np.random.default_rng() if rng is None else rng
    theta = np.arccos(rng.uniform(-1.0, 1.0, size=num_samples))
    phi = rng.uniform(0.0, 2.0 * np.pi, size=num_samples)
    return np.array([theta, phi])


def bohr_to_angstrom(length: ArrayLike) -> NDArray:
    """Convert lengths in Bohr radii (a₀) to Ångström.

    >>> round(float(bohr_to_angstrom(1.0)), 4)
    0.5292
    """
    return np.asarray(Q_(np.asarray(length, dtype=float), "bohr").to("angstrom").m)


def hartree_to_eV(energy: ArrayLike) -> NDArray:
    """Convert energies in Hartree to electronvolt.

    >>> round(float(hartree_to_eV(0.5)), 3)
    13.606
    """
    return np.asarray(Q_(np.asarray(energy, dtype=float), "hartree").to("eV").m)


def atomic_time_to_fs(time: ArrayLike) -> NDArray:
    """Convert times in atomic units (ħ/E_h) to femtoseconds."""
    return np.asarray(time, dtype=float) * C.t_au * 1e15


def symbol_for_z(z: int) -> Optional[str]:
    """Element symbol for atomic number `z` (1-118), `None` otherwise.

    >>> symbol_for_z(26)
    'Fe'
    """
    if 1 <= z <= len(ELEMENT_SYMBOLS):
        return ELEMENT_SYMBOLS[z - 1]
    return None


def l_to_letter(l: int) -> str:  # noqa: E741
    """Spectroscopic letter of the azimuthal quantum number."""
    if 0 <= l < len(_L_LETTERS):
        return _L_LETTERS[l]
    return "?"


def orbital_label(n: int, l: int) -> str:  # noqa: E741
    """Orbital label such as `"3d"`.

    >>> orbital_label(3, 2)
    '3d'
    """
    return f"{n}{l_to_letter(l)}"
