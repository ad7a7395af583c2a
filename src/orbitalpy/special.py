#! /usr/bin/env python
"""Special functions used by the hydrogenic wavefunctions.

Factorials, Legendre, associated Legendre and generalized Laguerre
polynomials, all evaluated with their standard three-term recurrences.
The polynomial functions accept a scalar or a `numpy` array for `x`
and are evaluated element-wise; the integer degrees/orders are plain
Python integers.

Examples:
    >>> factorial(5)
    120
    >>> factorial_double(7)
    105
    >>> float(legendre(0.5, 2))
    -0.125
    >>> float(associated_legendre(0.0, 1, 1))
    -1.0
    >>> float(laguerre(0.0, 2, 1))
    3.0
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray


def factorial(n: int) -> int:
    """Factorial `n!` as an iterative product.

    Args:
            n (int): Non-negative integer.

    Returns:
            int: `n!`, with `0! = 1`.
    """
    result = 1
    for i in range(2, n + 1):
        result *= i
    return result


def factorial_double(n: int) -> int:
    """Double factorial `n!! = n (n-2) (n-4) ...`.

    Args:
            n (int): Integer argument; `n <= 0` is the empty product.

    Returns:
            int: `n!!`.
    """
    result = 1
    while n > 0:
        result *= n
        n -= 2
    return result


def legendre(x: ArrayLike, n: int) -> NDArray:
    """Legendre polynomial :math:`P_n(x)` (Bonnet recurrence).

    Args:
            x (float or np.ndarray): Argument(s), usually in [-1, 1].
            n (int): Degree.

    Returns:
            np.ndarray: :math:`P_n(x)`.
    """
    x = np.asarray(x, dtype=float)
    p0 = np.ones_like(x)
    if n == 0:
        return p0
    p1 = x.copy()
    for i in range(2, n + 1):
        p0, p1 = p1, ((2 * i - 1) * x * p1 - (i - 1) * p0) / i
    return p1


def associated_legendre(x: ArrayLike, l: int, m: int) -> NDArray:  # noqa: E741
    """Associated Legendre function :math:`P_l^m(x)`.

    Includes the Condon-Shortley phase :math:`(-1)^m`.  The recurrence
    is seeded with the closed form

    .. math:: P_m^m(x) = (-1)^m (2m-1)!! (1-x^2)^{m/2}

    and raised to degree `l` with

    .. math:: (l-m) P_l^m = (2l-1) x P_{l-1}^m - (l+m-1) P_{l-2}^m.

    Args:
            x (float or np.ndarray): Argument(s) in [-1, 1].
            l (int): Degree.
            m (int): Order, `0 <= m`.

    Returns:
            np.ndarray: :math:`P_l^m(x)`, zero when `m > l`.
    """
    x = np.asarray(x, dtype=float)
    if m > l:
        return np.zeros_like(x)
    if m == 0:
        return legendre(x, l)

    sign = -1.0 if m % 2 else 1.0
    one_minus_x2 = np.clip(1.0 - x * x, 0.0, None)
    pmm = sign * factorial_double(2 * m - 1) * one_minus_x2 ** (m / 2)
    if l == m:
        return pmm

    pm1m = x * (2 * m + 1) * pmm
    if l == m + 1:
        return pm1m

    for i in range(m + 2, l + 1):
        pmm, pm1m = pm1m, ((2 * i - 1) * x * pm1m - (i + m - 1) * pmm) / (i - m)
    return pm1m


def laguerre(x: ArrayLike, n: int, alpha: float) -> NDArray:
    r"""Generalized Laguerre polynomial :math:`L_n^{(\alpha)}(x)`.

    Args:
            x (float or np.ndarray): Argument(s).
            n (int): Degree.
            alpha (float): Fixed parameter :math:`\alpha`.

    Returns:
            np.ndarray: :math:`L_n^{(\alpha)}(x)`.
    """
    x = np.asarray(x, dtype=float)
    l0 = np.ones_like(x)
    if n == 0:
        return l0
    l1 = 1.0 + alpha - x
    for i in range(2, n + 1):
        l0, l1 = l1, ((2 * i - 1 + alpha - x) * l1 - (i - 1 + alpha) * l0) / i
    return l1
