#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

from .estimations import (
    radial_histogram,
    radial_probability,
    radial_probability_within,
)
from .utils import orbital_label


def point_cloud(samples, colors=None, max_points=20000, ax=None, **scatter_kwargs):
    """3D scatter plot of sampled points.

    Args:
            samples (np.ndarray): `(N, 3)` Cartesian points.
            colors (np.ndarray, optional): Per point values, e.g. signs
                or phases, mapped through the colour map.
            max_points (int): Plot at most this many (evenly strided) points.
            ax (matplotlib.axes.Axes, optional): A 3D axes to draw on.

    Returns:
            matplotlib.axes.Axes: The axes.
    """
    samples = np.asarray(samples).reshape(-1, 3)
    stride = max(1, len(samples) // max_points)
    points = samples[::stride]
    if colors is not None:
        colors = np.asarray(colors)[::stride]

    if ax is None:
        fig = plt.figure(figsize=plt.figaspect(1.0))
        ax = fig.add_subplot(projection="3d")
    scatter_kwargs.setdefault("s", 1)
    scatter_kwargs.setdefault("cmap", "coolwarm")
    ax.scatter(points[:, 0], points[:, 1], points[:, 2], c=colors, **scatter_kwargs)

    # Equal axes around the nucleus
    lim = float(np.abs(points).max()) if len(points) else 1.0
    ax.set_xlim(-lim, lim)
    ax.set_ylim(-lim, lim)
    ax.set_zlim(-lim, lim)
    ax.set_xlabel("x ($a_0$)")
    ax.set_ylabel("y ($a_0$)")
    ax.set_zlabel("z ($a_0$)")
    return ax


def radial_distribution(samples, qn, max_radius, bins=50, Z=1.0, ax=None):
    """Histogram of sample radii against the analytic :math:`r^2 R_{nl}^2`."""
    if ax is None:
        _, ax = plt.subplots()
    centres, density = radial_histogram(samples, bins, max_radius)
    width = centres[1] - centres[0] if len(centres) > 1 else max_radius
    ax.bar(centres, density, width=width, alpha=0.5, label="samples")

    r = np.linspace(0.0, max_radius, 500)
    expected = radial_probability(r, qn.n, qn.l, Z)
    expected /= radial_probability_within(max_radius, qn.n, qn.l, Z)
    ax.plot(r, expected, "k", lw=1.5, label="$r^2 R_{nl}^2$")
    ax.set_xlabel("r ($a_0$)")
    ax.set_ylabel("P(r)")
    ax.set_title(orbital_label(qn.n, qn.l))
    ax.legend()
    return ax
