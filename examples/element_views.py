#! /usr/bin/env python

import sys

import matplotlib.pyplot as plt

import orbitalpy as op
from orbitalpy.data import ElementCache, directory_loader
from orbitalpy.simulation import (
    OrbitalSimulation,
    SampleRequest,
    ValenceStyle,
    ViewMode,
)
from orbitalpy.utils import is_fast_run


def main(data_dir=None, z=26, count=50000):
    cache = ElementCache(directory_loader(data_dir)) if data_dir else None
    views = [
        SampleRequest(z=z, count=count, mode=ViewMode.TOTAL),
        SampleRequest(z=z, count=count, mode=ViewMode.VALENCE),
        SampleRequest(
            z=z,
            count=count,
            mode=ViewMode.VALENCE,
            valence_style=ValenceStyle.ORBITALS,
        ),
        SampleRequest(n=3, l=2, m=1, z=z, count=count, mode=ViewMode.ORBITAL),
    ]
    fig = plt.figure(figsize=(16, 4))
    with OrbitalSimulation(cache, seed=1) as sim:
        for i, request in enumerate(views):
            result = sim.sample(request)
            print(f"{result.mode.value}: {result.note} ({len(result)} points)")
            ax = fig.add_subplot(1, len(views), i + 1, projection="3d")
            op.plot.point_cloud(result.samples, ax=ax)
            ax.set_title(result.mode.value)

    path = __file__[:-3] + f"_{0}.png"
    plt.savefig(path)

    return 0


if __name__ == "__main__":
    # Optional: a directory of <symbol>.json element files.
    data_dir = next((arg for arg in sys.argv[1:] if not arg.startswith("-")), None)
    if is_fast_run():
        main(data_dir, count=1000)
    else:
        main(data_dir)
