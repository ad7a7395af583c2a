#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

import orbitalpy as op
from orbitalpy.simulation import OrbitalSimulation, SampleRequest, ViewMode
from orbitalpy.superposition import amplitude_density
from orbitalpy.utils import atomic_time_to_fs, is_fast_run


def main(count=30000, frames=6):
    request = SampleRequest(
        n=2, l=1, n2=1, l2=0, count=count, mode=ViewMode.SUPERPOSITION, with_psi=True
    )
    with OrbitalSimulation(seed=7) as sim:
        result = sim.sample(request)
    print(result.note)

    # Amplitude mode: one sample set, re-weighted for every frame.
    period = op.estimations.oscillation_period(result.delta_e)
    times = np.linspace(0.0, period, frames, endpoint=False)
    fig = plt.figure(figsize=(3 * frames, 3))
    for i, t in enumerate(times):
        density = amplitude_density(result.psi1, result.psi2, result.delta_e, t)
        ax = fig.add_subplot(1, frames, i + 1, projection="3d")
        op.plot.point_cloud(result.samples, colors=density, ax=ax, cmap="viridis")
        ax.set_title(f"t = {float(atomic_time_to_fs(t)):.2f} fs")

    path = __file__[:-3] + f"_{0}.png"
    plt.savefig(path)

    return 0


if __name__ == "__main__":
    if is_fast_run():
        main(count=2000, frames=3)
    else:
        main()
