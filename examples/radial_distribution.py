#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

import orbitalpy as op
from orbitalpy.hydrogen import QuantumNumbers
from orbitalpy.utils import is_fast_run


def main(count=50000):
    rng = np.random.default_rng(0)
    fig, axes = plt.subplots(1, 3, figsize=(12, 4))
    for ax, (n, l) in zip(axes, [(1, 0), (2, 0), (3, 2)]):
        qn = QuantumNumbers(n, l, 0)
        max_radius = 4.0 * n * n
        samples = op.sampling.generate_orbital_samples(qn, count, max_radius, rng=rng)
        op.plot.radial_distribution(samples, qn, max_radius, ax=ax)
        r2 = op.estimations.radial_distribution_r2(samples, qn, max_radius)
        print(
            f"{op.utils.orbital_label(n, l)}: "
            f"<r> = {np.linalg.norm(samples, axis=1).mean():.3f} "
            f"(exact {op.estimations.expectation_radius(n, l):.3f}), R2 = {r2:.4f}"
        )

    plt.tight_layout()
    path = __file__[:-3] + f"_{0}.png"
    plt.savefig(path)

    return 0


if __name__ == "__main__":
    if is_fast_run():
        main(count=5000)
    else:
        main()
