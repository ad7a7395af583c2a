#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

import orbitalpy as op
from orbitalpy.hydrogen import AngularBasis, QuantumNumbers
from orbitalpy.utils import is_fast_run


def main(count=40000):
    rng = np.random.default_rng(42)
    fig = plt.figure(figsize=(12, 4))
    for i, (qn, basis) in enumerate(
        [
            (QuantumNumbers(2, 1, 1), AngularBasis.REAL),
            (QuantumNumbers(3, 2, 0), AngularBasis.COMPLEX),
            (QuantumNumbers(4, 3, 2), AngularBasis.REAL),
        ]
    ):
        max_radius = 2.5 * op.estimations.expectation_radius(qn.n, qn.l)
        samples = op.sampling.generate_orbital_samples(
            qn, count, max_radius, basis, rng=rng
        )
        signs = op.reconstruct.orbital_signs(samples, qn, basis)
        ax = fig.add_subplot(1, 3, i + 1, projection="3d")
        op.plot.point_cloud(samples, colors=signs, ax=ax)
        ax.set_title(f"{op.utils.orbital_label(qn.n, qn.l)} m={qn.m} ({basis.value})")

    # plt.show()
    path = __file__[:-3] + f"_{0}.png"
    plt.savefig(path)

    return 0


if __name__ == "__main__":
    if is_fast_run():
        main(count=2000)
    else:
        main()
