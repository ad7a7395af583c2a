#! /usr/bin/env python

import doctest
import unittest

import numpy as np
import numpy.testing

from orbitalpy import radial
from orbitalpy.hydrogen import AngularBasis, QuantumNumbers
from orbitalpy.radial import RadialKind, TabulatedOrbital


def load_tests(loader, tests, ignore):
    tests.addTests(doctest.DocTestSuite(radial))
    return tests


class TabulatedOrbitalTestCase(unittest.TestCase):
    def test_validation(self):
        self.assertRaises(ValueError, TabulatedOrbital, 1, 0, [0.0, 1.0], [1.0])
        self.assertRaises(ValueError, TabulatedOrbital, 1, 0, [0.0], [1.0])
        self.assertRaises(
            ValueError, TabulatedOrbital, 1, 0, [0.0, 1.0, 1.0], [1.0, 2.0, 3.0]
        )

    def test_defaults(self):
        orbital = TabulatedOrbital(3, 2, [0.0, 1.0, 2.0], [0.0, 1.0, 0.5])
        self.assertEqual(orbital.label, "3d")
        self.assertEqual(orbital.effective_weight, 1.0)
        self.assertEqual(orbital.r_max, 2.0)
        self.assertEqual(orbital.kind, RadialKind.R)

    def test_chi_radial(self):
        orbital = TabulatedOrbital(
            2, 1, [0.0, 1.0, 2.0], [0.0, 1.0, 3.0], RadialKind.CHI
        )
        np.testing.assert_allclose(orbital.radial([0.0, 2.0, 1.5]), [1.0, 1.5, 4 / 3])

    def test_tabulate_hydrogenic(self):
        orbital = radial.tabulate_hydrogenic(QuantumNumbers(1, 0, 0), 10.0, 101)
        self.assertEqual(len(orbital.r), 101)
        np.testing.assert_allclose(orbital.value, 2 * np.exp(-orbital.r))


class RadialCdfTestCase(unittest.TestCase):
    def test_triangle(self):
        cdf = radial.build_radial_cdf([0.0, 1.0, 2.0], [0.0, 1.0, 0.0], 10.0)
        self.assertEqual(cdf[-1], 1.0)
        self.assertTrue(np.all(np.diff(cdf) >= 0))

    def test_truncation(self):
        cdf = radial.build_radial_cdf([0.0, 1.0, 2.0, 3.0], np.ones(4), 2.0)
        np.testing.assert_allclose(cdf, [0.0, 1 / 6, 1.0, 1.0])

    def test_chi_weight(self):
        cdf = radial.build_radial_cdf(
            [0.0, 1.0, 2.0], [1.0, 1.0, 1.0], 10.0, RadialKind.CHI
        )
        np.testing.assert_allclose(cdf, [0.0, 0.5, 1.0])

    def test_empty(self):
        self.assertEqual(radial.build_radial_cdf([0.0, 1.0], [0.0, 0.0], 5.0).size, 0)
        self.assertEqual(radial.build_radial_cdf([0.0], [1.0], 5.0).size, 0)
        self.assertEqual(radial.build_radial_cdf([0.0, 1.0], [1.0], 5.0).size, 0)
        self.assertEqual(radial.build_radial_cdf([1.0, 2.0], [1.0, 1.0], 0.5).size, 0)

    def test_sample_r(self):
        r = np.array([0.0, 1.0, 2.0])
        cdf = radial.build_radial_cdf(r, [0.0, 1.0, 0.0], 10.0)
        radii = radial.sample_r(cdf, r, np.random.default_rng(0), 4000)
        self.assertTrue(np.all((radii >= 0.0) & (radii <= 2.0)))
        self.assertAlmostEqual(radii.mean(), 1.0, delta=0.05)

    def test_interp_clamps(self):
        grid = [1.0, 2.0, 3.0]
        values = [10.0, 20.0, 40.0]
        np.testing.assert_allclose(
            radial.interp_radial([0.0, 1.5, 2.5, 9.0], grid, values),
            [10.0, 15.0, 30.0, 40.0],
        )
        np.testing.assert_array_equal(radial.interp_radial([1.0, 2.0], [], []), 0.0)


class AngularTestCase(unittest.TestCase):
    def test_max_angular_prob(self):
        self.assertAlmostEqual(radial.max_angular_prob(1, 0), 3 / (4 * np.pi), places=4)
        complex_max = radial.max_angular_prob(1, 1)
        real_max = radial.max_angular_prob(1, 1, AngularBasis.REAL)
        self.assertAlmostEqual(real_max, 2 * complex_max, places=6)

    def test_sample_angles_s(self):
        theta, phi, done = radial.sample_angles(0, 0, 100, np.random.default_rng(1))
        self.assertTrue(done.all())
        self.assertTrue(np.all((theta >= 0) & (theta <= np.pi)))
        self.assertTrue(np.all((phi >= 0) & (phi < 2 * np.pi)))

    def test_sample_angles_gives_up(self):
        # An envelope far above the density never accepts.
        _, _, done = radial.sample_angles(
            1, 0, 50, np.random.default_rng(1), max_ang=1e9, max_tries=4
        )
        self.assertFalse(done.any())


class GenerateFromRadialTestCase(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(5)
        self.orbital_1s = radial.tabulate_hydrogenic(
            QuantumNumbers(1, 0, 0), 20.0, 2001
        )
        self.orbital_2p = radial.tabulate_hydrogenic(
            QuantumNumbers(2, 1, 0), 30.0, 2001
        )

    def test_1s_mean_radius(self):
        samples = radial.generate_orbital_samples_from_radial(
            self.orbital_1s.r, self.orbital_1s.value, 0, 0, 4000, 20.0, rng=self.rng
        )
        self.assertEqual(samples.shape, (4000, 3))
        self.assertAlmostEqual(
            np.linalg.norm(samples, axis=1).mean(), 1.5, delta=0.06
        )

    def test_truncated_radius(self):
        samples = radial.sample_tabulated_orbital(
            self.orbital_2p, 0, 1000, 3.0, rng=self.rng
        )
        self.assertEqual(len(samples), 1000)
        self.assertTrue(np.all(np.linalg.norm(samples, axis=1) <= 3.0 + 1e-5))

    def test_chi_table(self):
        r = self.orbital_1s.r
        samples = radial.generate_orbital_samples_from_radial(
            r,
            r * self.orbital_1s.value,
            0,
            0,
            4000,
            20.0,
            RadialKind.CHI,
            rng=self.rng,
        )
        self.assertAlmostEqual(
            np.linalg.norm(samples, axis=1).mean(), 1.5, delta=0.06
        )

    def test_no_density(self):
        samples = radial.generate_orbital_samples_from_radial(
            [0.0, 1.0], [0.0, 0.0], 0, 0, 100, 5.0, rng=self.rng
        )
        self.assertEqual(samples.shape, (0, 3))


class MixtureTestCase(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(11)
        qns = [
            QuantumNumbers(1, 0, 0),
            QuantumNumbers(2, 0, 0),
            QuantumNumbers(2, 1, 0),
        ]
        self.orbitals = [
            radial.tabulate_hydrogenic(qn, 30.0, 1201) for qn in qns
        ]

    def _weighted(self, weights):
        return [
            TabulatedOrbital(o.n, o.l, o.r, o.value, weight=w)
            for o, w in zip(self.orbitals, weights)
        ]

    def test_partition_counts(self):
        for weights, total in (([1.0, 1.0, 1.0], 1000), ([2.0, 0.5], 7), ([3.0], 5)):
            with self.subTest(weights=weights):
                counts = radial.partition_counts(weights, total)
                self.assertEqual(sum(counts), total)
                self.assertTrue(all(c >= 0 for c in counts))

    def test_isotropic_count(self):
        samples = radial.generate_isotropic_density_samples(
            self._weighted([2.0, 2.0, 1.0]), 1001, 30.0, rng=self.rng
        )
        self.assertEqual(samples.shape, (1001, 3))

    def test_isotropic_is_spherical(self):
        samples = radial.generate_isotropic_density_samples(
            self._weighted([0.0, 0.0, 1.0]), 4000, 30.0, rng=self.rng
        )
        mean_abs = np.abs(samples).mean(axis=0)
        self.assertAlmostEqual(mean_abs[2] / mean_abs[0], 1.0, delta=0.1)

    def test_isotropic_empty(self):
        self.assertEqual(
            radial.generate_isotropic_density_samples([], 100, 10.0).shape, (0, 3)
        )
        self.assertEqual(
            radial.generate_isotropic_density_samples(
                self._weighted([0.0, -1.0, 0.0]), 100, 10.0
            ).shape,
            (0, 3),
        )

    def test_weighted_keeps_shape(self):
        samples = radial.generate_weighted_orbital_samples(
            self._weighted([0.0, 0.0, 1.0]), 3000, 30.0, rng=self.rng
        )
        self.assertEqual(len(samples), 3000)
        mean_abs = np.abs(samples).mean(axis=0)
        self.assertGreater(mean_abs[2], 1.3 * mean_abs[0])

    def test_weighted_ms(self):
        samples = radial.generate_weighted_orbital_samples(
            self._weighted([0.0, 0.0, 1.0]),
            3000,
            30.0,
            basis=AngularBasis.REAL,
            ms=[0, 0, 1],
            rng=self.rng,
        )
        mean_abs = np.abs(samples).mean(axis=0)
        self.assertGreater(mean_abs[0], 1.3 * mean_abs[2])

    def test_weighted_ms_length(self):
        self.assertRaises(
            ValueError,
            radial.generate_weighted_orbital_samples,
            self.orbitals,
            10,
            30.0,
            ms=[0],
        )
