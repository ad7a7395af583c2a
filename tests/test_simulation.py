#! /usr/bin/env python

import concurrent.futures
import doctest
import time
import unittest
from unittest import mock

import numpy as np

from orbitalpy import simulation
from orbitalpy.data import ElementCache, TabulatedElement
from orbitalpy.hydrogen import QuantumNumbers
from orbitalpy.radial import tabulate_hydrogenic
from orbitalpy.simulation import (
    OrbitalSimulation,
    SampleRequest,
    SampleResult,
    Source,
    ValenceStyle,
    ViewMode,
)


def load_tests(loader, tests, ignore):
    tests.addTests(doctest.DocTestSuite(simulation))
    return tests


def lithium(eigenvalues=True):
    orbitals = [
        tabulate_hydrogenic(QuantumNumbers(n, l, 0), 30.0, 601)
        for n, l in ((1, 0), (2, 0), (2, 1))
    ]
    return TabulatedElement(
        "Li",
        orbitals,
        occupancy={(1, 0): 2.0, (2, 0): 1.0, (2, 1): 2.0},
        eigenvalues=(
            {(1, 0): -10.0, (2, 0): -0.5, (2, 1): -0.2} if eigenvalues else {}
        ),
        total_electrons=5.0,
        valence_electrons=3.0,
        source="lda",
    )


def lithium_loader(eigenvalues=True):
    def loader(symbol):
        if symbol != "Li":
            raise FileNotFoundError(symbol)
        return lithium(eigenvalues)

    return loader


class RequestTestCase(unittest.TestCase):
    def test_clamped_keeps_valid_input(self):
        request = SampleRequest(n=3, l=2, n2=4, l2=0, count=2000, mix=0.3)
        clamped = request.clamped()
        self.assertEqual((clamped.n2, clamped.l2, clamped.mix), (4, 0, 0.3))
        self.assertEqual(clamped.count, 2000)
        self.assertIsNone(request.n2)

    def test_clamped_limits(self):
        clamped = SampleRequest(z=-3, count=10**7, mix=-1.0).clamped()
        self.assertEqual((clamped.z, clamped.count, clamped.mix), (1, 500_000, 0.05))

    def test_from_query(self):
        self.assertEqual(ViewMode.from_query(None), ViewMode.TOTAL)
        self.assertEqual(ViewMode.from_query("bogus"), ViewMode.TOTAL)
        self.assertEqual(ViewMode.from_query("SUPERPOSITION"), ViewMode.SUPERPOSITION)
        self.assertEqual(ValenceStyle.from_query("Orbitals"), ValenceStyle.ORBITALS)
        self.assertEqual(ValenceStyle.from_query(None), ValenceStyle.SPHERICAL)

    def test_shortfall(self):
        result = SampleResult(
            np.zeros((3, 3)), ViewMode.ORBITAL, Source.HYDROGENIC, 5, 1.0, 1, 1, 0, 0
        )
        self.assertEqual(len(result), 3)
        self.assertEqual(result.shortfall, 2)


class HydrogenicTestCase(unittest.TestCase):
    def setUp(self):
        self.sim = OrbitalSimulation(max_workers=2, seed=0)

    def tearDown(self):
        self.sim.shutdown()

    def test_exact_orbital(self):
        result = self.sim.sample(
            SampleRequest(n=2, l=1, m=1, count=1000, mode=ViewMode.ORBITAL)
        )
        self.assertEqual(result.note, "hydrogenic (exact)")
        self.assertEqual(result.source, Source.HYDROGENIC)
        self.assertEqual((result.n, result.l, result.m), (2, 1, 1))
        self.assertEqual(result.samples.shape, (1000, 3))
        self.assertIs(self.sim.last_result, result)

    def test_scaled_by_z(self):
        result = self.sim.sample(
            SampleRequest(n=2, l=1, z=4, count=1000, mode=ViewMode.ORBITAL)
        )
        self.assertIsNone(result.note)
        self.assertEqual(result.max_radius, 5.0)
        radii = np.linalg.norm(result.samples, axis=1)
        self.assertTrue(np.all(radii <= 5.0 + 1e-4))
        self.assertAlmostEqual(radii.mean(), 5.0 / 4, delta=0.1)

    def test_density_view_without_data(self):
        result = self.sim.sample(SampleRequest(n=3, l=1, count=1000))
        self.assertEqual(result.mode, ViewMode.ORBITAL)
        self.assertEqual(
            result.note, "density dataset unavailable; using single orbital"
        )

    def test_invalid_orbital(self):
        result = self.sim.sample(SampleRequest(n=1, l=2, mode=ViewMode.ORBITAL))
        self.assertEqual(result.samples.shape, (0, 3))
        self.assertEqual(result.count, 0)

    def test_signs(self):
        result = self.sim.sample(
            SampleRequest(n=2, l=1, count=1000, mode=ViewMode.ORBITAL, with_signs=True)
        )
        self.assertEqual(result.signs.dtype, np.int8)
        np.testing.assert_array_equal(
            result.signs, np.where(result.samples[:, 2] >= 0, 1, -1)
        )

    def test_superposition(self):
        result = self.sim.sample(
            SampleRequest(
                n=2,
                l=1,
                n2=1,
                l2=0,
                count=1000,
                mode=ViewMode.SUPERPOSITION,
                with_psi=True,
            )
        )
        self.assertEqual(result.note, "Hydrogenic superposition (time-dependent)")
        self.assertEqual((result.n2, result.l2, result.m2), (1, 0, 0))
        self.assertAlmostEqual(result.delta_e, -0.375)
        self.assertEqual(result.psi1.shape, (1000, 2))
        self.assertEqual(result.psi2.shape, (1000, 2))
        self.assertEqual(result.mix, 0.5)

    def test_degenerate_scaled_superposition(self):
        result = self.sim.sample(
            SampleRequest(
                n=2, l=0, n2=2, l2=1, z=2, count=1000, mode=ViewMode.SUPERPOSITION
            )
        )
        self.assertIn("same n -> no time evolution", result.note)
        self.assertIn("hydrogenic approximation scaled by Z", result.note)
        self.assertEqual(result.max_radius, 10.0)
        self.assertIsNone(result.psi1)

    def test_invalid_superposition_falls_back(self):
        result = self.sim.sample(
            SampleRequest(n=2, l=1, n2=1, l2=1, count=1000, mode=ViewMode.SUPERPOSITION)
        )
        self.assertEqual(result.mode, ViewMode.ORBITAL)
        self.assertEqual(len(result), 1000)

    def test_seeded_simulations_agree(self):
        request = SampleRequest(n=3, l=2, m=-1, count=1000, mode=ViewMode.ORBITAL)
        with OrbitalSimulation(seed=9) as a, OrbitalSimulation(seed=9) as b:
            np.testing.assert_array_equal(
                a.sample(request).samples, b.sample(request).samples
            )

    def test_submit(self):
        future = self.sim.submit(
            SampleRequest(n=1, l=0, count=1000, mode=ViewMode.ORBITAL)
        )
        self.assertEqual(len(future.result(timeout=60)), 1000)


class TabulatedTestCase(unittest.TestCase):
    def setUp(self):
        self.sim = OrbitalSimulation(ElementCache(lithium_loader()), seed=1)

    def tearDown(self):
        self.sim.shutdown()

    def sample(self, **kwargs):
        return self.sim.sample(SampleRequest(z=3, count=1000, **kwargs))

    def test_total(self):
        result = self.sample(mode=ViewMode.TOTAL, with_signs=True)
        self.assertEqual(result.source, Source.TABULATED)
        self.assertEqual(result.note, "lda spherical total density (5e)")
        self.assertEqual(result.samples.shape, (1000, 3))
        np.testing.assert_array_equal(result.signs, np.ones(1000, dtype=np.int8))
        self.assertEqual(len(result.available_orbitals), 3)

    def test_valence(self):
        spherical = self.sample(mode=ViewMode.VALENCE)
        self.assertEqual(spherical.note, "lda spherical valence density (3e)")
        shaped = self.sample(
            mode=ViewMode.VALENCE, valence_style=ValenceStyle.ORBITALS
        )
        self.assertEqual(shaped.note, "lda valence orbitals (m=0 projection)")
        self.assertEqual(len(shaped), 1000)

    def test_orbital(self):
        result = self.sample(n=2, l=1, m=1, mode=ViewMode.ORBITAL, with_signs=True)
        self.assertEqual(result.note, "lda 2p")
        self.assertEqual(result.selected_orbital, "2p")
        self.assertEqual(result.signs.shape, (1000,))

        closest = self.sample(n=3, l=2, mode=ViewMode.ORBITAL)
        self.assertEqual(closest.note, "requested n/l not in dataset; using 1s")
        self.assertEqual((closest.n, closest.l, closest.m), (1, 0, 0))

    def test_superposition(self):
        result = self.sample(
            n=2, l=1, n2=2, l2=0, mode=ViewMode.SUPERPOSITION, with_signs=True
        )
        self.assertEqual(result.note, "lda superposition")
        self.assertAlmostEqual(result.delta_e, -0.3)
        self.assertEqual(result.selected_orbital, "2p")
        self.assertEqual(result.selected_orbital_b, "2s")
        self.assertEqual(result.signs.shape, (len(result),))

    def test_superposition_without_eigenvalues(self):
        sim = OrbitalSimulation(ElementCache(lithium_loader(eigenvalues=False)))
        with sim:
            result = sim.sample(
                SampleRequest(
                    n=2, l=1, n2=4, l2=0, z=3, count=1000, mode=ViewMode.SUPERPOSITION
                )
            )
        self.assertEqual(
            result.note,
            "lda superposition (closest orbitals used)"
            " | missing eigenvalues, static phase"
            " | degenerate energies, static density",
        )
        self.assertEqual(result.delta_e, 0.0)

    def test_hydrogen_skips_dataset(self):
        result = self.sim.sample(
            SampleRequest(n=1, l=0, count=1000, mode=ViewMode.ORBITAL)
        )
        self.assertEqual(result.note, "hydrogenic (exact)")
        self.assertNotIn("H", self.sim.cache)

    def test_missing_element(self):
        with self.assertLogs("orbitalpy.simulation", level="WARNING"):
            result = self.sim.sample(
                SampleRequest(n=2, l=1, z=11, count=1000, mode=ViewMode.ORBITAL)
            )
        self.assertEqual(result.source, Source.HYDROGENIC)
        self.assertEqual(result.note, "element data unavailable; using hydrogenic")


class TimeoutTestCase(unittest.TestCase):
    def test_run_with_timeout(self):
        with concurrent.futures.ThreadPoolExecutor(1) as pool:
            with self.assertLogs("orbitalpy.simulation", level="WARNING"):
                value = simulation.run_with_timeout(
                    pool, time.sleep, 0.5, timeout=0.01, fallback="previous"
                )
        self.assertEqual(value, "previous")

    def test_sample_within_returns_last_result(self):
        with OrbitalSimulation(max_workers=1, seed=2) as sim:
            request = SampleRequest(n=1, l=0, count=1000, mode=ViewMode.ORBITAL)
            previous = sim.sample_within(request, timeout=60)
            self.assertEqual(len(previous), 1000)

            def slow(request):
                time.sleep(0.5)

            with mock.patch.object(sim, "sample", side_effect=slow):
                with self.assertLogs("orbitalpy.simulation", level="WARNING"):
                    result = sim.sample_within(request, timeout=0.01)
        self.assertIs(result, previous)
