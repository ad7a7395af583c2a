#! /usr/bin/env python

import concurrent.futures
import doctest
import json
import tempfile
import threading
import time
import unittest
from pathlib import Path

from orbitalpy import data
from orbitalpy.data import ElementCache, TabulatedElement
from orbitalpy.hydrogen import QuantumNumbers
from orbitalpy.radial import RadialKind, tabulate_hydrogenic


def load_tests(loader, tests, ignore):
    tests.addTests(doctest.DocTestSuite(data))
    return tests


def lithium_like(eigenvalues=True, valence=3.0):
    orbitals = [
        tabulate_hydrogenic(QuantumNumbers(n, l, 0), 30.0, 301)
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
        valence_electrons=valence,
        source="test",
    )


def labels(orbitals):
    return [orbital.label for orbital in orbitals]


class TabulatedElementTestCase(unittest.TestCase):
    def test_r_max(self):
        self.assertEqual(lithium_like().r_max, 30.0)
        self.assertEqual(TabulatedElement("X", []).r_max, 0.0)

    def test_repr(self):
        text = repr(lithium_like())
        self.assertIn("Element: Li", text)
        self.assertIn("1s, 2s, 2p", text)

    def test_fromdict(self):
        element = TabulatedElement.fromdict(
            {
                "symbol": "He",
                "orbitals": [
                    {"n": 1, "l": 0, "r": [0.0, 1.0, 2.0], "value": [0.0, 1.0, 0.5]},
                    {
                        "n": 2,
                        "l": 1,
                        "r": [0.0, 1.0],
                        "value": [0.0, 1.0],
                        "kind": "chi",
                        "label": "2p*",
                    },
                ],
                "occupancy": {"1s": 2},
                "eigenvalues": {"1s": -0.9, "2p*": -0.1},
            }
        )
        self.assertEqual(element.total_electrons, 2.0)
        self.assertEqual(element.valence_electrons, 0.0)
        self.assertEqual(element.occupancy, {(1, 0): 2.0})
        self.assertEqual(element.eigenvalues, {(1, 0): -0.9, (2, 1): -0.1})
        self.assertEqual(element.orbitals[1].kind, RadialKind.CHI)
        self.assertEqual(labels(element.orbitals), ["1s", "2p*"])

    def test_directory_loader(self):
        payload = {
            "symbol": "H",
            "orbitals": [{"n": 1, "l": 0, "r": [0.0, 1.0], "value": [2.0, 0.7]}],
            "occupancy": {"1s": 1},
            "valence_electrons": 1,
            "source": "json",
        }
        with tempfile.TemporaryDirectory() as tmp:
            with open(Path(tmp) / "H.json", "w", encoding="utf-8") as f:
                json.dump(payload, f)
            loader = data.directory_loader(tmp)
            element = loader("H")
            self.assertRaises(FileNotFoundError, loader, "He")
        self.assertEqual(element.symbol, "H")
        self.assertEqual(element.source, "json")
        self.assertEqual(element.valence_electrons, 1.0)


class SelectionTestCase(unittest.TestCase):
    def setUp(self):
        self.element = lithium_like()

    def test_available_orbitals(self):
        self.element.occupancy[(2, 1)] = 0.0
        self.assertEqual(
            data.available_orbitals(self.element),
            [data.OrbitalInfo("1s", 1, 0), data.OrbitalInfo("2s", 2, 0)],
        )

    def test_occupied_orbitals(self):
        occupied = data.occupied_orbitals(self.element)
        self.assertEqual([o.weight for o in occupied], [2.0, 1.0, 2.0])
        self.assertIsNone(self.element.orbitals[0].weight)

    def test_valence_by_eigenvalue(self):
        selection, note = data.valence_orbitals(self.element)
        self.assertIsNone(note)
        self.assertEqual(labels(selection), ["2p", "2s"])

    def test_valence_by_quantum_numbers(self):
        selection, _ = data.valence_orbitals(lithium_like(eigenvalues=False))
        self.assertEqual(labels(selection), ["2p", "2s"])

    def test_valence_single_shell(self):
        selection, _ = data.valence_orbitals(lithium_like(valence=1.0))
        self.assertEqual(labels(selection), ["2p"])

    def test_valence_missing(self):
        self.assertEqual(
            data.valence_orbitals(lithium_like(valence=0.0)),
            ([], "valence electron count missing"),
        )
        self.element.occupancy.clear()
        self.assertEqual(
            data.valence_orbitals(self.element),
            ([], "no occupied orbitals in dataset"),
        )

    def test_select_orbital(self):
        for (n, l), expected in (
            ((2, 1), ("2p", True)),
            ((3, 1), ("2p", False)),
            ((3, 2), ("1s", False)),
        ):
            with self.subTest(n=n, l=l):
                orbital, exact = data.select_orbital(self.element, n, l)
                self.assertEqual((orbital.label, exact), expected)
        self.assertIsNone(data.select_orbital(TabulatedElement("X", []), 1, 0))

    def test_select_orbital_pair(self):
        a, exact_a, b, exact_b = data.select_orbital_pair(self.element, 1, 0, 2, 1)
        self.assertEqual((a.label, exact_a, b.label, exact_b), ("1s", True, "2p", True))

        a, exact_a, b, exact_b = data.select_orbital_pair(self.element, 2, 1, 3, 1)
        self.assertEqual(
            (a.label, exact_a, b.label, exact_b), ("2p", True, "1s", False)
        )

        single = TabulatedElement("H", self.element.orbitals[:1])
        self.assertIsNone(data.select_orbital_pair(single, 1, 0, 2, 1))


class ElementCacheTestCase(unittest.TestCase):
    def test_concurrent_first_access_loads_once(self):
        calls = []
        lock = threading.Lock()

        def loader(symbol):
            with lock:
                calls.append(symbol)
            time.sleep(0.05)
            return TabulatedElement(symbol, [])

        cache = ElementCache(loader)
        with concurrent.futures.ThreadPoolExecutor(8) as pool:
            results = list(pool.map(cache.get_or_load, ["Fe"] * 16))
        self.assertEqual(calls, ["Fe"])
        self.assertTrue(all(result is results[0] for result in results))
        self.assertIn("Fe", cache)
        self.assertEqual(len(cache), 1)

    def test_failed_load_is_not_cached(self):
        attempts = []

        def loader(symbol):
            attempts.append(symbol)
            if len(attempts) == 1:
                raise ValueError("corrupt file")
            return TabulatedElement(symbol, [])

        cache = ElementCache(loader)
        with self.assertRaises(ValueError):
            cache.get_or_load("Na")
        self.assertNotIn("Na", cache)
        self.assertEqual(cache.get_or_load("Na").symbol, "Na")
        self.assertEqual(len(attempts), 2)

    def test_clear(self):
        cache = ElementCache(lambda symbol: TabulatedElement(symbol, []))
        cache.get_or_load("C")
        cache.get_or_load("N")
        self.assertEqual(len(cache), 2)
        cache.clear()
        self.assertEqual(len(cache), 0)
