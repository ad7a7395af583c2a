#! /usr/bin/env python
"""
Shared physical constants, unit registry and data paths.

Atomic units are used throughout the package (Bohr radius a₀ = 1,
Hartree energy E_h = 1, ħ = 1).  This module keeps the SI values
needed to leave that system, together with their metadata:

- ``Constant``: a subclass of ``float`` that carries a ``details`` attribute
  (a ``types.SimpleNamespace``) with the name, units and source of the
  constant.  A ``Constant`` can be used anywhere a ``float`` is expected,
  e.g. ``constants.a_0 * 1e10`` or ``constants.a_0.details.units``.

- ``Constant.fromjson(path)``: load a JSON mapping of name → {value, ...}
  into a ``SimpleNamespace`` of ``Constant`` objects.

- ``DATA_DIR``: path to bundled data files.

- ``constants``: the default namespace loaded from
  ``DATA_DIR/constants.json``.

- ``ureg`` / ``Q_``: the package wide ``pint`` unit registry and its
  quantity constructor.
"""

import json
from pathlib import Path
from types import SimpleNamespace

from importlib_resources import files
from pint import UnitRegistry


class Constant(float):
    """Constant class.

    Extends float with the `Constant.details` member.

    >>> c = Constant({"value": 2.0, "units": "m"})
    >>> c * 2
    4.0
    >>> c.details.units
    'm'
    """

    details: SimpleNamespace
    """Details (e.g. units) of the constant."""

    def __new__(cls, details: dict):  # noqa D102
        details = dict(details)
        obj = super().__new__(cls, details.pop("value"))
        obj.details = SimpleNamespace(**details)
        return obj

    @staticmethod
    def fromjson(json_file: Path) -> SimpleNamespace:
        """Read all constants from the JSON file.

        Args:
            json_file (Path): Path of the JSON file.

        Returns:
            SimpleNamespace: A namespace containing all constants.
        """
        with open(json_file, encoding="utf-8") as f:
            data = json.load(f)
        return SimpleNamespace(**{k: Constant(v) for k, v in data.items()})


DATA_DIR = Path(str(files(__package__) / "data_files"))
constants = Constant.fromjson(DATA_DIR / "constants.json")

ureg = UnitRegistry()
Q_ = ureg.Quantity
