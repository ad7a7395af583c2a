from importlib.metadata import PackageNotFoundError, version

from . import (
    data,
    estimations,
    hydrogen,
    plot,
    radial,
    reconstruct,
    sampling,
    shared,
    simulation,
    special,
    superposition,
    utils,
)
from .shared import Q_, ureg

try:
    __version__ = version("orbitalpy")
except PackageNotFoundError:
    __version__ = "0.0.0"
