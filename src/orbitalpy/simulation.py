#!/usr/bin/env python
"""
Orbital views.

`OrbitalSimulation` turns a `SampleRequest` into a `SampleResult`: it
decides which data source and which sampler serve the requested view,
falls back to the hydrogenic model when tabulated data is missing, and
explains every such decision in `SampleResult.note`.

Views (`ViewMode`):

- `TOTAL`: spherically averaged density of all occupied orbitals.
- `VALENCE`: the outermost occupied orbitals, either spherically
  averaged or with their angular shape (`ValenceStyle`).
- `ORBITAL`: a single orbital.
- `SUPERPOSITION`: two orbitals with a time dependent relative phase.

Hydrogen (`z = 1`) single orbitals and superpositions always use the
exact hydrogenic wavefunctions.  Hydrogenic results for `z > 1` are
scaled by `1/z` (hydrogen-like ion).

Sampling is CPU bound; `OrbitalSimulation` owns a thread pool so that a
caller (a render loop, a web handler) can bound the wait with
`sample_within` and keep showing the previous frame on timeout.
"""

import concurrent.futures
import enum
import logging
import os
import threading
from dataclasses import dataclass, field, replace
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from .data import (
    ElementCache,
    OrbitalInfo,
    TabulatedElement,
    available_orbitals,
    occupied_orbitals,
    select_orbital,
    select_orbital_pair,
    valence_orbitals,
)
from .hydrogen import AngularBasis, QuantumNumbers
from .radial import (
    generate_isotropic_density_samples,
    generate_weighted_orbital_samples,
    sample_tabulated_orbital,
)
from .reconstruct import orbital_signs, superposition_signs
from .sampling import generate_orbital_samples
from .superposition import (
    OrbitalComponent,
    component_pair,
    generate_superposition_samples,
    hydrogenic_delta_e,
    is_degenerate,
    tabulated_delta_e,
)
from .utils import symbol_for_z

logger = logging.getLogger(__name__)

MIN_COUNT = 1_000
MAX_COUNT = 500_000
MIN_MAX_RADIUS = 1.0
MIN_MIX = 0.05
MAX_MIX = 0.95
MAX_Z = 118


class ViewMode(enum.Enum):
    TOTAL = "total"
    VALENCE = "valence"
    ORBITAL = "orbital"
    SUPERPOSITION = "superposition"

    @classmethod
    def from_query(cls, value: Optional[str]) -> "ViewMode":
        """Parse a view name; unknown names (and `None`) give `TOTAL`.

        >>> ViewMode.from_query("Orbital")
        <ViewMode.ORBITAL: 'orbital'>
        """
        try:
            return cls((value or cls.TOTAL.value).lower())
        except ValueError:
            return cls.TOTAL


class ValenceStyle(enum.Enum):
    SPHERICAL = "spherical"
    ORBITALS = "orbitals"

    @classmethod
    def from_query(cls, value: Optional[str]) -> "ValenceStyle":
        """`"orbitals"` (any case) selects `ORBITALS`, anything else `SPHERICAL`."""
        if value is not None and value.lower() == cls.ORBITALS.value:
            return cls.ORBITALS
        return cls.SPHERICAL


class Source(enum.Enum):
    HYDROGENIC = "hydrogenic"
    TABULATED = "tabulated"


@dataclass
class SampleRequest:
    """Parameters of one view.

    `n2`/`l2` default to `n`/`l`.  Use `clamped` to bring user input
    into the supported ranges.
    """

    n: int = 2
    l: int = 1  # noqa: E741
    m: int = 0
    n2: Optional[int] = None
    l2: Optional[int] = None
    m2: int = 0
    z: int = 1
    count: int = 50_000
    max_radius: float = 20.0
    mode: ViewMode = ViewMode.TOTAL
    mix: float = 0.5
    time: float = 0.0
    valence_style: ValenceStyle = ValenceStyle.SPHERICAL
    basis: AngularBasis = AngularBasis.COMPLEX
    with_psi: bool = False
    with_signs: bool = False

    def clamped(self) -> "SampleRequest":
        """Copy with every parameter inside its supported range.

        >>> r = SampleRequest(n=0, z=200, count=10, max_radius=0.1, mix=1.0)
        >>> r = r.clamped()
        >>> (r.n, r.z, r.count, r.max_radius, r.mix, r.n2, r.l2)
        (1, 118, 1000, 1.0, 0.95, 1, 1)
        """
        n = max(self.n, 1)
        return replace(
            self,
            n=n,
            n2=n if self.n2 is None else self.n2,
            l2=self.l if self.l2 is None else self.l2,
            z=min(max(self.z, 1), MAX_Z),
            count=min(max(self.count, MIN_COUNT), MAX_COUNT),
            max_radius=max(self.max_radius, MIN_MAX_RADIUS),
            mix=min(max(self.mix, MIN_MIX), MAX_MIX),
        )


@dataclass
class SampleResult:
    """Samples of one view together with what was actually rendered.

    `count` is the requested number of points; `shortfall` is how many
    of them an exhausted attempt budget failed to deliver.  The
    quantum numbers are those of the orbitals actually used, which may
    differ from the request when a dataset lacks the requested orbital.
    """

    samples: NDArray
    mode: ViewMode
    source: Source
    count: int
    max_radius: float
    z: int
    n: int
    l: int  # noqa: E741
    m: int
    n2: Optional[int] = None
    l2: Optional[int] = None
    m2: Optional[int] = None
    note: Optional[str] = None
    signs: Optional[NDArray] = None
    psi1: Optional[NDArray] = None
    psi2: Optional[NDArray] = None
    delta_e: Optional[float] = None
    mix: Optional[float] = None
    time: Optional[float] = None
    selected_orbital: Optional[str] = None
    selected_orbital_b: Optional[str] = None
    available_orbitals: List[OrbitalInfo] = field(default_factory=list)

    def __len__(self):
        return len(self.samples)

    @property
    def shortfall(self) -> int:
        """Requested minus returned points (never negative)."""
        return max(self.count - len(self.samples), 0)


def run_with_timeout(executor, fn, *args, timeout=None, fallback=None, **kwargs):
    """Run `fn(*args, **kwargs)` on `executor` and wait at most `timeout` s.

    The call is not cancelled on timeout; it finishes in the background
    and its result is discarded.

    Returns:
            The result of `fn`, or `fallback` if it did not finish in time.

    >>> with concurrent.futures.ThreadPoolExecutor(1) as pool:
    ...     run_with_timeout(pool, sum, [1, 2, 3], timeout=5)
    6
    """
    future = executor.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError:
        logger.warning(
            "%s did not finish within %.3g s; using fallback.",
            getattr(fn, "__name__", fn),
            timeout,
        )
        return fallback


def _scale(samples: NDArray, z: int) -> NDArray:
    if z <= 1:
        return samples
    return (samples * (1.0 / z)).astype(np.float32)


class OrbitalSimulation:
    """Serve orbital views from tabulated element data or hydrogenic models.

    Args:
        cache (ElementCache, optional): Source of tabulated elements;
            without it every view is hydrogenic.
        max_workers (int, optional): Thread pool size, defaults to
            `os.cpu_count()`.
        seed (int, optional): Seed of the per-call random generators.

    Use as a context manager to shut the thread pool down:

    >>> with OrbitalSimulation(seed=1) as sim:
    ...     result = sim.sample(
    ...         SampleRequest(n=1, l=0, count=1000, mode=ViewMode.ORBITAL)
    ...     )
    >>> len(result), result.source, result.note
    (1000, <Source.HYDROGENIC: 'hydrogenic'>, 'hydrogenic (exact)')
    """

    def __init__(
        self,
        cache: Optional[ElementCache] = None,
        max_workers: Optional[int] = None,
        seed: Optional[int] = None,
    ):  # noqa D105
        self.cache = cache
        self.max_workers = max_workers or os.cpu_count() or 1
        self.last_result: Optional[SampleResult] = None
        self._executor = concurrent.futures.ThreadPoolExecutor(self.max_workers)
        self._seeds = np.random.SeedSequence(seed)
        self._seed_lock = threading.Lock()

    def __repr__(self) -> str:  # noqa D105
        return (
            f"OrbitalSimulation(max_workers={self.max_workers}, "
            f"tabulated={self.cache is not None})"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def shutdown(self, wait: bool = True):
        """Stop the thread pool."""
        self._executor.shutdown(wait=wait)

    def _rng(self) -> np.random.Generator:
        with self._seed_lock:
            (child,) = self._seeds.spawn(1)
        return np.random.default_rng(child)

    def submit(self, request: SampleRequest) -> concurrent.futures.Future:
        """Schedule `sample` on the thread pool."""
        return self._executor.submit(self.sample, request)

    def sample_within(
        self,
        request: SampleRequest,
        timeout: float,
        fallback: Optional[SampleResult] = None,
    ) -> Optional[SampleResult]:
        """`sample` bounded by `timeout` seconds.

        On timeout the `fallback` is returned, by default the most recent
        result of this simulation.
        """
        if fallback is None:
            fallback = self.last_result
        return run_with_timeout(
            self._executor, self.sample, request, timeout=timeout, fallback=fallback
        )

    def sample(self, request: SampleRequest) -> SampleResult:
        """Compute the view described by `request`.

        Args:
                request (SampleRequest): The view; clamped before use.

        Returns:
                SampleResult: Samples and metadata.
        """
        request = request.clamped()
        rng = self._rng()
        note = None

        symbol = symbol_for_z(request.z)
        exact_hydrogen = request.z == 1 and request.mode in (
            ViewMode.ORBITAL,
            ViewMode.SUPERPOSITION,
        )
        if self.cache is not None and symbol is not None and not exact_hydrogen:
            element = self._load(symbol)
            if element is None:
                note = "element data unavailable; using hydrogenic"
            else:
                result, note = self._sample_tabulated(request, element, rng)
                if result is not None:
                    return self._finish(result)

        if request.mode == ViewMode.SUPERPOSITION:
            result, note = self._sample_hydrogenic_superposition(request, rng)
            if result is not None:
                return self._finish(result)

        if request.mode != ViewMode.ORBITAL:
            note = "density dataset unavailable; using single orbital"
        elif request.z == 1:
            note = "hydrogenic (exact)"
        return self._finish(self._sample_hydrogenic_orbital(request, note, rng))

    def _finish(self, result: SampleResult) -> SampleResult:
        if result.shortfall > 0:
            logger.warning(
                "%s view returned %d of %d samples.",
                result.mode.value,
                len(result),
                result.count,
            )
        self.last_result = result
        return result

    def _load(self, symbol: str) -> Optional[TabulatedElement]:
        try:
            return self.cache.get_or_load(symbol)
        except (OSError, ValueError, KeyError) as exc:
            logger.warning("Element data for %s unavailable: %s", symbol, exc)
            return None

    def _sample_tabulated(self, request, element, rng):
        """Tabulated view; `(None, note)` when the data cannot serve it."""
        max_r = min(element.r_max, request.max_radius)
        source = element.source or "tabulated"
        base = dict(
            mode=request.mode,
            source=Source.TABULATED,
            count=request.count,
            max_radius=max_r,
            z=request.z,
            n=request.n,
            l=request.l,
            m=request.m,
            available_orbitals=available_orbitals(element),
        )

        if request.mode == ViewMode.TOTAL:
            occupied = occupied_orbitals(element)
            if not occupied:
                return None, "no occupied orbitals in dataset"
            samples = generate_isotropic_density_samples(
                occupied, request.count, max_r, rng=rng
            )
            return (
                SampleResult(
                    samples,
                    note=f"{source} spherical total density "
                    f"({element.total_electrons:.0f}e)",
                    signs=self._unit_signs(request, samples),
                    **base,
                ),
                None,
            )

        if request.mode == ViewMode.VALENCE:
            selection, note = valence_orbitals(element)
            if not selection:
                note = note or "valence set unavailable; using total density"
                selection = occupied_orbitals(element)
            if not selection:
                return None, "no occupied orbitals in dataset"
            if request.valence_style == ValenceStyle.ORBITALS:
                samples = generate_weighted_orbital_samples(
                    selection, request.count, max_r, basis=request.basis, rng=rng
                )
                note = note or f"{source} valence orbitals (m=0 projection)"
            else:
                samples = generate_isotropic_density_samples(
                    selection, request.count, max_r, rng=rng
                )
                note = note or (
                    f"{source} spherical valence density "
                    f"({element.valence_electrons:.0f}e)"
                )
            return (
                SampleResult(
                    samples,
                    note=note,
                    signs=self._unit_signs(request, samples),
                    **base,
                ),
                None,
            )

        if request.mode == ViewMode.ORBITAL:
            selected = select_orbital(element, request.n, request.l)
            if selected is None:
                return None, "orbital not available in dataset"
            orbital, exact = selected
            component = OrbitalComponent.tabulated(orbital, request.m)
            samples = sample_tabulated_orbital(
                orbital, component.m, request.count, max_r, request.basis, rng
            )
            signs = None
            if request.with_signs:
                signs = orbital_signs(samples, component, request.basis)
            if exact:
                note = f"{source} {orbital.label}"
            else:
                note = f"requested n/l not in dataset; using {orbital.label}"
            base.update(n=orbital.n, l=orbital.l, m=component.m)
            return (
                SampleResult(
                    samples,
                    note=note,
                    signs=signs,
                    selected_orbital=orbital.label,
                    **base,
                ),
                None,
            )

        pair = select_orbital_pair(
            element, request.n, request.l, request.n2, request.l2
        )
        if pair is None:
            return None, "superposition orbitals not available"
        orbital_a, exact_a, orbital_b, exact_b = pair
        a = OrbitalComponent.tabulated(orbital_a, request.m)
        b = OrbitalComponent.tabulated(orbital_b, request.m2)
        delta_e = tabulated_delta_e(element, orbital_a, orbital_b)
        result = self._superpose(request, a, b, delta_e, max_r, rng)

        note = f"{source} superposition"
        if not (exact_a and exact_b):
            note += " (closest orbitals used)"
        keys = ((orbital_a.n, orbital_a.l), (orbital_b.n, orbital_b.l))
        if any(key not in element.eigenvalues for key in keys):
            note += " | missing eigenvalues, static phase"
        if is_degenerate(delta_e):
            note += " | degenerate energies, static density"
        base.update(n=orbital_a.n, l=orbital_a.l, m=a.m)
        return (
            SampleResult(
                result.samples,
                n2=orbital_b.n,
                l2=orbital_b.l,
                m2=b.m,
                note=note,
                signs=result.signs,
                psi1=result.psi1,
                psi2=result.psi2,
                delta_e=delta_e,
                mix=request.mix,
                time=request.time,
                selected_orbital=orbital_a.label,
                selected_orbital_b=orbital_b.label,
                **base,
            ),
            None,
        )

    @staticmethod
    def _unit_signs(request, samples):
        if not request.with_signs:
            return None
        return np.ones(len(samples), dtype=np.int8)

    def _superpose(self, request, a, b, delta_e, max_radius, rng):
        sampled = generate_superposition_samples(
            a,
            b,
            request.mix,
            request.time,
            request.count,
            max_radius,
            delta_e,
            with_psi=request.with_psi,
            rng=rng,
            basis=request.basis,
        )
        if request.with_signs:
            sampled.signs = superposition_signs(
                sampled.samples,
                a,
                b,
                request.mix,
                request.time,
                delta_e,
                request.basis,
            )
        else:
            sampled.signs = None
        return sampled

    def _sample_hydrogenic_superposition(self, request, rng):
        qa = QuantumNumbers.new(request.n, request.l, request.m)
        qb = QuantumNumbers.new(request.n2, request.l2, request.m2)
        if qa is None or qb is None:
            return None, "invalid quantum numbers for superposition"

        # Sampled for Z = 1; the phase uses the unscaled splitting.
        delta_e = hydrogenic_delta_e(qa, qb)
        a, b = component_pair(qa, qb, request.max_radius)
        sampled = self._superpose(request, a, b, delta_e, request.max_radius, rng)

        note = "Hydrogenic superposition (time-dependent)"
        if is_degenerate(delta_e):
            note += " | same n -> no time evolution"
        if request.z > 1:
            note += " | hydrogenic approximation scaled by Z"
        result = SampleResult(
            _scale(sampled.samples, request.z),
            mode=ViewMode.SUPERPOSITION,
            source=Source.HYDROGENIC,
            count=request.count,
            max_radius=request.max_radius / request.z,
            z=request.z,
            n=qa.n,
            l=qa.l,
            m=qa.m,
            n2=qb.n,
            l2=qb.l,
            m2=qb.m,
            note=note,
            signs=sampled.signs,
            psi1=sampled.psi1,
            psi2=sampled.psi2,
            delta_e=delta_e,
            mix=request.mix,
            time=request.time,
        )
        return result, None

    def _sample_hydrogenic_orbital(self, request, note, rng):
        base = dict(
            mode=ViewMode.ORBITAL,
            source=Source.HYDROGENIC,
            z=request.z,
            note=note,
        )
        qn = QuantumNumbers.new(request.n, request.l, request.m)
        if qn is None:
            return SampleResult(
                np.empty((0, 3), dtype=np.float32),
                count=0,
                max_radius=request.max_radius,
                n=request.n,
                l=request.l,
                m=request.m,
                **base,
            )

        samples = generate_orbital_samples(
            qn, request.count, request.max_radius, request.basis, rng
        )
        signs = None
        if request.with_signs:
            signs = orbital_signs(samples, qn, request.basis)
        return SampleResult(
            _scale(samples, request.z),
            count=request.count,
            max_radius=request.max_radius / request.z,
            n=qn.n,
            l=qn.l,
            m=qn.m,
            signs=signs,
            **base,
        )
