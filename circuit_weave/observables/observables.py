"""
Observable specifications and the track/record registry.

An observable is a callable ``spec(state) -> float``. Tracked observables
live on the state: ``state.observable_specs`` maps names to specs and
``state.observables`` maps names to the list of recorded values.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from circuit_weave.core.kernels import (
    entropy,
    expectation_single,
    projector_product_expectation,
    schmidt_probabilities,
    site_probabilities,
)
from circuit_weave.core.ops import z_operator

if TYPE_CHECKING:
    from circuit_weave.state.simulation_state import SimulationState

logger = logging.getLogger(__name__)


class Observable(ABC):
    @abstractmethod
    def __call__(self, state: "SimulationState") -> float:
        pass


def _check_site(state: "SimulationState", site: int) -> None:
    if not 1 <= site <= state.lattice_size:
        raise ValueError(
            f"Site {site} is outside the lattice 1..{state.lattice_size}"
        )


@dataclass(frozen=True)
class Magnetization(Observable):
    """
    :math:`⟨Z_i⟩` on one site, or the lattice average when `site` is None.
    """

    site: Optional[int] = None

    def __call__(self, state: "SimulationState") -> float:
        tensor = state.tensor
        if self.site is not None:
            _check_site(state, self.site)
            return expectation_single(tensor, z_operator(), self.site - 1)
        values = [
            expectation_single(tensor, z_operator(), axis)
            for axis in range(state.lattice_size)
        ]
        return sum(values) / len(values)


@dataclass(frozen=True)
class BornProbability(Observable):
    """Probability of finding `site` in the basis state `outcome`."""

    site: int
    outcome: int = 0

    def __call__(self, state: "SimulationState") -> float:
        _check_site(state, self.site)
        return float(site_probabilities(state.tensor, self.site - 1)[self.outcome])


@dataclass(frozen=True)
class EntanglementEntropy(Observable):
    """
    Entanglement entropy across the bond between sites `cut` and
    ``cut + 1``. ``order == 1`` is the von Neumann entropy, other orders give
    the Renyi entropy.
    """

    cut: int
    order: float = 1

    def __call__(self, state: "SimulationState") -> float:
        if not 1 <= self.cut < state.lattice_size:
            raise ValueError(
                f"Cut {self.cut} must lie between 1 and {state.lattice_size - 1}"
            )
        return entropy(schmidt_probabilities(state.tensor, self.cut), self.order)


@dataclass(frozen=True)
class DomainWall(Observable):
    """
    Domain wall position weighted by ``(L - j + 1) ** order``.

    Scanning the lattice cyclically from the sampling site ``i1``, ``j`` is the
    position of the first site that reads 1:

    .. math::

        DW = \\sum_j (L - j + 1)^{order}\\, P(\\text{first 1 at position } j)

    The sampling site comes from the ``i1`` argument of the call (or of
    :func:`record`), then from the `i1` field, then from ``i1_fn(state)``.
    """

    order: int
    i1: Optional[int] = None
    i1_fn: Optional[Callable[["SimulationState"], int]] = None

    def __post_init__(self) -> None:
        if isinstance(self.order, bool) or not isinstance(self.order, int) or self.order < 1:
            raise ValueError(f"DomainWall order must be an integer >= 1, got {self.order!r}")

    def sampling_site(self, state: "SimulationState", i1: Optional[int] = None) -> int:
        if i1 is None:
            i1 = self.i1
        if i1 is None and self.i1_fn is not None:
            i1 = self.i1_fn(state)
        if i1 is None:
            raise ValueError(
                "DomainWall needs a sampling site, pass i1 to record() or set "
                "i1 / i1_fn on the observable"
            )
        _check_site(state, i1)
        return i1

    def __call__(self, state: "SimulationState", i1: Optional[int] = None) -> float:
        start = self.sampling_site(state, i1)
        L = state.lattice_size
        axes = [(start - 1 + j) % L for j in range(L)]
        value = 0.0
        for j in range(L):
            weight = float((L - j) ** self.order)
            value += weight * projector_product_expectation(
                state.tensor, axes[:j], axes[j]
            )
        return value


def track(state: "SimulationState", name: str, spec: Observable) -> None:
    """
    Register an observable under `name` with an empty value log.
    """
    if not callable(spec):
        raise ValueError(f"Observable {name!r} must be callable, got {spec!r}")
    if name in state.observable_specs:
        raise ValueError(f"Observable {name!r} is already tracked")
    state.observable_specs[name] = spec
    state.observables[name] = []
    logger.debug("Tracking observable %s: %r", name, spec)


def record(state: "SimulationState", i1: Optional[int] = None) -> None:
    """
    Evaluate every tracked observable and append the values to their logs.
    `i1` is the sampling site handed to :class:`DomainWall` observables.
    """
    for name, spec in state.observable_specs.items():
        if isinstance(spec, DomainWall):
            value = spec(state, i1)
        else:
            value = spec(state)
        state.observables[name].append(value)


def values(state: "SimulationState", name: str) -> List[float]:
    """Recorded values of the observable tracked under `name`."""
    try:
        return state.observables[name]
    except KeyError:
        raise ValueError(
            f"Unknown observable {name!r}, tracked: {sorted(state.observable_specs)}"
        ) from None
