"""
Circuit data model.

A :class:`Circuit` is an immutable step template: a lattice description, an
ordered tuple of operations and the number of steps one pass of the template
spans. Operations form a closed union of :class:`Deterministic` and
:class:`Stochastic`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from circuit_weave.geometry.types import Boundary, Geometry
from circuit_weave.operation.gate import Gate

# The only stream stochastic operations may draw from
CONTROL_STREAM = "ctrl"


@dataclass(frozen=True)
class Outcome:
    """One branch of a stochastic operation."""

    probability: float
    gate: Gate
    geometry: Geometry


@dataclass(frozen=True)
class Deterministic:
    """Gate applied unconditionally on every step."""

    gate: Gate
    geometry: Geometry


@dataclass(frozen=True)
class Stochastic:
    """
    Categorical choice between outcomes. Probability mass that the outcomes
    leave unallocated is the implicit "do nothing" branch.
    """

    stream_key: str
    outcomes: Tuple[Outcome, ...]

    @property
    def total_probability(self) -> float:
        return sum(outcome.probability for outcome in self.outcomes)

    @property
    def do_nothing_probability(self) -> float:
        return max(0.0, 1.0 - self.total_probability)


Operation = Union[Deterministic, Stochastic]


@dataclass(frozen=True)
class Circuit:
    """
    Immutable step template.

    Attributes
    ----------
    lattice_size: int
        Number of sites
    boundary: Boundary
        Boundary condition of the lattice
    operations: Tuple[Operation, ...]
        Operations in the order they act within one step
    repeat_count: int
        Number of steps one pass of the template spans
    """

    lattice_size: int
    boundary: Boundary
    operations: Tuple[Operation, ...]
    repeat_count: int = 1

    @property
    def n_steps(self) -> int:
        return self.repeat_count

    def __len__(self) -> int:
        return len(self.operations)


@dataclass(frozen=True)
class ResolvedOp:
    """
    Fully concrete gate placement produced by expansion. Purely descriptive.
    """

    step: int
    gate: Gate
    sites: Tuple[int, ...]
    label: str
