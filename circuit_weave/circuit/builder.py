"""
Circuit builder.

>>> circuit = build(4, "periodic", 10, lambda c: (
...     c.add_deterministic(Reset(), StaircaseRight(1)),
...     c.add_stochastic("ctrl", [(0.5, HaarRandom(), AdjacentPair(2))]),
... ))
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from numbers import Real
from typing import Any, Callable, Iterable, List

from circuit_weave.circuit.circuit import (
    CONTROL_STREAM,
    Circuit,
    Deterministic,
    Operation,
    Outcome,
    Stochastic,
)
from circuit_weave.circuit_weave import Config
from circuit_weave.exceptions import CircuitValidationError
from circuit_weave.geometry.types import Boundary, Geometry
from circuit_weave.operation.gate import Gate

logger = logging.getLogger(__name__)


def _as_outcome(entry: Any, index: int) -> Outcome:
    if isinstance(entry, Outcome):
        outcome = entry
    elif isinstance(entry, Mapping):
        try:
            outcome = Outcome(entry["probability"], entry["gate"], entry["geometry"])
        except KeyError as err:
            raise CircuitValidationError(
                f"Outcome {index} is missing the {err.args[0]!r} entry"
            ) from None
    elif isinstance(entry, tuple) and len(entry) == 3:
        outcome = Outcome(*entry)
    else:
        raise CircuitValidationError(
            f"Outcome {index} must be an Outcome, a (probability, gate, geometry) "
            f"tuple or a mapping, got {entry!r}"
        )
    p = outcome.probability
    if isinstance(p, bool) or not isinstance(p, Real) or not math.isfinite(p):
        raise CircuitValidationError(
            f"Outcome {index} probability must be a finite number, got {p!r}"
        )
    if p < 0:
        raise CircuitValidationError(
            f"Outcome {index} probability must be non-negative, got {p}"
        )
    return Outcome(float(p), outcome.gate, outcome.geometry)


class CircuitBuilder:
    """
    Mutable accumulator handed to the construction callback of :func:`build`.
    Once the circuit is built the builder is closed.
    """

    __slots__ = ("_lattice_size", "_boundary", "_repeat_count", "_operations", "_closed")

    def __init__(
        self, lattice_size: int, boundary: Boundary | str, repeat_count: int = 1
    ) -> None:
        try:
            boundary = Boundary.parse(boundary)
        except ValueError as err:
            raise CircuitValidationError(str(err)) from None
        if isinstance(repeat_count, bool) or not isinstance(repeat_count, int) or repeat_count < 1:
            raise CircuitValidationError(
                f"repeat_count must be an integer >= 1, got {repeat_count!r}"
            )
        self._lattice_size = lattice_size
        self._boundary = boundary
        self._repeat_count = repeat_count
        self._operations: List[Operation] = []
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise CircuitValidationError(
                "The builder has already produced its circuit and cannot be reused"
            )

    @property
    def lattice_size(self) -> int:
        return self._lattice_size

    @property
    def boundary(self) -> Boundary:
        return self._boundary

    def add_deterministic(self, gate: Gate, geometry: Geometry) -> None:
        """
        Append a gate that acts on every step.

        Geometries are not checked here; they are resolved (and fail) during
        expansion or execution.
        """
        self._check_open()
        self._operations.append(Deterministic(gate, geometry))

    def add_stochastic(self, stream_key: str, outcomes: Iterable[Any]) -> None:
        """
        Append a categorical choice between outcomes.

        Parameters
        ----------
        stream_key: str
            RNG stream the decision draws from, only ``"ctrl"`` is accepted
        outcomes: Iterable
            :class:`Outcome` instances, ``(probability, gate, geometry)``
            tuples or mappings with those keys

        Raises
        ------
        CircuitValidationError
            When the stream is not ``"ctrl"``, the outcome list is empty, a
            probability is negative or not a number, or the probabilities sum
            to more than ``1 + Config().probability_tolerance``
        """
        self._check_open()
        index = len(self._operations)
        if stream_key != CONTROL_STREAM:
            raise CircuitValidationError(
                f"Operation {index}: stochastic operations must draw from the "
                f"'{CONTROL_STREAM}' stream, got {stream_key!r}"
            )
        if isinstance(outcomes, (str, bytes)) or not isinstance(outcomes, Iterable):
            raise CircuitValidationError(
                f"Operation {index}: outcomes must be a sequence, got {outcomes!r}"
            )
        checked = tuple(_as_outcome(entry, i) for i, entry in enumerate(outcomes))
        if not checked:
            raise CircuitValidationError(
                f"Operation {index}: stochastic operation needs at least one outcome"
            )
        total = sum(outcome.probability for outcome in checked)
        tolerance = Config().probability_tolerance
        if total > 1.0 + tolerance:
            raise CircuitValidationError(
                f"Operation {index}: outcome probabilities sum to {total}, "
                f"which exceeds 1 (tolerance {tolerance})"
            )
        self._operations.append(Stochastic(stream_key, checked))

    def build(self) -> Circuit:
        self._check_open()
        self._closed = True
        circuit = Circuit(
            lattice_size=self._lattice_size,
            boundary=self._boundary,
            operations=tuple(self._operations),
            repeat_count=self._repeat_count,
        )
        self._operations = []
        return circuit


def build(
    lattice_size: int,
    boundary: Boundary | str,
    repeat_count: int,
    construction: Callable[[CircuitBuilder], Any],
) -> Circuit:
    """
    Build a circuit by handing a fresh :class:`CircuitBuilder` to
    `construction`, which adds operations in the order they act.

    Parameters
    ----------
    lattice_size: int
        Number of sites
    boundary: Boundary | str
        ``"open"`` or ``"periodic"``
    repeat_count: int
        Number of steps one pass of the template spans
    construction: Callable[[CircuitBuilder], Any]
        Callback describing the operations of one step

    Returns
    -------
    Circuit
        Frozen circuit
    """
    builder = CircuitBuilder(lattice_size, boundary, repeat_count)
    construction(builder)
    circuit = builder.build()
    logger.info(
        "Built circuit: L=%s, bc=%s, %d operations, %d steps",
        circuit.lattice_size,
        circuit.boundary.value,
        len(circuit.operations),
        circuit.repeat_count,
    )
    return circuit
