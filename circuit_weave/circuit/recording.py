"""
Recording controller.

A policy is consulted in two places during execution:

- after every gate that fires, with a :class:`RecordingContext`
  (:meth:`RecordingPolicy.check_gate`);
- after every repetition (:meth:`RecordingPolicy.check_repetition`).

Requests made by ``check_gate`` are batched into a single snapshot taken once
the repetition completes, unless the policy is ``immediate`` (every gate).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from circuit_weave.exceptions import ExecutionContractError
from circuit_weave.operation.gate import Gate


@dataclass(frozen=True)
class RecordingContext:
    """
    Created for each gate that actually fires.

    Attributes
    ----------
    repetition_idx: int
        1-based index of the current repetition
    gate_idx: int
        Cumulative gate counter of the state, never reset
    gate_type: Gate
        Gate that fired
    is_boundary: bool
        True only for the last gate of the last operation of the last step of
        the repetition
    """

    repetition_idx: int
    gate_idx: int
    gate_type: Gate
    is_boundary: bool


class RecordingPolicy:
    """Records nothing; subclasses switch on the checks they need."""

    immediate = False

    def check_gate(self, ctx: RecordingContext) -> bool:
        return False

    def check_repetition(self, repetition_idx: int, repeat_count: int) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class EveryRepetition(RecordingPolicy):
    def check_repetition(self, repetition_idx: int, repeat_count: int) -> bool:
        return True


class EveryGate(RecordingPolicy):
    immediate = True

    def check_gate(self, ctx: RecordingContext) -> bool:
        return True


class FinalOnly(RecordingPolicy):
    def check_repetition(self, repetition_idx: int, repeat_count: int) -> bool:
        return repetition_idx == repeat_count


def _check_period(n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ValueError(f"Recording period must be an integer >= 1, got {n!r}")
    return n


class EveryNGates(RecordingPolicy):
    def __init__(self, n: int) -> None:
        self.n = _check_period(n)

    def check_gate(self, ctx: RecordingContext) -> bool:
        return ctx.gate_idx % self.n == 0

    def __repr__(self) -> str:
        return f"EveryNGates({self.n})"


class EveryNRepetitions(RecordingPolicy):
    def __init__(self, n: int) -> None:
        self.n = _check_period(n)

    def check_repetition(self, repetition_idx: int, repeat_count: int) -> bool:
        return repetition_idx % self.n == 0

    def __repr__(self) -> str:
        return f"EveryNRepetitions({self.n})"


class Predicate(RecordingPolicy):
    """Wraps a user function ``(RecordingContext) -> bool``."""

    def __init__(self, predicate: Callable[[RecordingContext], bool]) -> None:
        self.predicate = predicate

    def check_gate(self, ctx: RecordingContext) -> bool:
        return bool(self.predicate(ctx))

    def __repr__(self) -> str:
        return f"Predicate({self.predicate!r})"


every_repetition = EveryRepetition()
every_gate = EveryGate()
final_only = FinalOnly()

PRESETS = {
    "every_repetition": every_repetition,
    "every_gate": every_gate,
    "final_only": final_only,
}


def every_n_gates(n: int) -> RecordingPolicy:
    """Record when the cumulative gate counter is a multiple of `n`."""
    return EveryNGates(n)


def every_n_repetitions(n: int) -> RecordingPolicy:
    """Record after every repetition whose index is a multiple of `n`."""
    return EveryNRepetitions(n)


RecordWhen = Union[
    None, str, RecordingPolicy, Callable[[RecordingContext], bool]
]


def as_policy(record_when: RecordWhen) -> RecordingPolicy:
    """
    Normalize the accepted spellings of a recording directive: ``None``
    (every repetition), a preset name, a policy or a predicate.
    """
    if record_when is None:
        return every_repetition
    if isinstance(record_when, RecordingPolicy):
        return record_when
    if isinstance(record_when, str):
        try:
            return PRESETS[record_when]
        except KeyError:
            raise ExecutionContractError(
                f"Unknown recording preset {record_when!r}, "
                f"valid options: {sorted(PRESETS)}"
            ) from None
    if callable(record_when):
        return Predicate(record_when)
    raise ExecutionContractError(
        f"Recording directive must be a preset name, a RecordingPolicy or a "
        f"callable, got {record_when!r}"
    )
