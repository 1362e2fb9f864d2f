"""
Branch selection and the per-step walk shared by expansion and execution.

Both :func:`circuit_weave.circuit.expand.expand` and
:func:`circuit_weave.circuit.execute.execute` obtain the gates of a step from
:func:`iter_step`, so the two paths consume random draws in exactly the same
order:

- a deterministic operation never draws;
- a stochastic operation over simple geometries draws exactly once;
- a stochastic operation over compound geometries draws once per element,
  in element order.

Every outcome of a stochastic operation is resolved before its draw, so an
invalid geometry fails regardless of which branch the seed selects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from circuit_weave.circuit.circuit import Circuit, Deterministic, Outcome, Stochastic
from circuit_weave.core.rng import RNGStream
from circuit_weave.exceptions import GeometryResolutionError
from circuit_weave.geometry.resolver import (
    is_compound,
    resolve,
    resolve_elements,
    sites_for_gate,
)
from circuit_weave.operation.gate import Gate

StreamLookup = Callable[[str], RNGStream]


def select_branch(stream: RNGStream, outcomes: Sequence[Outcome]) -> Optional[Outcome]:
    """
    Draw one uniform sample ``r`` and return the first outcome whose
    cumulative probability exceeds ``r`` (strict ``r < cumulative``), or
    ``None`` for the "do nothing" branch.

    The draw always happens, whichever branch ends up selected.
    """
    r = stream.draw()
    cumulative = 0.0
    for outcome in outcomes:
        cumulative += outcome.probability
        if r < cumulative:
            return outcome
    return None


@dataclass(frozen=True)
class FiredGate:
    """
    A gate that fires within a step.

    ``closes_step`` is set on the gate produced by the last element of the
    last operation of the step.
    """

    operation_index: int
    gate: Gate
    sites: Tuple[int, ...]
    closes_step: bool


def _compound_elements(
    operation: Stochastic, step: int, circuit: Circuit
) -> List[List[int]]:
    if not all(is_compound(outcome.geometry) for outcome in operation.outcomes):
        raise GeometryResolutionError(
            "stochastic outcomes mix compound and non-compound geometries"
        )
    resolved = [
        resolve_elements(o.geometry, step, circuit.lattice_size, circuit.boundary)
        for o in operation.outcomes
    ]
    for elements in resolved[1:]:
        if elements != resolved[0]:
            raise GeometryResolutionError(
                "compound outcomes of one stochastic operation must resolve to "
                f"the same elements, got {resolved[0]} and {elements}"
            )
    return resolved[0]


def _fitted_sites(
    outcomes: Sequence[Outcome], groups: Sequence[List[int]]
) -> List[List[int]]:
    # Every outcome is fitted before the draw, so a bad branch fails for any seed
    return [sites_for_gate(sites, o.gate) for o, sites in zip(outcomes, groups)]


def _index_of(outcomes: Sequence[Outcome], chosen: Outcome) -> int:
    return next(i for i, o in enumerate(outcomes) if o is chosen)


def _walk_operation(
    circuit: Circuit,
    step: int,
    operation,
    streams: StreamLookup,
) -> Iterator[Tuple[Gate, List[int], bool]]:
    L, bc = circuit.lattice_size, circuit.boundary
    match operation:
        case Deterministic(gate=gate, geometry=geometry):
            elements = resolve_elements(geometry, step, L, bc)
            for i, sites in enumerate(elements):
                yield gate, sites_for_gate(sites, gate), i == len(elements) - 1
        case Stochastic(stream_key=stream_key, outcomes=outcomes):
            stream = streams(stream_key)
            if any(is_compound(o.geometry) for o in outcomes):
                elements = _compound_elements(operation, step, circuit)
                fitted = [
                    _fitted_sites(outcomes, [sites] * len(outcomes))
                    for sites in elements
                ]
                for i in range(len(elements)):
                    chosen = select_branch(stream, outcomes)
                    if chosen is not None:
                        yield (
                            chosen.gate,
                            fitted[i][_index_of(outcomes, chosen)],
                            i == len(elements) - 1,
                        )
            else:
                groups = [resolve(o.geometry, step, L, bc) for o in outcomes]
                fitted = _fitted_sites(outcomes, groups)
                chosen = select_branch(stream, outcomes)
                if chosen is not None:
                    yield chosen.gate, fitted[_index_of(outcomes, chosen)], True
        case _:
            raise TypeError(f"Unknown operation {operation!r}")


def iter_step(
    circuit: Circuit, step: int, streams: StreamLookup
) -> Iterator[FiredGate]:
    """
    Yield the gates that fire during `step`, in order. Draws are taken
    lazily, right before the corresponding gate is yielded.

    Parameters
    ----------
    circuit: Circuit
        Circuit to walk
    step: int
        1-based step index
    streams: Callable[[str], RNGStream]
        Maps a stream key to the stream stochastic operations draw from

    Raises
    ------
    GeometryResolutionError
        With operation index and step prepended to the message
    """
    last_index = len(circuit.operations) - 1
    for index, operation in enumerate(circuit.operations):
        walker = _walk_operation(circuit, step, operation, streams)
        while True:
            try:
                gate, sites, last_element = next(walker)
            except StopIteration:
                break
            except GeometryResolutionError as err:
                raise GeometryResolutionError(
                    f"operation {index} at step {step}: {err}"
                ) from err
            yield FiredGate(
                operation_index=index,
                gate=gate,
                sites=tuple(sites),
                closes_step=last_element and index == last_index,
            )
