"""
Circuit execution against a live simulation state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from circuit_weave.circuit.circuit import Circuit
from circuit_weave.circuit.recording import RecordingContext, RecordWhen, as_policy
from circuit_weave.circuit.selection import iter_step
from circuit_weave.circuit_weave import Config
from circuit_weave.core.rng import RNGStream
from circuit_weave.exceptions import ExecutionContractError
from circuit_weave.geometry.resolver import check_lattice
from circuit_weave.state.simulation_state import apply_gate

if TYPE_CHECKING:
    from circuit_weave.state.simulation_state import SimulationState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionSummary:
    gates_fired: int
    recordings: int
    final_gate_idx: int


def _check_contract(circuit: Circuit, state: "SimulationState", repeat_count: int) -> None:
    if isinstance(repeat_count, bool) or not isinstance(repeat_count, int) or repeat_count < 1:
        raise ExecutionContractError(
            f"repeat_count must be an integer >= 1, got {repeat_count!r}"
        )
    if state.lattice_size != circuit.lattice_size:
        raise ExecutionContractError(
            f"Circuit lattice size {circuit.lattice_size} does not match the "
            f"state lattice size {state.lattice_size}"
        )
    if state.boundary is not circuit.boundary:
        raise ExecutionContractError(
            f"Circuit boundary '{circuit.boundary.value}' does not match the "
            f"state boundary '{state.boundary.value}'"
        )
    if not state.is_initialized:
        raise ExecutionContractError(
            "State has not been initialized, call state.initialize(...) first"
        )


def _stream_lookup(state: "SimulationState"):
    def lookup(stream_key: str) -> RNGStream:
        if state.rng is None:
            raise ExecutionContractError(
                f"Stochastic operation needs the '{stream_key}' stream but the "
                "state has no RNG registry"
            )
        return state.rng.get_stream(stream_key)

    return lookup


def execute(
    circuit: Circuit,
    state: "SimulationState",
    repeat_count: int = 1,
    recording_policy: RecordWhen = None,
    *,
    record_initial: Optional[bool] = None,
) -> ExecutionSummary:
    """
    Run the step template `repeat_count` times on `state`.

    Stochastic operations draw from the state's own ``ctrl`` stream, so a
    state whose registry was created with ``ctrl=s`` follows the same branches
    as ``expand(circuit, s)``.

    Parameters
    ----------
    circuit: Circuit
        Circuit to run
    state: SimulationState
        Initialized state with matching lattice size and boundary
    repeat_count: int
        Number of repetitions of the whole template
    recording_policy: RecordWhen
        ``None`` (every repetition), a preset name (``"every_repetition"``,
        ``"every_gate"``, ``"final_only"``), a :class:`RecordingPolicy` or a
        predicate over :class:`RecordingContext`
    record_initial: Optional[bool]
        Record once before the first gate, defaults to
        ``Config().record_initial``

    Returns
    -------
    ExecutionSummary
        Gates fired, snapshots taken and the final value of the gate counter
    """
    check_lattice(circuit.lattice_size, circuit.boundary)
    _check_contract(circuit, state, repeat_count)
    policy = as_policy(recording_policy)
    if record_initial is None:
        record_initial = Config().record_initial
    streams = _stream_lookup(state)
    n_steps = circuit.repeat_count

    start_idx = state.gate_count
    gate_idx = start_idx
    recordings = 0
    logger.info(
        "Executing circuit: %d repetitions x %d steps, policy %r",
        repeat_count,
        n_steps,
        policy,
    )

    if record_initial:
        state.record()
        recordings += 1

    for repetition_idx in range(1, repeat_count + 1):
        pending = False
        for step in range(1, n_steps + 1):
            for fired in iter_step(circuit, step, streams):
                apply_gate(state, fired.gate, fired.sites)
                gate_idx += 1
                state.gate_count = gate_idx
                ctx = RecordingContext(
                    repetition_idx=repetition_idx,
                    gate_idx=gate_idx,
                    gate_type=fired.gate,
                    is_boundary=fired.closes_step and step == n_steps,
                )
                if policy.check_gate(ctx):
                    if policy.immediate:
                        state.record()
                        recordings += 1
                        logger.debug("Recorded after gate %d", gate_idx)
                    else:
                        pending = True
        if pending or policy.check_repetition(repetition_idx, repeat_count):
            state.record()
            recordings += 1
            logger.debug("Recorded after repetition %d", repetition_idx)

    summary = ExecutionSummary(
        gates_fired=gate_idx - start_idx,
        recordings=recordings,
        final_gate_idx=gate_idx,
    )
    logger.info(
        "Execution finished: %d gates fired, %d recordings",
        summary.gates_fired,
        summary.recordings,
    )
    return summary
