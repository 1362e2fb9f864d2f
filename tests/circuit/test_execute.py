import numpy as np
import pytest

from circuit_weave.circuit import build, every_n_gates, execute, expand
from circuit_weave.circuit_weave import Session
from circuit_weave.core.rng import RNGRegistry
from circuit_weave.exceptions import ExecutionContractError, GeometryResolutionError
from circuit_weave.geometry import (
    AdjacentPair,
    AllSites,
    Bricklayer,
    SingleSite,
    StaircaseLeft,
    StaircaseRight,
)
from circuit_weave.observables import Magnetization
from circuit_weave.operation import CZ, PauliX, PauliY, PauliZ, Reset
from circuit_weave.state import ProductState, SimulationState


def _rng(ctrl=42):
    return RNGRegistry(ctrl=ctrl, proj=1, haar=2, born=3)


def _state(L=4, boundary="periodic", ctrl=42, bits=None):
    state = SimulationState(L, boundary, rng=_rng(ctrl))
    state.initialize(ProductState(bits=bits or [0] * L))
    state.track("mz", Magnetization())
    return state


def _three_gates():
    return build(
        4,
        "periodic",
        1,
        lambda c: (
            c.add_deterministic(PauliX(), SingleSite(1)),
            c.add_deterministic(PauliZ(), SingleSite(2)),
            c.add_deterministic(CZ(), AdjacentPair(1)),
        ),
    )


class GateLog:
    """Predicate that records every context and never asks for a snapshot."""

    def __init__(self):
        self.contexts = []

    def __call__(self, ctx):
        self.contexts.append(ctx)
        return False


def test_alignment_between_expand_and_execute():
    circuit = build(
        4,
        "periodic",
        10,
        lambda c: c.add_stochastic(
            "ctrl",
            [(0.5, PauliX(), StaircaseRight(1)), (0.5, PauliY(), StaircaseLeft(2))],
        ),
    )
    schedule = expand(circuit, 42)
    assert all(len(ops) == 1 for ops in schedule)

    executed = _state(bits=[0, 1, 1, 0], ctrl=42)
    log = GateLog()
    execute(circuit, executed, 1, log)
    assert [ctx.gate_type for ctx in log.contexts] == [
        ops[0].gate for ops in schedule
    ]

    replayed = _state(bits=[0, 1, 1, 0])
    for ops in schedule:
        for op in ops:
            replayed.apply(op.gate, op.sites)
    np.testing.assert_allclose(executed.amplitudes(), replayed.amplitudes())


def test_gate_counter_matches_hand_count():
    circuit = build(
        4,
        "periodic",
        3,
        lambda c: (
            c.add_deterministic(PauliX(), StaircaseRight(1)),
            c.add_deterministic(CZ(), Bricklayer("odd")),
        ),
    )
    state = _state()
    log = GateLog()
    summary = execute(circuit, state, 2, log)
    # 3 gates per step, 3 steps per repetition, 2 repetitions
    assert summary.gates_fired == 18
    assert summary.final_gate_idx == 18
    assert state.gate_count == 18
    assert [ctx.gate_idx for ctx in log.contexts] == list(range(1, 19))


def test_gate_counter_skips_do_nothing_branches():
    circuit = build(
        4,
        "periodic",
        12,
        lambda c: c.add_stochastic("ctrl", [(0.4, PauliX(), SingleSite(1))]),
    )
    fired = sum(len(ops) for ops in expand(circuit, 7))
    state = _state(ctrl=7)
    summary = execute(circuit, state)
    assert summary.gates_fired == fired
    assert state.gate_count == fired


def test_gate_counter_persists_across_executions():
    circuit = _three_gates()
    state = _state()
    execute(circuit, state, 2)
    log = GateLog()
    summary = execute(circuit, state, 1, log)
    assert [ctx.gate_idx for ctx in log.contexts] == [7, 8, 9]
    assert summary.gates_fired == 3
    assert summary.final_gate_idx == 9


@pytest.mark.parametrize(
    "policy, repeat_count, expected",
    [
        ("every_repetition", 5, 5),
        (None, 5, 5),
        ("final_only", 5, 1),
        (every_n_gates(3), 4, 4),
        ("every_gate", 2, 6),
    ],
)
def test_recording_counts(policy, repeat_count, expected):
    state = _state()
    summary = execute(_three_gates(), state, repeat_count, policy)
    assert summary.recordings == expected
    assert len(state.observables["mz"]) == expected


def test_every_n_gates_batches_within_repetition():
    state = _state()
    summary = execute(_three_gates(), state, 2, every_n_gates(1))
    assert summary.recordings == 2


def test_every_repetition_records_when_last_operation_does_nothing():
    circuit = build(
        4,
        "periodic",
        1,
        lambda c: (
            c.add_deterministic(PauliX(), SingleSite(1)),
            c.add_stochastic("ctrl", [(0.0, PauliZ(), SingleSite(1))]),
        ),
    )
    state = _state()
    summary = execute(circuit, state, 3)
    assert summary.gates_fired == 3
    assert summary.recordings == 3


def test_is_boundary_only_on_last_gate_of_repetition():
    circuit = build(
        4,
        "periodic",
        2,
        lambda c: (
            c.add_deterministic(PauliZ(), SingleSite(1)),
            c.add_deterministic(CZ(), Bricklayer("odd")),
        ),
    )
    log = GateLog()
    execute(circuit, _state(), 2, log)
    flags = [ctx.is_boundary for ctx in log.contexts]
    assert flags == [False, False, False, False, False, True] * 2
    assert [ctx.repetition_idx for ctx in log.contexts] == [1] * 6 + [2] * 6


def test_boundary_predicate_records_once_per_repetition():
    state = _state()
    summary = execute(_three_gates(), state, 3, lambda ctx: ctx.is_boundary)
    assert summary.recordings == 3


def test_record_initial():
    state = _state()
    summary = execute(_three_gates(), state, 2, "final_only", record_initial=True)
    assert summary.recordings == 2
    assert state.observables["mz"][0] == pytest.approx(1.0)
    with Session(record_initial=True):
        summary = execute(_three_gates(), _state(), 2, "final_only")
    assert summary.recordings == 2


def test_circuit_is_reusable_across_states():
    circuit = _three_gates()
    a, b = _state(), _state()
    execute(circuit, a, 3)
    execute(circuit, b, 3)
    np.testing.assert_allclose(a.amplitudes(), b.amplitudes())
    assert a.observables["mz"] == b.observables["mz"]


@pytest.mark.parametrize("repeat_count", [0, -2])
def test_invalid_repeat_count(repeat_count):
    with pytest.raises(ExecutionContractError):
        execute(_three_gates(), _state(), repeat_count)


def test_lattice_mismatch():
    with pytest.raises(ExecutionContractError, match="lattice size"):
        execute(_three_gates(), _state(L=5, bits=[0] * 5))


def test_boundary_mismatch():
    with pytest.raises(ExecutionContractError, match="boundary"):
        execute(_three_gates(), _state(boundary="open"))


def test_uninitialized_state():
    state = SimulationState(4, "periodic", rng=_rng())
    with pytest.raises(ExecutionContractError, match="initialized"):
        execute(_three_gates(), state)


def test_unknown_preset():
    with pytest.raises(ExecutionContractError):
        execute(_three_gates(), _state(), 1, "every_other_tuesday")


def test_stochastic_without_registry():
    circuit = build(
        4, "periodic", 1, lambda c: c.add_stochastic("ctrl", [(1.0, PauliX(), SingleSite(1))])
    )
    state = SimulationState(4, "periodic")
    state.initialize(ProductState(bits=[0, 0, 0, 0]))
    with pytest.raises(ExecutionContractError, match="no RNG registry"):
        execute(circuit, state)


@pytest.mark.parametrize("seed", [0, 1, 42, 2024])
def test_alignment_for_compound_stochastic(seed):
    circuit = build(
        4,
        "periodic",
        6,
        lambda c: c.add_stochastic("ctrl", [(0.5, PauliX(), AllSites())]),
    )
    schedule = expand(circuit, seed)
    trace = [op for ops in schedule for op in ops]

    executed = _state(bits=[1, 0, 0, 0], ctrl=seed)
    log = GateLog()
    summary = execute(circuit, executed, 1, log)
    assert summary.gates_fired == len(trace)
    assert [ctx.gate_type for ctx in log.contexts] == [op.gate for op in trace]

    replayed = _state(bits=[1, 0, 0, 0])
    for op in trace:
        replayed.apply(op.gate, op.sites)
    np.testing.assert_allclose(executed.amplitudes(), replayed.amplitudes())


def test_measurement_gates_are_routed_to_apply_measurement(monkeypatch):
    calls = []
    measure = SimulationState.apply_measurement
    unitary = SimulationState.apply

    def logged_measurement(self, gate, site):
        calls.append(("measurement", gate, site))
        return measure(self, gate, site)

    def logged_apply(self, gate, sites):
        calls.append(("apply", gate, tuple(sites)))
        return unitary(self, gate, sites)

    monkeypatch.setattr(SimulationState, "apply_measurement", logged_measurement)
    monkeypatch.setattr(SimulationState, "apply", logged_apply)

    circuit = build(
        4,
        "periodic",
        4,
        lambda c: (
            c.add_deterministic(Reset(), StaircaseRight(1)),
            c.add_deterministic(PauliX(), SingleSite(3)),
        ),
    )
    state = _state(bits=[1, 1, 1, 1])
    log = GateLog()
    summary = execute(circuit, state, 1, log)

    assert calls == [
        entry
        for site in (1, 2, 3, 4)
        for entry in (("measurement", Reset(), site), ("apply", PauliX(), (3,)))
    ]
    assert [ctx.gate_idx for ctx in log.contexts] == list(range(1, 9))
    assert [ctx.gate_type for ctx in log.contexts] == [Reset(), PauliX()] * 4
    assert summary.final_gate_idx == 8

    # Each reset lands on |0⟩, X on site 3 fires four times
    expected = SimulationState(4, "periodic")
    expected.initialize(ProductState(bits=[0, 0, 0, 0]))
    np.testing.assert_allclose(state.amplitudes(), expected.amplitudes())


@pytest.mark.parametrize(
    "operation",
    [
        lambda c: c.add_stochastic("ctrl", [(0.0, PauliX(), SingleSite(1))]),
        lambda c: c.add_deterministic(PauliZ(), SingleSite(1)),
    ],
)
def test_single_site_lattice_rejected(operation):
    circuit = build(1, "open", 2, operation)
    state = SimulationState(2, "open", rng=_rng())
    state.initialize(ProductState(bits=[0, 0]))
    with pytest.raises(GeometryResolutionError, match="Lattice size"):
        execute(circuit, state)
    assert state.gate_count == 0
