"""
Symbolic circuits: construction, expansion and execution.
"""

from circuit_weave.circuit.builder import CircuitBuilder, build
from circuit_weave.circuit.circuit import (
    CONTROL_STREAM,
    Circuit,
    Deterministic,
    Operation,
    Outcome,
    ResolvedOp,
    Stochastic,
)
from circuit_weave.circuit.execute import ExecutionSummary, execute
from circuit_weave.circuit.expand import expand
from circuit_weave.circuit.probabilistic import apply_with_prob
from circuit_weave.circuit.recording import (
    RecordingContext,
    RecordingPolicy,
    as_policy,
    every_gate,
    every_n_gates,
    every_n_repetitions,
    every_repetition,
    final_only,
)
from circuit_weave.circuit.selection import select_branch

__all__ = [
    "CONTROL_STREAM",
    "Circuit",
    "CircuitBuilder",
    "Deterministic",
    "ExecutionSummary",
    "Operation",
    "Outcome",
    "RecordingContext",
    "RecordingPolicy",
    "ResolvedOp",
    "Stochastic",
    "apply_with_prob",
    "as_policy",
    "build",
    "every_gate",
    "every_n_gates",
    "every_n_repetitions",
    "every_repetition",
    "execute",
    "expand",
    "final_only",
    "select_branch",
]
