"""Top-level circuit_weave helpers."""

# Pin the PRNG implementation and enable 64 bit floats before any submodule
# creates keys or arrays.

import jax

jax.config.update("jax_default_prng_impl", "threefry2x32")
jax.config.update("jax_enable_x64", True)

from circuit_weave import core, geometry, observables, operation, state  # noqa: E402
from circuit_weave.circuit import (  # noqa: E402
    Circuit,
    CircuitBuilder,
    Deterministic,
    ExecutionSummary,
    Outcome,
    RecordingContext,
    RecordingPolicy,
    ResolvedOp,
    Stochastic,
    apply_with_prob,
    build,
    every_gate,
    every_n_gates,
    every_n_repetitions,
    every_repetition,
    execute,
    expand,
    final_only,
)
from circuit_weave.circuit_weave import Config, Session  # noqa: E402
from circuit_weave.core.rng import RNGRegistry  # noqa: E402
from circuit_weave.exceptions import (  # noqa: E402
    CircuitValidationError,
    ExecutionContractError,
    GeometryResolutionError,
)
from circuit_weave.plotting import print_circuit, render_circuit  # noqa: E402
from circuit_weave.state import (  # noqa: E402
    ProductState,
    RandomState,
    SimulationState,
)

__all__ = [
    "core",
    "geometry",
    "observables",
    "operation",
    "state",
    "Circuit",
    "CircuitBuilder",
    "CircuitValidationError",
    "Config",
    "Deterministic",
    "ExecutionContractError",
    "ExecutionSummary",
    "GeometryResolutionError",
    "Outcome",
    "ProductState",
    "RandomState",
    "RecordingContext",
    "RecordingPolicy",
    "ResolvedOp",
    "RNGRegistry",
    "Session",
    "SimulationState",
    "Stochastic",
    "apply_with_prob",
    "build",
    "every_gate",
    "every_n_gates",
    "every_n_repetitions",
    "every_repetition",
    "execute",
    "expand",
    "final_only",
    "print_circuit",
    "render_circuit",
]
