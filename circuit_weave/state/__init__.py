# flake8: noqa

from .simulation_state import (  # noqa: F401
    ProductState,
    RandomState,
    SimulationState,
    apply,
    apply_gate,
    apply_measurement,
)
