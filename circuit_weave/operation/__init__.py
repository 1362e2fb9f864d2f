# flake8: noqa

from .gate import (  # noqa: F401
    CZ,
    Gate,
    GateType,
    HaarRandom,
    Measurement,
    PauliX,
    PauliY,
    PauliZ,
    Projection,
    Reset,
)
