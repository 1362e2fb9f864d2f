"""
Gate catalog
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Tuple

import jax.numpy as jnp

from circuit_weave.core.ops import (
    controlled_z_operator,
    haar_unitary,
    projection_operator,
    x_operator,
    y_operator,
    z_operator,
)

if TYPE_CHECKING:
    from circuit_weave.core.rng import RNGRegistry


class GateType(Enum):
    """
    Gate Types
    first value in tuple is the number of sites the gate acts on, second
    signals that the gate needs measurement semantics (it is routed to
    ``apply_measurement`` instead of ``apply``), third is a list of required
    parameters and fourth the label used in diagrams

    Notes
    -----
    Last element in Tuples is required (to be unique),
    because if two tuples are the same it is assigned
    the same pointer and comparisons don't work then
    """

    PauliX = (1, False, [], "X", 1)
    PauliY = (1, False, [], "Y", 2)
    PauliZ = (1, False, [], "Z", 3)
    CZ = (2, False, [], "CZ", 4)
    HaarRandom = (2, False, [], "Haar", 5)
    Projection = (1, True, ["outcome"], "P", 6)
    Measurement = (1, True, ["axis"], "Meas", 7)
    Reset = (1, True, [], "Rst", 8)

    def __init__(
        self,
        support: int,
        requires_measurement: bool,
        required_params: list,
        base_label: str,
        gate_id: int,
    ) -> None:
        self.support = support
        self.requires_measurement = requires_measurement
        self.required_params = required_params
        self.base_label = base_label

    def compute_operator(
        self, rng: Optional["RNGRegistry"] = None, **kwargs: Any
    ) -> jnp.ndarray:
        """
        Generates the operator for this gate

        Parameters
        ----------
        rng: Optional[RNGRegistry]
            Registry providing the ``haar`` stream, required for HaarRandom
        **kwargs: Any
            Gate parameters
        """
        match self:
            case GateType.PauliX:
                return x_operator()
            case GateType.PauliY:
                return y_operator()
            case GateType.PauliZ:
                return z_operator()
            case GateType.CZ:
                return controlled_z_operator()
            case GateType.HaarRandom:
                if rng is None:
                    raise ValueError("HaarRandom requires an RNG registry")
                n = 4
                real = rng.normal("haar", (n, n))
                imag = rng.normal("haar", (n, n))
                return haar_unitary(real, imag)
            case GateType.Projection:
                return projection_operator(kwargs["outcome"])
            case _:
                raise ValueError(
                    f"{self.name} cannot be built as a single operator, "
                    "it has to be applied through apply_measurement"
                )


class Gate:
    """
    A gate is a gate type together with its parameters. Gates carry no state
    and compare equal when type and parameters match.

    >>> Gate(GateType.Projection, outcome=1)
    Projection(outcome=1)
    """

    __slots__ = ("_gate_type", "kwargs")

    def __init__(self, gate_type: GateType, **kwargs: Any) -> None:
        for param in gate_type.required_params:
            if param not in kwargs:
                raise KeyError(
                    f"The '{param}' argument is required for {gate_type.name}"
                )
        if gate_type is GateType.Projection and kwargs["outcome"] not in (0, 1):
            raise ValueError(
                f"Projection outcome must be 0 or 1, got {kwargs['outcome']}"
            )
        if gate_type is GateType.Measurement and kwargs["axis"] != "Z":
            raise ValueError(
                f"Only the 'Z' axis is supported for Measurement, got {kwargs['axis']}"
            )
        self._gate_type = gate_type
        self.kwargs = kwargs

    def _key(self) -> Tuple[GateType, Tuple[Tuple[str, Any], ...]]:
        return (self._gate_type, tuple(sorted(self.kwargs.items())))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gate):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        if not self.kwargs:
            return f"{self._gate_type.name}()"
        params = ", ".join(f"{k}={v!r}" for k, v in sorted(self.kwargs.items()))
        return f"{self._gate_type.name}({params})"

    @property
    def gate_type(self) -> GateType:
        return self._gate_type

    @property
    def support(self) -> int:
        return self._gate_type.support

    @property
    def requires_measurement(self) -> bool:
        return self._gate_type.requires_measurement

    @property
    def label(self) -> str:
        if self._gate_type is GateType.Projection:
            return f"{self._gate_type.base_label}{self.kwargs['outcome']}"
        return self._gate_type.base_label

    def operator(self, rng: Optional["RNGRegistry"] = None) -> jnp.ndarray:
        return self._gate_type.compute_operator(rng, **self.kwargs)


class PauliX(Gate):
    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(GateType.PauliX)


class PauliY(Gate):
    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(GateType.PauliY)


class PauliZ(Gate):
    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(GateType.PauliZ)


class CZ(Gate):
    """Controlled-Z, symmetric under exchange of its two sites."""

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(GateType.CZ)


class HaarRandom(Gate):
    """
    Two-site Haar random unitary. A fresh unitary is drawn from the ``haar``
    stream every time the gate is applied.
    """

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(GateType.HaarRandom)


class Projection(Gate):
    """
    Projector :math:`|outcome⟩⟨outcome|` followed by renormalization.
    """

    __slots__ = ()

    def __init__(self, outcome: int) -> None:
        super().__init__(GateType.Projection, outcome=outcome)


class Measurement(Gate):
    """
    Projective measurement in the Z basis; the outcome is sampled from the
    Born probabilities using the ``born`` stream and the site is left in the
    measured basis state.
    """

    __slots__ = ()

    def __init__(self, axis: str = "Z") -> None:
        super().__init__(GateType.Measurement, axis=axis)


class Reset(Gate):
    """
    Measure in the Z basis and flip to :math:`|0⟩` if the outcome was 1.
    """

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(GateType.Reset)

