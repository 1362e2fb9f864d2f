"""
Dense lattice state used as the execution backend for circuits.

The state is a complex tensor with one axis of dimension 2 per site. Unitary
gates are contracted onto their target axes; measurement-like gates go
through :meth:`SimulationState.apply_measurement`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, List, Optional, Sequence, Union

import jax.numpy as jnp
import numpy as np

from circuit_weave.circuit_weave import Config
from circuit_weave.core.kernels import (
    apply_op_tensor,
    apply_op_tensor_jit,
    normalize,
    product_state,
    project,
    site_probabilities,
)
from circuit_weave.core.ops import x_operator
from circuit_weave.core.rng import RNGRegistry
from circuit_weave.geometry.types import Boundary
from circuit_weave.observables import observables as tracking
from circuit_weave.observables.observables import Observable
from circuit_weave.operation.gate import Gate, GateType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductState:
    """
    Computational basis product state, either from explicit `bits` (site 1
    first) or from the binary expansion of `x0` in ``[0, 1)`` with site 1 as
    the most significant bit.
    """

    bits: Optional[Sequence[int]] = None
    x0: Optional[Union[Fraction, float]] = None

    def to_bits(self, lattice_size: int) -> List[int]:
        if (self.bits is None) == (self.x0 is None):
            raise ValueError("ProductState needs exactly one of 'bits' or 'x0'")
        if self.bits is not None:
            bits = [int(b) for b in self.bits]
            if len(bits) != lattice_size or any(b not in (0, 1) for b in bits):
                raise ValueError(
                    f"ProductState bits must be {lattice_size} values in {{0, 1}}, "
                    f"got {list(self.bits)}"
                )
            return bits
        x0 = Fraction(self.x0)
        if not 0 <= x0 < 1:
            raise ValueError(f"x0 must lie in [0, 1), got {self.x0}")
        value = int(x0 * (1 << lattice_size))
        return [int(c) for c in format(value, f"0{lattice_size}b")]


@dataclass(frozen=True)
class RandomState:
    """Random normalized state drawn from the ``state_init`` stream."""


class SimulationState:
    """
    Simulation state container.

    Parameters
    ----------
    lattice_size: int
        Number of sites, at least 2
    boundary: Union[str, Boundary]
        ``open`` or ``periodic``
    rng: Optional[RNGRegistry]
        Registry with the named streams (``ctrl``, ``haar``, ``born`` ...)

    Notes
    -----
    ``gate_count`` is the cumulative number of gates executed on this state
    by circuit execution; it only ever grows.
    """

    __slots__ = (
        "_lattice_size",
        "_boundary",
        "rng",
        "tensor",
        "observables",
        "observable_specs",
        "_gate_count",
    )

    def __init__(
        self,
        lattice_size: int,
        boundary: Union[str, Boundary] = Boundary.PERIODIC,
        rng: Optional[RNGRegistry] = None,
    ) -> None:
        if isinstance(lattice_size, bool) or not isinstance(lattice_size, int) or lattice_size < 2:
            raise ValueError(f"Lattice size must be an integer >= 2, got {lattice_size!r}")
        self._lattice_size = lattice_size
        self._boundary = Boundary.parse(boundary)
        self.rng = rng
        self.tensor: Optional[jnp.ndarray] = None
        self.observables: Dict[str, List[float]] = {}
        self.observable_specs: Dict[str, Observable] = {}
        self._gate_count = 0

    def __repr__(self) -> str:
        return (
            f"SimulationState(L={self._lattice_size}, bc={self._boundary.value}, "
            f"initialized={self.is_initialized}, gate_count={self._gate_count})"
        )

    @property
    def lattice_size(self) -> int:
        return self._lattice_size

    @property
    def boundary(self) -> Boundary:
        return self._boundary

    @property
    def is_initialized(self) -> bool:
        return self.tensor is not None

    def amplitudes(self) -> np.ndarray:
        """
        Flat amplitude vector with site 1 as the most significant index.
        """
        return np.asarray(self._require_tensor()).reshape(-1)

    @property
    def gate_count(self) -> int:
        return self._gate_count

    @gate_count.setter
    def gate_count(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"gate_count must be an integer, got {value!r}")
        if value < self._gate_count:
            raise ValueError(
                f"gate_count cannot decrease (from {self._gate_count} to {value})"
            )
        self._gate_count = value

    def initialize(self, initial: Union[ProductState, RandomState]) -> None:
        """
        Set the amplitudes from an initial state description.
        """
        L = self._lattice_size
        match initial:
            case ProductState():
                self.tensor = product_state(initial.to_bits(L))
            case RandomState():
                if self.rng is None:
                    raise ValueError("RandomState requires an RNG registry")
                shape = (2,) * L
                real = self.rng.normal("state_init", shape)
                imag = self.rng.normal("state_init", shape)
                self.tensor = normalize((real + 1j * imag).astype(jnp.complex128))
            case _:
                raise ValueError(f"Unknown initial state {initial!r}")
        logger.debug("Initialized %r with %r", self, initial)

    def _require_tensor(self) -> jnp.ndarray:
        if self.tensor is None:
            raise ValueError("State has not been initialized")
        return self.tensor

    def _axes(self, sites: Sequence[int]) -> tuple:
        for site in sites:
            if not 1 <= site <= self._lattice_size:
                raise ValueError(
                    f"Site {site} is outside the lattice 1..{self._lattice_size}"
                )
        if len(set(sites)) != len(sites):
            raise ValueError(f"Sites must be distinct, got {list(sites)}")
        return tuple(site - 1 for site in sites)

    def apply(self, gate: Gate, sites: Sequence[int]) -> None:
        """
        Apply a unitary gate to the given sites.

        Parameters
        ----------
        gate: Gate
            Gate to apply, must not require measurement semantics
        sites: Sequence[int]
            1-based sites, as many as the gate's support
        """
        tensor = self._require_tensor()
        if gate.requires_measurement:
            raise ValueError(
                f"{gate!r} requires measurement semantics, use apply_measurement"
            )
        if len(sites) != gate.support:
            raise ValueError(
                f"{gate!r} acts on {gate.support} sites, got {list(sites)}"
            )
        axes = self._axes(sites)
        operator = gate.operator(self.rng)
        if Config().use_jit:
            self.tensor = apply_op_tensor_jit(tensor, operator, axes)
        else:
            self.tensor = apply_op_tensor(tensor, operator, axes)

    def measure(self, site: int) -> int:
        """
        Born rule measurement in the Z basis, drawing from the ``born``
        stream. The site is left in the measured basis state.
        """
        tensor = self._require_tensor()
        if self.rng is None:
            raise ValueError("Measurement requires an RNG registry")
        (axis,) = self._axes([site])
        p0 = float(site_probabilities(tensor, axis)[0])
        outcome = 0 if self.rng.draw("born") < p0 else 1
        self.tensor, _ = project(tensor, axis, outcome)
        return outcome

    def apply_measurement(self, gate: Gate, site: int) -> Optional[int]:
        """
        Apply a gate that cannot be written as a unitary operator.

        Projection
            projects onto the requested basis state and renormalizes
        Measurement
            Born rule measurement, returns the outcome
        Reset
            measurement followed by a flip to :math:`|0⟩`, returns the
            measured outcome

        Returns
        -------
        Optional[int]
            Measured outcome, or None for a projection
        """
        tensor = self._require_tensor()
        match gate.gate_type:
            case GateType.Projection:
                (axis,) = self._axes([site])
                projected, weight = project(tensor, axis, gate.kwargs["outcome"])
                if weight == 0.0:
                    raise ValueError(
                        f"Projection onto |{gate.kwargs['outcome']}⟩ at site {site} "
                        "has zero probability"
                    )
                self.tensor = projected
                return None
            case GateType.Measurement:
                return self.measure(site)
            case GateType.Reset:
                outcome = self.measure(site)
                if outcome == 1:
                    (axis,) = self._axes([site])
                    self.tensor = apply_op_tensor(self.tensor, x_operator(), (axis,))
                return outcome
            case _:
                raise ValueError(
                    f"{gate!r} is a unitary gate, use apply instead of apply_measurement"
                )

    def track(self, name: str, spec: Observable) -> None:
        tracking.track(self, name, spec)

    def record(self, i1: Optional[int] = None) -> None:
        self._require_tensor()
        tracking.record(self, i1)


def apply(state: SimulationState, gate: Gate, sites: Sequence[int]) -> None:
    state.apply(gate, sites)


def apply_measurement(state: SimulationState, gate: Gate, site: int) -> Optional[int]:
    return state.apply_measurement(gate, site)


def apply_gate(state: SimulationState, gate: Gate, sites: Sequence[int]) -> Optional[int]:
    """
    Route a gate to :meth:`SimulationState.apply_measurement` when it needs
    measurement semantics and to :meth:`SimulationState.apply` otherwise.
    Returns the measured outcome, if any.
    """
    if gate.requires_measurement:
        return state.apply_measurement(gate, sites[0])
    state.apply(gate, sites)
    return None
