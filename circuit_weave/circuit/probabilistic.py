"""
Imperative stochastic application, outside of a circuit.

:func:`apply_with_prob` draws through :func:`select_branch`, so it follows the
same contract as a stochastic circuit operation: exactly one draw, taken
before the probability is compared, whichever branch ends up applied.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from circuit_weave.circuit.circuit import Outcome
from circuit_weave.circuit.selection import select_branch
from circuit_weave.exceptions import ExecutionContractError
from circuit_weave.geometry.resolver import resolve_elements, sites_for_gate
from circuit_weave.geometry.types import Geometry
from circuit_weave.operation.gate import Gate
from circuit_weave.state.simulation_state import apply_gate

if TYPE_CHECKING:
    from circuit_weave.state.simulation_state import SimulationState

logger = logging.getLogger(__name__)


def apply_with_prob(
    state: "SimulationState",
    gate: Gate,
    geometry: Geometry,
    prob: float,
    *,
    rng: str = "ctrl",
    else_branch: Optional[Tuple[Gate, Geometry]] = None,
    step: int = 1,
) -> Optional[Gate]:
    """
    Apply `gate` on `geometry` with probability `prob`, otherwise apply
    `else_branch` (if given).

    Parameters
    ----------
    state: SimulationState
        Initialized state whose registry holds the `rng` stream
    gate: Gate
        Gate applied when the draw ``r`` satisfies ``r < prob``
    geometry: Geometry
        Where `gate` goes; one draw covers every element of a compound geometry
    prob: float
        Probability in ``[0, 1]``
    rng: str
        Name of the stream to draw from
    else_branch: Optional[Tuple[Gate, Geometry]]
        Applied when ``r >= prob``
    step: int
        Step at which moving geometries are resolved

    Returns
    -------
    Optional[Gate]
        The gate that was applied, or None
    """
    if not 0.0 <= prob <= 1.0:
        raise ValueError(f"Probability must lie in [0, 1], got {prob}")
    if state.rng is None:
        raise ExecutionContractError(
            f"apply_with_prob needs the '{rng}' stream but the state has no RNG registry"
        )
    outcomes: List[Outcome] = [Outcome(prob, gate, geometry)]
    if else_branch is not None:
        else_gate, else_geometry = else_branch
        outcomes.append(Outcome(1.0 - prob, else_gate, else_geometry))

    L, bc = state.lattice_size, state.boundary
    placements = [
        [sites_for_gate(sites, o.gate) for sites in resolve_elements(o.geometry, step, L, bc)]
        for o in outcomes
    ]
    # The else branch takes every draw with r >= prob
    if select_branch(state.rng.get_stream(rng), outcomes[:1]) is not None:
        branch = 0
    elif else_branch is not None:
        branch = 1
    else:
        return None
    chosen = outcomes[branch]
    for sites in placements[branch]:
        apply_gate(state, chosen.gate, sites)
    logger.debug("apply_with_prob applied %r on %r", chosen.gate, chosen.geometry)
    return chosen.gate
