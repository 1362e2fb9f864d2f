"""
Circuit expansion: symbolic template -> concrete, inspectable schedule.
"""

from __future__ import annotations

import logging
from typing import List

from circuit_weave.circuit.circuit import Circuit, ResolvedOp
from circuit_weave.circuit.selection import iter_step
from circuit_weave.core.rng import RNGStream
from circuit_weave.geometry.resolver import check_lattice

logger = logging.getLogger(__name__)


def expand(circuit: Circuit, seed: int = 0) -> List[List[ResolvedOp]]:
    """
    Resolve every step of `circuit` into concrete gate placements without
    touching any quantum state.

    A single fresh :class:`RNGStream` seeded with `seed` serves every
    stochastic operation. Executing the circuit on a state whose ``ctrl``
    stream has the same seed selects the same branches.

    Parameters
    ----------
    circuit: Circuit
        Circuit to expand
    seed: int
        Seed of the branch-selection stream

    Returns
    -------
    List[List[ResolvedOp]]
        One list per step (``circuit.repeat_count`` of them); a step in which
        nothing fires yields an empty list

    Raises
    ------
    GeometryResolutionError
        For an invalid lattice, or a geometry that cannot be resolved; the
        latter carries the operation index and step
    """
    check_lattice(circuit.lattice_size, circuit.boundary)
    stream = RNGStream(seed, name="ctrl")
    schedule: List[List[ResolvedOp]] = []
    for step in range(1, circuit.repeat_count + 1):
        schedule.append(
            [
                ResolvedOp(
                    step=step, gate=fired.gate, sites=fired.sites, label=fired.gate.label
                )
                for fired in iter_step(circuit, step, lambda _key: stream)
            ]
        )
    logger.debug(
        "Expanded circuit with seed %s: %d steps, %d resolved operations, %d draws",
        seed,
        len(schedule),
        sum(len(ops) for ops in schedule),
        stream.draws,
    )
    return schedule
