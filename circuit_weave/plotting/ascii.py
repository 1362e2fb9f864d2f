"""
Text diagrams of expanded circuits.

Rows are time steps, columns are qubits::

    Circuit (L=4, bc=periodic, seed=0)

            q1   q2   q3   q4
      1: ┤Rst├───────────────
      2: ─────┤Rst├──────────
"""

from __future__ import annotations

import string
import sys
from typing import List, Optional, TextIO, Tuple

from circuit_weave.circuit.circuit import Circuit, ResolvedOp
from circuit_weave.circuit.expand import expand

Row = Tuple[str, Optional[ResolvedOp]]


def _rows(schedule: List[List[ResolvedOp]]) -> List[Row]:
    rows: List[Row] = []
    for step, ops in enumerate(schedule, start=1):
        if not ops:
            rows.append((f"{step}:", None))
        elif len(ops) == 1:
            rows.append((f"{step}:", ops[0]))
        else:
            for idx, op in enumerate(ops):
                rows.append((f"{step}{_letters(idx)}:", op))
    return rows


def _letters(idx: int) -> str:
    # a..z, then aa, ab, ...
    letters = ""
    idx += 1
    while idx > 0:
        idx, rem = divmod(idx - 1, 26)
        letters = string.ascii_lowercase[rem] + letters
    return letters


def render_circuit(circuit: Circuit, seed: int = 0, unicode: bool = True) -> str:
    """
    Render the schedule ``expand(circuit, seed)`` as a step by qubit grid.

    A gate's label is boxed on the lowest site it acts on, its other sites
    get an empty box. Steps where nothing fired are drawn as plain wire.

    Parameters
    ----------
    circuit: Circuit
        Circuit to draw
    seed: int
        Branch-selection seed passed to :func:`expand`
    unicode: bool
        Box drawing characters (``─ ┤ ├``) when True, ``- |`` otherwise

    Returns
    -------
    str
        The diagram, newline terminated
    """
    wire = "─" if unicode else "-"
    left_box = "┤" if unicode else "|"
    right_box = "├" if unicode else "|"

    rows = _rows(expand(circuit, seed))
    max_label = max([1] + [len(op.label) for _, op in rows if op is not None])
    col_width = max_label + 2
    row_label_width = max(max([0] + [len(label) for label, _ in rows]) + 2, 5)

    def boxed(label: str) -> str:
        padding = col_width - len(label) - 2
        left = padding // 2
        return left_box + wire * left + label + wire * (padding - left) + right_box

    lines = [
        f"Circuit (L={circuit.lattice_size}, bc={circuit.boundary.value}, seed={seed})",
        "",
        " " * row_label_width
        + "".join(f"q{q}".rjust(col_width) for q in range(1, circuit.lattice_size + 1)),
    ]
    for row_label, op in rows:
        cells = []
        for q in range(1, circuit.lattice_size + 1):
            if op is None or q not in op.sites:
                cells.append(wire * col_width)
            elif q == min(op.sites):
                cells.append(boxed(op.label))
            else:
                cells.append(boxed(""))
        lines.append(row_label.rjust(row_label_width - 1) + " " + "".join(cells))
    return "\n".join(lines) + "\n"


def print_circuit(
    circuit: Circuit,
    seed: int = 0,
    file: Optional[TextIO] = None,
    unicode: bool = True,
) -> None:
    """Write :func:`render_circuit` output to `file` (stdout by default)."""
    if file is None:
        file = sys.stdout
    file.write(render_circuit(circuit, seed=seed, unicode=unicode))
