"""
Geometry site resolver.

Pure functions from ``(geometry, step, lattice_size, boundary)`` to sites.
Simple geometries resolve to one site group, compound geometries
(:class:`Bricklayer`, :class:`AllSites`) resolve to a list of independent
element groups. Steps and sites are 1-based.

Moving geometries (staircases) are evaluated as a closed form of the step
index: the position on step ``N`` is the start advanced ``N - 1`` times.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Union

from circuit_weave.exceptions import GeometryResolutionError
from circuit_weave.geometry.types import (
    AdjacentPair,
    AllSites,
    Boundary,
    Bricklayer,
    Geometry,
    SingleSite,
    StaircaseLeft,
    StaircaseRight,
)

if TYPE_CHECKING:
    from circuit_weave.operation.gate import Gate

Sites = List[int]


def is_compound(geometry: Geometry) -> bool:
    """
    Compound geometries fan out into several element groups, each of which
    receives its own gate application (and its own draw when stochastic).
    """
    return isinstance(geometry, (Bricklayer, AllSites))


def _check_lattice(step: int, lattice_size: int, boundary) -> Boundary:
    if not isinstance(step, int) or step < 1:
        raise GeometryResolutionError(f"Step must be an integer >= 1, got {step!r}")
    if not isinstance(lattice_size, int) or lattice_size < 2:
        raise GeometryResolutionError(
            f"Lattice size must be an integer >= 2, got {lattice_size!r}"
        )
    try:
        return Boundary.parse(boundary)
    except ValueError as err:
        raise GeometryResolutionError(str(err)) from None


def check_lattice(lattice_size: int, boundary: Union[str, Boundary]) -> Boundary:
    """
    Validate a lattice description on its own, independent of any geometry.

    Raises
    ------
    GeometryResolutionError
        For a lattice size below 2 or an unknown boundary
    """
    return _check_lattice(1, lattice_size, boundary)


def _pair(first: int, lattice_size: int, boundary: Boundary) -> Sites:
    if first == lattice_size:
        if boundary is Boundary.PERIODIC:
            return [lattice_size, 1]
        raise GeometryResolutionError(
            f"Pair ({first}, {first + 1}) lies beyond the edge of an open "
            f"lattice of size {lattice_size}"
        )
    return [first, first + 1]


def _check_site(site: int, lattice_size: int, what: str) -> None:
    if not isinstance(site, int) or not 1 <= site <= lattice_size:
        raise GeometryResolutionError(
            f"{what} {site!r} is outside the lattice 1..{lattice_size}"
        )


def staircase_position(
    geometry: Union[StaircaseRight, StaircaseLeft],
    step: int,
    lattice_size: int,
    boundary: Union[str, Boundary],
) -> int:
    """
    Position of a staircase pointer on the given step.

    A periodic pointer cycles through ``1..L``; an open pointer cycles
    through ``1..L-1`` since the pair at ``L`` does not exist.

    Parameters
    ----------
    geometry: StaircaseRight | StaircaseLeft
        The staircase
    step: int
        1-based step index
    lattice_size: int
        Number of sites
    boundary: str | Boundary
        Boundary condition

    Returns
    -------
    int
        The left site of the pair acted on in this step
    """
    boundary = _check_lattice(step, lattice_size, boundary)
    cycle = lattice_size if boundary is Boundary.PERIODIC else lattice_size - 1
    start = geometry.start
    if not isinstance(start, int) or not 1 <= start <= cycle:
        raise GeometryResolutionError(
            f"{type(geometry).__name__} start {start!r} is outside 1..{cycle} "
            f"for a {boundary.value} lattice of size {lattice_size}"
        )
    if isinstance(geometry, StaircaseRight):
        return (start - 1 + (step - 1)) % cycle + 1
    return (start - 1 - (step - 1)) % cycle + 1


def _bricklayer_pairs(
    parity: str, lattice_size: int, boundary: Boundary
) -> List[Sites]:
    periodic = boundary is Boundary.PERIODIC
    L = lattice_size
    pairs: List[Sites] = []
    match parity:
        case "odd":
            pairs = [[i, i + 1] for i in range(1, L, 2)]
        case "even":
            pairs = [[i, i + 1] for i in range(2, L, 2)]
            if periodic:
                pairs.append([L, 1])
        case "nnn_odd_1":
            pairs = [[i, i + 2] for i in range(1, L - 1, 4)]
        case "nnn_odd_2":
            pairs = [[i, i + 2] for i in range(3, L - 1, 4)]
            if periodic and L >= 4:
                pairs.append([L - 1, 1])
        case "nnn_even_1":
            pairs = [[i, i + 2] for i in range(2, L - 1, 4)]
        case "nnn_even_2":
            pairs = [[i, i + 2] for i in range(4, L - 1, 4)]
            if periodic and L >= 4:
                pairs.append([L, 2])
        case _:
            raise GeometryResolutionError(f"Unsupported Bricklayer parity {parity!r}")
    return pairs


def resolve(
    geometry: Geometry,
    step: int,
    lattice_size: int,
    boundary: Union[str, Boundary],
) -> Union[Sites, List[Sites]]:
    """
    Resolve a geometry to concrete sites.

    Parameters
    ----------
    geometry: Geometry
        Geometry descriptor
    step: int
        1-based step index
    lattice_size: int
        Number of sites, at least 2
    boundary: str | Boundary
        ``open`` or ``periodic``

    Returns
    -------
    list[int] | list[list[int]]
        One site group for simple geometries, a list of element groups for
        compound geometries

    Raises
    ------
    GeometryResolutionError
        For unsupported geometries and invalid step, lattice or site values
    """
    boundary = _check_lattice(step, lattice_size, boundary)
    match geometry:
        case SingleSite(site=site):
            _check_site(site, lattice_size, "Site")
            return [site]
        case AdjacentPair(first=first):
            _check_site(first, lattice_size, "Pair start")
            return _pair(first, lattice_size, boundary)
        case StaircaseRight() | StaircaseLeft():
            position = staircase_position(geometry, step, lattice_size, boundary)
            return _pair(position, lattice_size, boundary)
        case Bricklayer(parity=parity):
            return _bricklayer_pairs(parity, lattice_size, boundary)
        case AllSites():
            return [[site] for site in range(1, lattice_size + 1)]
        case _:
            raise GeometryResolutionError(
                f"Unsupported geometry {geometry!r} of type {type(geometry).__name__}"
            )


def resolve_elements(
    geometry: Geometry,
    step: int,
    lattice_size: int,
    boundary: Union[str, Boundary],
) -> List[Sites]:
    """
    Like :func:`resolve` but always returns a list of element groups; a simple
    geometry yields exactly one group.
    """
    resolved = resolve(geometry, step, lattice_size, boundary)
    if is_compound(geometry):
        return resolved  # type: ignore[return-value]
    return [resolved]  # type: ignore[list-item]


def sites_for_gate(sites: Sites, gate: "Gate") -> Sites:
    """
    Fit a resolved site group to the support of a gate. A group that is longer
    than the support is cut to its leading sites, so a single-site gate on a
    staircase acts on the pointer site.
    """
    support = gate.support
    if len(sites) < support:
        raise GeometryResolutionError(
            f"{gate!r} acts on {support} sites but the geometry resolved to {sites}"
        )
    return list(sites[:support])
