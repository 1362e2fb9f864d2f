from dataclasses import dataclass

import pytest

from circuit_weave.exceptions import GeometryResolutionError
from circuit_weave.geometry import (
    AdjacentPair,
    AllSites,
    Boundary,
    Bricklayer,
    Geometry,
    SingleSite,
    StaircaseLeft,
    StaircaseRight,
    check_lattice,
    is_compound,
    resolve,
    resolve_elements,
    sites_for_gate,
    staircase_position,
)
from circuit_weave.operation import CZ, PauliX


@dataclass(frozen=True)
class Diagonal(Geometry):
    offset: int


@pytest.mark.parametrize(
    "boundary, expected",
    [
        ("periodic", [[1, 2], [2, 3], [3, 4], [4, 1], [1, 2]]),
        ("open", [[1, 2], [2, 3], [3, 4], [1, 2], [2, 3]]),
    ],
)
def test_staircase_right_advances_every_step(boundary, expected):
    got = [resolve(StaircaseRight(1), step, 4, boundary) for step in range(1, 6)]
    assert got == expected


@pytest.mark.parametrize(
    "boundary, expected",
    [
        ("periodic", [[2, 3], [1, 2], [4, 1], [3, 4], [2, 3]]),
        ("open", [[2, 3], [1, 2], [3, 4], [2, 3], [1, 2]]),
    ],
)
def test_staircase_left_advances_every_step(boundary, expected):
    got = [resolve(StaircaseLeft(2), step, 4, boundary) for step in range(1, 6)]
    assert got == expected


def test_staircase_position_matches_repeated_advance():
    L = 6
    for start in range(1, L + 1):
        position = start
        for step in range(1, 20):
            assert staircase_position(StaircaseRight(start), step, L, "periodic") == position
            position = position % L + 1


def test_staircase_start_out_of_range():
    with pytest.raises(GeometryResolutionError):
        resolve(StaircaseRight(4), 1, 4, "open")
    with pytest.raises(GeometryResolutionError):
        resolve(StaircaseLeft(0), 1, 4, "periodic")


def test_adjacent_pair_wraps_only_when_periodic():
    assert resolve(AdjacentPair(2), 1, 4, Boundary.OPEN) == [2, 3]
    assert resolve(AdjacentPair(4), 1, 4, Boundary.PERIODIC) == [4, 1]
    with pytest.raises(GeometryResolutionError, match="beyond the edge"):
        resolve(AdjacentPair(4), 1, 4, Boundary.OPEN)


def test_single_site_is_step_independent():
    assert all(resolve(SingleSite(3), step, 4, "open") == [3] for step in range(1, 5))
    with pytest.raises(GeometryResolutionError):
        resolve(SingleSite(5), 1, 4, "open")


@pytest.mark.parametrize(
    "parity, L, boundary, expected",
    [
        ("odd", 4, "open", [[1, 2], [3, 4]]),
        ("odd", 5, "periodic", [[1, 2], [3, 4]]),
        ("even", 4, "open", [[2, 3]]),
        ("even", 4, "periodic", [[2, 3], [4, 1]]),
        ("nnn_odd_1", 8, "open", [[1, 3], [5, 7]]),
        ("nnn_odd_2", 8, "open", [[3, 5]]),
        ("nnn_odd_2", 8, "periodic", [[3, 5], [7, 1]]),
        ("nnn_even_1", 8, "open", [[2, 4], [6, 8]]),
        ("nnn_even_2", 8, "periodic", [[4, 6], [8, 2]]),
    ],
)
def test_bricklayer_pairs(parity, L, boundary, expected):
    assert resolve(Bricklayer(parity), 1, L, boundary) == expected


def test_bricklayer_rejects_unknown_parity():
    with pytest.raises(ValueError):
        Bricklayer("diagonal")


def test_all_sites_is_compound():
    assert resolve(AllSites(), 3, 3, "open") == [[1], [2], [3]]
    assert is_compound(AllSites())
    assert is_compound(Bricklayer("odd"))
    assert not is_compound(StaircaseRight(1))


def test_resolve_elements_wraps_simple_geometries():
    assert resolve_elements(SingleSite(2), 1, 4, "open") == [[2]]
    assert resolve_elements(Bricklayer("odd"), 1, 4, "open") == [[1, 2], [3, 4]]


@pytest.mark.parametrize(
    "step, L, boundary",
    [(0, 4, "open"), (-1, 4, "periodic"), (1, 1, "open"), (1, 4, "twisted")],
)
def test_invalid_lattice_arguments(step, L, boundary):
    with pytest.raises(GeometryResolutionError):
        resolve(SingleSite(1), step, L, boundary)


def test_unsupported_geometry_fails_at_resolution():
    geometry = Diagonal(1)
    with pytest.raises(GeometryResolutionError, match="Unsupported geometry"):
        resolve(geometry, 1, 4, "open")


def test_sites_for_gate_trims_to_support():
    assert sites_for_gate([2, 3], PauliX()) == [2]
    assert sites_for_gate([2, 3], CZ()) == [2, 3]
    with pytest.raises(GeometryResolutionError):
        sites_for_gate([1], CZ())


def test_check_lattice():
    assert check_lattice(2, "open") is Boundary.OPEN
    assert check_lattice(5, Boundary.PERIODIC) is Boundary.PERIODIC
    for L, boundary in [(1, "open"), (0, "periodic"), (2.0, "open"), (4, "twisted")]:
        with pytest.raises(GeometryResolutionError):
            check_lattice(L, boundary)
