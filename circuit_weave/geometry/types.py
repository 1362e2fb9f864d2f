"""
Geometry descriptors.

A geometry only says *where* a gate goes; it holds no lattice information and
no mutable position. Turning a geometry into concrete sites for a given step
is the job of :mod:`circuit_weave.geometry.resolver`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Boundary(Enum):
    OPEN = "open"
    PERIODIC = "periodic"

    @classmethod
    def parse(cls, value: Union[str, "Boundary"]) -> "Boundary":
        """
        Accepts a Boundary or its string value (``"open"``/``"periodic"``)
        """
        if isinstance(value, Boundary):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Boundary must be 'open' or 'periodic', got {value!r}"
            ) from None


class Geometry:
    """Base class of all geometry descriptors."""

    __slots__ = ()


@dataclass(frozen=True)
class SingleSite(Geometry):
    """One physical site."""

    site: int


@dataclass(frozen=True)
class AdjacentPair(Geometry):
    """
    The pair ``(first, first + 1)``; on a periodic lattice ``first == L``
    wraps to ``(L, 1)``.
    """

    first: int


@dataclass(frozen=True)
class StaircaseRight(Geometry):
    """
    Adjacent pair whose left site moves one site to the right on every step,
    starting at `start` on step 1.
    """

    start: int


@dataclass(frozen=True)
class StaircaseLeft(Geometry):
    """
    Adjacent pair whose left site moves one site to the left on every step,
    starting at `start` on step 1.
    """

    start: int


BRICKLAYER_PARITIES = (
    "odd",
    "even",
    "nnn_odd_1",
    "nnn_odd_2",
    "nnn_even_1",
    "nnn_even_2",
)


@dataclass(frozen=True)
class Bricklayer(Geometry):
    """
    One layer of a brickwork pattern.

    Nearest neighbour parities:

    - ``odd``  -> (1,2), (3,4), ...
    - ``even`` -> (2,3), (4,5), ... plus (L,1) on a periodic lattice

    Next nearest neighbour parities (stride 4):

    - ``nnn_odd_1``  -> (1,3), (5,7), ...
    - ``nnn_odd_2``  -> (3,5), (7,9), ... plus (L-1,1) when periodic
    - ``nnn_even_1`` -> (2,4), (6,8), ...
    - ``nnn_even_2`` -> (4,6), (8,10), ... plus (L,2) when periodic
    """

    parity: str

    def __post_init__(self) -> None:
        if self.parity not in BRICKLAYER_PARITIES:
            raise ValueError(
                f"Bricklayer parity must be one of {BRICKLAYER_PARITIES}, "
                f"got {self.parity!r}"
            )


@dataclass(frozen=True)
class AllSites(Geometry):
    """Every site of the lattice, one element per site."""
