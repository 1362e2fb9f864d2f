# flake8: noqa

from .resolver import (  # noqa: F401
    check_lattice,
    is_compound,
    resolve,
    resolve_elements,
    sites_for_gate,
    staircase_position,
)
from .types import (  # noqa: F401
    AdjacentPair,
    AllSites,
    Boundary,
    Bricklayer,
    Geometry,
    SingleSite,
    StaircaseLeft,
    StaircaseRight,
)
