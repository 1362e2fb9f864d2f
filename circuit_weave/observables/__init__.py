# flake8: noqa

from .observables import (  # noqa: F401
    BornProbability,
    DomainWall,
    EntanglementEntropy,
    Magnetization,
    Observable,
    record,
    track,
    values,
)
