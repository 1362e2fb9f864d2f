import sys
from pathlib import Path

import pytest

# Ensure local package is imported before any installed version
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def registry():
    from circuit_weave.core.rng import RNGRegistry

    return RNGRegistry(ctrl=42, proj=43, haar=44, born=45, state_init=46)
