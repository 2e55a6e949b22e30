import sys
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parent.parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def seed():
    return bytes(range(64))


@pytest.fixture
def deriver(seed):
    from wallet import KeyDeriver

    with KeyDeriver(seed) as instance:
        yield instance
