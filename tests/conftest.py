import sys
from pathlib import Path

import pytest

# Ensure the project root is on the path for imports in tests
ROOT = Path(__file__).resolve().parents[1]
TESTS = ROOT / "tests"
for p in (ROOT, TESTS):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from helpers import FakeEventSource, FakePipeline  # noqa: E402


@pytest.fixture
def pipeline():
    return FakePipeline()


@pytest.fixture
def events():
    return FakeEventSource()
