"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Fixed capture time used by the seeded demo snapshot
CAPTURED_AT_NS = 1_700_000_000_000_000_000


@pytest_asyncio.fixture
async def store():
    """Create in-memory snapshot store for testing."""
    from snapinspect.storage import SnapshotStore

    st = SnapshotStore(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def client(store):
    """Create query client over the in-memory store."""
    from snapinspect.query import LocalQueryClient

    return LocalQueryClient(store)


@pytest_asyncio.fixture
async def seeded_snapshot(store):
    """Seed the demo scenario and return its snapshot id."""
    from sim import Sim

    return await Sim(captured_at_ns=CAPTURED_AT_NS).seed(store)


@pytest.fixture
def inspector(client):
    """Create SnapshotInspector over the local client."""
    from snapinspect.inspector import SnapshotInspector

    return SnapshotInspector(client)

