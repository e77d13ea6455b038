"""Fixtures for integration tests against a live node.

Set ``TZMETA_INTEGRATION_NODE_URL`` and ``TZMETA_INTEGRATION_CONTRACT`` (any
originated contract) to run them.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from tzmeta.rpc import HttpNodeRpc


@pytest.fixture(scope="session")
def node_url() -> str:
    url = os.getenv("TZMETA_INTEGRATION_NODE_URL")
    if not url:
        pytest.skip("TZMETA_INTEGRATION_NODE_URL is not set")
    return url


@pytest.fixture(scope="session")
def contract_address() -> str:
    address = os.getenv("TZMETA_INTEGRATION_CONTRACT")
    if not address:
        pytest.skip("TZMETA_INTEGRATION_CONTRACT is not set")
    return address


@pytest_asyncio.fixture
async def node(node_url: str) -> AsyncGenerator[HttpNodeRpc, None]:
    """Per-test client so each event loop gets its own connection pool."""
    rpc = HttpNodeRpc(node_url, timeout=60.0)
    yield rpc
    await rpc.dispose()
