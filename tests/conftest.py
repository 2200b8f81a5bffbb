"""
Shared fixtures for storagehub-e2e tests.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_account import Account

from storagehub_e2e.config import NETWORKS, Network
from storagehub_e2e.context import E2EContext


# =============================================================================
# Test Constants
# =============================================================================

TEST_PRIVATE_KEY = "0x" + "11" * 32

VALID_BUCKET_ID = "0x" + "b1" * 32
VALID_MSP_ID = "0x" + "a5" * 32
VALID_VALUE_PROP_ID = "0x" + "7e" * 32
VALID_FILE_KEY = "0x" + "f0" * 32
VALID_TX_HASH = "0x" + "c3" * 32

PEER_ID = "12D3KooWJAsQ6xPYpZr4eZE3gk5Fgw8P7BFyyGFqf5WMqGcD6Abc"
MSP_MULTIADDRESSES = [
    f"/ip4/10.0.0.5/tcp/30333/p2p/{PEER_ID}",
    "/ip4/10.0.0.5/udp/30333/quic-v1",
]

TEN_BYTES = b"0123456789"


# =============================================================================
# Fixtures - Identity and network
# =============================================================================


@pytest.fixture
def account():
    """Deterministic local signing account."""
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def network_config():
    return NETWORKS[Network.LOCAL]


# =============================================================================
# Fixtures - Mocked context
# =============================================================================


@pytest.fixture
def mock_msp() -> AsyncMock:
    """MSP client whose coroutine methods are AsyncMocks."""
    msp = AsyncMock()
    msp.logout = MagicMock()
    return msp


@pytest.fixture
def mock_chain_state() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_storage_hub() -> MagicMock:
    return MagicMock()


@pytest.fixture
def ctx(account, network_config, mock_msp, mock_chain_state, mock_storage_hub) -> E2EContext:
    """E2EContext wired to mocks."""
    return E2EContext(
        account=account,
        storage_hub=mock_storage_hub,
        chain_state=mock_chain_state,
        msp=mock_msp,
        network=network_config,
    )


@pytest.fixture
def no_sleep():
    """Make poll loops run without waiting."""
    with patch("storagehub_e2e.utils.polling.asyncio.sleep", new_callable=AsyncMock) as mock:
        yield mock


# =============================================================================
# Fixtures - Files
# =============================================================================


@pytest.fixture
def ten_byte_file(tmp_path: Path) -> Path:
    path = tmp_path / "hello.txt"
    path.write_bytes(TEN_BYTES)
    return path
