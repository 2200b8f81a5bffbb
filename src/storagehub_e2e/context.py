"""
Runtime context: the identity and the three external clients a run needs.

Clients are created once at startup and released together, on every exit
path, by ``aclose`` (or by ``async with``).
"""

from __future__ import annotations

import asyncio
from typing import Optional

from eth_account.signers.local import LocalAccount

from storagehub_e2e.chain.client import StorageHubClient, load_account
from storagehub_e2e.chain.state import ChainStateClient
from storagehub_e2e.config import E2ESettings, NetworkConfig
from storagehub_e2e.msp.client import MspClient
from storagehub_e2e.utils.logging import get_logger

_logger = get_logger(__name__)


class E2EContext:
    """
    Bundle of account, chain clients and MSP client.

    Attributes:
        account: Signing identity (owner of buckets and files)
        storage_hub: Transaction-submitting client for the file-system precompile
        chain_state: Read-only chain state client
        msp: MSP backend client
        network: Endpoints and chain id in use
    """

    def __init__(
        self,
        *,
        account: LocalAccount,
        storage_hub: StorageHubClient,
        chain_state: ChainStateClient,
        msp: MspClient,
        network: NetworkConfig,
        siwe_domain: str = "localhost",
        siwe_uri: str = "http://localhost",
    ) -> None:
        self.account = account
        self.storage_hub = storage_hub
        self.chain_state = chain_state
        self.msp = msp
        self.network = network
        self.siwe_domain = siwe_domain
        self.siwe_uri = siwe_uri
        self._closed = False

    @classmethod
    def from_settings(cls, settings: E2ESettings) -> "E2EContext":
        network = settings.network_config
        account = load_account(settings.private_key)
        _logger.info(
            "Initializing clients",
            extra={"network": network.display_name, "address": account.address},
        )
        return cls(
            account=account,
            storage_hub=StorageHubClient(network, account=account),
            chain_state=ChainStateClient(network.ws_url),
            msp=MspClient(network.msp_url, timeout=settings.request_timeout),
            network=network,
            siwe_domain=settings.siwe_domain,
            siwe_uri=settings.siwe_uri,
        )

    @property
    def address(self) -> str:
        return self.account.address

    async def aclose(self) -> None:
        """Release the chain state connection and the HTTP client. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            await asyncio.to_thread(self.chain_state.close)
        finally:
            await self.msp.aclose()
        _logger.info("Clients closed")

    async def __aenter__(self) -> "E2EContext":
        return self

    async def __aexit__(self, *exc_info: Optional[object]) -> None:
        await self.aclose()
