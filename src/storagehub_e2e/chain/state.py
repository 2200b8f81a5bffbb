"""
Read-only chain state access.

Buckets and storage requests live in Substrate pallet storage, which the EVM
JSON-RPC does not expose. They are read over the node's websocket endpoint.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from substrateinterface import SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException

from storagehub_e2e.chain.types import BucketRecord, StorageRequestRecord
from storagehub_e2e.errors import RpcError
from storagehub_e2e.utils.logging import get_logger
from storagehub_e2e.utils.validation import to_hex

_logger = get_logger(__name__)


class ChainStateClient:
    """
    Typed reader for the storage pallets.

    The websocket connection is opened lazily on first query and must be
    released with ``close()`` (or by using the client as a context manager).

    Example:
        ```python
        with ChainStateClient("wss://node.example/ws") as state:
            request = state.get_storage_request(file_key)
        ```
    """

    def __init__(
        self,
        ws_url: str,
        *,
        substrate: Optional[SubstrateInterface] = None,
    ) -> None:
        self._ws_url = ws_url
        self._substrate = substrate

    @property
    def substrate(self) -> SubstrateInterface:
        if self._substrate is None:
            _logger.debug("Connecting to chain state endpoint", extra={"url": self._ws_url})
            self._substrate = SubstrateInterface(url=self._ws_url)
        return self._substrate

    def query(self, module: str, storage_function: str, key: Union[str, bytes]) -> Optional[Any]:
        """
        Query one storage map entry.

        Returns:
            The decoded value, or None when the entry does not exist
        """
        try:
            result = self.substrate.query(module, storage_function, [to_hex(key)])
        except SubstrateRequestException as e:
            raise RpcError(
                f"{module}.{storage_function} query failed: {e}",
                details={"module": module, "storage_function": storage_function},
            ) from e
        if result is None:
            return None
        return result.value

    def get_bucket(self, bucket_id: Union[str, bytes]) -> Optional[BucketRecord]:
        value = self.query("Providers", "Buckets", bucket_id)
        if value is None:
            return None
        return BucketRecord.from_chain(to_hex(bucket_id), value)

    def get_storage_request(self, file_key: Union[str, bytes]) -> Optional[StorageRequestRecord]:
        value = self.query("FileSystem", "StorageRequests", file_key)
        if value is None:
            return None
        return StorageRequestRecord.from_chain(to_hex(file_key), value)

    def close(self) -> None:
        """Close the websocket connection if one was opened."""
        if self._substrate is not None:
            self._substrate.close()
            self._substrate = None
            _logger.debug("Chain state connection closed", extra={"url": self._ws_url})

    def __enter__(self) -> "ChainStateClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
