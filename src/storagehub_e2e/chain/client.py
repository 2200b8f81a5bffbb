"""StorageHub file-system client for Python.

Submits bucket and storage-request transactions to the file-system
precompile through the chain's EVM JSON-RPC, signing locally with an
``eth_account`` key.

Example:
    >>> from storagehub_e2e.chain import StorageHubClient
    >>> from storagehub_e2e.config import Network, get_network_config
    >>> client = StorageHubClient(get_network_config(Network.LOCAL), private_key="0x...")
    >>> bucket_id = client.derive_bucket_id("my-bucket")
"""
import json
from pathlib import Path
from typing import Optional, Sequence, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.types import TxParams

from ..config import NetworkConfig
from ..errors import ConfigurationError, RpcError, TransactionFailedError
from ..utils.logging import get_logger
from ..utils.validation import to_bytes32, to_hex
from .types import ReplicationLevel, TxResult

ABI_DIR = Path(__file__).parent / "abis"

DEFAULT_GAS_LIMIT = 1_000_000
GAS_ESTIMATION_BUFFER = 1.2
MAX_GAS_LIMIT = 5_000_000
RECEIPT_TIMEOUT_SECONDS = 120
PROVIDER_TIMEOUT_SECONDS = 30

_ABI_CACHE: dict[str, list] = {}

_logger = get_logger(__name__)


def _load_abi(name: str) -> list:
    if name not in _ABI_CACHE:
        _ABI_CACHE[name] = json.loads((ABI_DIR / name).read_text())
    return _ABI_CACHE[name]


def load_account(private_key: str) -> LocalAccount:
    """Create a signing account from a hex private key.

    Raises:
        ConfigurationError: If the key is malformed (key not shown)
    """
    try:
        return Account.from_key(private_key)
    except Exception:
        raise ConfigurationError(
            "Invalid private key format (key not shown for security)",
            setting="PRIVATE_KEY",
        ) from None


class StorageHubClient:
    """Minimal file-system precompile client using Web3.py."""

    def __init__(
        self,
        config: NetworkConfig,
        private_key: Optional[str] = None,
        *,
        account: Optional[LocalAccount] = None,
        web3: Optional[Web3] = None,
        timeout: int = PROVIDER_TIMEOUT_SECONDS,
        receipt_timeout: int = RECEIPT_TIMEOUT_SECONDS,
    ):
        if account is None:
            if private_key is None:
                raise ConfigurationError("A private key or account is required", setting="PRIVATE_KEY")
            account = load_account(private_key)
        self.config = config
        self.account: LocalAccount = account
        self.receipt_timeout = receipt_timeout
        self.w3 = web3 or Web3(Web3.HTTPProvider(
            config.rpc_url,
            request_kwargs={"timeout": timeout},
        ))
        self.file_system: Contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(config.file_system_address),
            abi=_load_abi("file_system.json"),
        )

    @property
    def address(self) -> str:
        return self.account.address

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------
    def derive_bucket_id(self, name: str, owner: Optional[str] = None) -> str:
        """Ask the precompile for the id a bucket named ``name`` gets for ``owner``."""
        try:
            raw = self.file_system.functions.deriveBucketId(
                owner or self.address,
                name.encode("utf-8"),
            ).call()
        except Exception as e:
            raise RpcError(f"deriveBucketId failed: {e}") from e
        return to_hex(raw)

    def create_bucket(
        self,
        msp_id: Union[str, bytes],
        name: str,
        is_private: bool,
        value_prop_id: Union[str, bytes],
    ) -> TxResult:
        func = self.file_system.functions.createBucket(
            to_bytes32(msp_id, "msp_id"),
            name.encode("utf-8"),
            is_private,
            to_bytes32(value_prop_id, "value_prop_id"),
        )
        return self._send("createBucket", func)

    # ------------------------------------------------------------------
    # Storage requests
    # ------------------------------------------------------------------
    def issue_storage_request(
        self,
        bucket_id: Union[str, bytes],
        location: str,
        fingerprint: Union[str, bytes],
        size: int,
        msp_id: Union[str, bytes],
        peer_ids: Sequence[str],
        replication_level: ReplicationLevel = ReplicationLevel.CUSTOM,
        replicas: int = 1,
    ) -> TxResult:
        if size < 0 or size >= 1 << 64:
            raise ValueError("size must fit in uint64")
        func = self.file_system.functions.issueStorageRequest(
            to_bytes32(bucket_id, "bucket_id"),
            location.encode("utf-8"),
            to_bytes32(fingerprint, "fingerprint"),
            size,
            to_bytes32(msp_id, "msp_id"),
            [peer_id.encode("utf-8") for peer_id in peer_ids],
            int(replication_level),
            replicas,
        )
        return self._send("issueStorageRequest", func)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _send(self, operation: str, func) -> TxResult:
        """Estimate, sign, send and wait for a contract call.

        Raises:
            TransactionFailedError: If the call reverts or the receipt status != 1
            RpcError: If the RPC itself fails
        """
        try:
            gas = self._estimate_gas(func)
        except ContractLogicError as e:
            raise TransactionFailedError(operation, reason=str(e)) from e
        except Exception as e:
            raise RpcError(f"{operation} gas estimation failed: {e}") from e

        tx = func.build_transaction(self._tx_meta(gas))
        return self._build_and_send(operation, tx)

    def _build_and_send(self, operation: str, tx: TxParams) -> TxResult:
        tx_hash_hex: Optional[str] = None
        try:
            signed = self.account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            tx_hash_hex = to_hex(bytes(tx_hash))
            _logger.info(f"{operation} submitted", extra={"tx_hash": tx_hash_hex})
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except ContractLogicError as e:
            raise TransactionFailedError(operation, tx_hash=tx_hash_hex, reason=str(e)) from e
        except TimeExhausted as e:
            raise TransactionFailedError(
                operation, tx_hash=tx_hash_hex, reason="receipt not found before timeout"
            ) from e
        except Exception as e:
            raise RpcError(f"{operation} failed: {e}") from e

        if receipt["status"] != 1:
            raise TransactionFailedError(operation, tx_hash=tx_hash_hex, reason="receipt status is not success")
        return TxResult(
            tx_hash=tx_hash_hex,
            receipt=receipt,
            block_number=receipt.get("blockNumber"),
        )

    def _tx_meta(self, gas: Optional[int] = None) -> TxParams:
        nonce = self.w3.eth.get_transaction_count(self.account.address, "pending")
        latest_block = self.w3.eth.get_block("latest")
        base_fee = latest_block.get("baseFeePerGas", 0)
        max_priority_fee = self.w3.eth.max_priority_fee

        return {
            "from": self.account.address,
            "nonce": nonce,
            "chainId": self.config.chain_id,
            "gas": gas or DEFAULT_GAS_LIMIT,
            "maxFeePerGas": base_fee * 2 + max_priority_fee,
            "maxPriorityFeePerGas": max_priority_fee,
        }

    def _estimate_gas(self, func, buffer: float = GAS_ESTIMATION_BUFFER) -> int:
        base = func.estimate_gas({"from": self.address})
        return min(int(base * buffer), MAX_GAS_LIMIT)
