"""
Chain-side exceptions.

Raised while submitting transactions to the file-system precompile or while
reading back chain state that a successful transaction should have produced.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from storagehub_e2e.errors.base import StorageHubE2EError


class ChainError(StorageHubE2EError):
    """Base exception for chain interactions."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "CHAIN_ERROR",
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, tx_hash=tx_hash, details=details)


class TransactionFailedError(ChainError):
    """
    Raised when a transaction is rejected or its receipt reports failure.

    Example:
        >>> raise TransactionFailedError("createBucket", tx_hash="0xdead...")
    """

    def __init__(
        self,
        operation: str,
        *,
        tx_hash: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["operation"] = operation
        if reason:
            details["reason"] = reason

        message = f"{operation} transaction failed"
        if reason:
            message += f": {reason}"

        super().__init__(
            message,
            code="TRANSACTION_FAILED",
            tx_hash=tx_hash,
            details=details,
        )
        self.operation = operation
        self.reason = reason


class RpcError(ChainError):
    """Raised when an RPC call fails before a transaction hash is known."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="RPC_ERROR", details=details)


class ChainConsistencyError(ChainError):
    """
    Base exception for chain state that contradicts a successful transaction.

    These are never retried: they point at a bug in the environment under test.
    """


class BucketNotFoundOnChainError(ChainConsistencyError):
    """
    Raised when a freshly created bucket cannot be read back from chain state.

    Example:
        >>> raise BucketNotFoundOnChainError("0x" + "ab" * 32)
    """

    def __init__(
        self,
        bucket_id: str,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["bucket_id"] = bucket_id

        super().__init__(
            f"Bucket not found on chain: {bucket_id}",
            code="BUCKET_NOT_FOUND",
            details=details,
        )
        self.bucket_id = bucket_id


class StorageRequestNotFoundError(ChainConsistencyError):
    """
    Raised when a storage request is missing from chain state.

    Example:
        >>> raise StorageRequestNotFoundError("0x" + "cd" * 32)
    """

    def __init__(
        self,
        file_key: str,
        *,
        reason: str = "not found on chain",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["file_key"] = file_key

        super().__init__(
            f"Storage request for {file_key} {reason}",
            code="STORAGE_REQUEST_NOT_FOUND",
            details=details,
        )
        self.file_key = file_key


class StorageRequestMismatchError(ChainConsistencyError):
    """
    Raised when an on-chain storage request disagrees with what was submitted.

    Example:
        >>> raise StorageRequestMismatchError("fingerprint", "0xaa..", "0xbb..")
    """

    def __init__(
        self,
        field: str,
        expected: str,
        actual: str,
        *,
        file_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["field"] = field
        details["expected"] = expected
        details["actual"] = actual
        if file_key:
            details["file_key"] = file_key

        super().__init__(
            f"Storage request {field} mismatch: expected {expected}, got {actual}",
            code="STORAGE_REQUEST_MISMATCH",
            details=details,
        )
        self.field = field
        self.expected = expected
        self.actual = actual
