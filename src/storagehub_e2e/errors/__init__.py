"""
Exception hierarchy for the StorageHub end-to-end workflow.
"""

from storagehub_e2e.errors.base import (
    ConfigurationError,
    PollingTimeoutError,
    StorageHubE2EError,
)
from storagehub_e2e.errors.chain import (
    BucketNotFoundOnChainError,
    ChainConsistencyError,
    ChainError,
    RpcError,
    StorageRequestMismatchError,
    StorageRequestNotFoundError,
    TransactionFailedError,
)
from storagehub_e2e.errors.msp import (
    DownloadFailedError,
    FileExpiredError,
    FileRejectedError,
    FileRevokedError,
    MspAuthenticationError,
    MspError,
    MspNotFoundError,
    MspRequestError,
    MultiaddressesMissingError,
    NoValuePropositionsError,
    PeerIdNotFoundError,
    ProviderCapabilityError,
    TerminalFileStateError,
    UploadFailedError,
)

__all__ = [
    # Base
    "StorageHubE2EError",
    "ConfigurationError",
    "PollingTimeoutError",
    # Chain
    "ChainError",
    "TransactionFailedError",
    "RpcError",
    "ChainConsistencyError",
    "BucketNotFoundOnChainError",
    "StorageRequestNotFoundError",
    "StorageRequestMismatchError",
    # MSP
    "MspError",
    "MspRequestError",
    "MspNotFoundError",
    "MspAuthenticationError",
    "ProviderCapabilityError",
    "MultiaddressesMissingError",
    "PeerIdNotFoundError",
    "NoValuePropositionsError",
    "UploadFailedError",
    "DownloadFailedError",
    # Terminal file states
    "TerminalFileStateError",
    "FileRevokedError",
    "FileRejectedError",
    "FileExpiredError",
]
