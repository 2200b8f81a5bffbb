"""
storagehub-e2e - End-to-end workflow for StorageHub/DataHaven storage.

Drives a storage network and its Main Storage Provider (MSP) backend through
bucket creation, file upload, confirmation waiting, download and integrity
verification.

Quick Start:
    >>> import asyncio
    >>> from storagehub_e2e import E2ESettings, run_e2e
    >>>
    >>> settings = E2ESettings.from_env()
    >>> report = asyncio.run(run_e2e(settings))
    >>> print(report.summary())

Modules:
- `config`: Network presets and run settings
- `chain`: Transaction client, chain state reader, file keys
- `msp`: MSP backend client and types
- `operations`: Bucket and file workflow steps
- `runner`: End-to-end orchestration
- `errors`: Exception hierarchy
- `utils`: Logging, polling and validation helpers
"""

from storagehub_e2e.version import __version__, __version_info__

from storagehub_e2e.config import (
    NETWORKS,
    E2ESettings,
    Network,
    NetworkConfig,
    get_network_config,
)
from storagehub_e2e.context import E2EContext
from storagehub_e2e.errors import (
    BucketNotFoundOnChainError,
    ConfigurationError,
    DownloadFailedError,
    FileExpiredError,
    FileRejectedError,
    FileRevokedError,
    MspAuthenticationError,
    MspNotFoundError,
    MspRequestError,
    MultiaddressesMissingError,
    NoValuePropositionsError,
    PeerIdNotFoundError,
    PollingTimeoutError,
    StorageHubE2EError,
    StorageRequestMismatchError,
    StorageRequestNotFoundError,
    TerminalFileStateError,
    TransactionFailedError,
    UploadFailedError,
)
from storagehub_e2e.runner import E2EReport, run_e2e

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Config
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    "E2ESettings",
    # Runtime
    "E2EContext",
    "E2EReport",
    "run_e2e",
    # Errors
    "StorageHubE2EError",
    "ConfigurationError",
    "PollingTimeoutError",
    "TransactionFailedError",
    "BucketNotFoundOnChainError",
    "StorageRequestNotFoundError",
    "StorageRequestMismatchError",
    "MspRequestError",
    "MspNotFoundError",
    "MspAuthenticationError",
    "MultiaddressesMissingError",
    "PeerIdNotFoundError",
    "NoValuePropositionsError",
    "UploadFailedError",
    "DownloadFailedError",
    "TerminalFileStateError",
    "FileRevokedError",
    "FileRejectedError",
    "FileExpiredError",
]
