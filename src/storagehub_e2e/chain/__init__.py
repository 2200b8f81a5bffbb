"""
Chain access: transaction submission, state reads and file keys.
"""

from storagehub_e2e.chain.client import StorageHubClient, load_account
from storagehub_e2e.chain.file_manager import FileManager, compute_file_key
from storagehub_e2e.chain.state import ChainStateClient
from storagehub_e2e.chain.types import (
    BucketRecord,
    ReplicationLevel,
    StorageRequestRecord,
    TxResult,
)

__all__ = [
    "StorageHubClient",
    "ChainStateClient",
    "FileManager",
    "load_account",
    "compute_file_key",
    "ReplicationLevel",
    "TxResult",
    "BucketRecord",
    "StorageRequestRecord",
]
