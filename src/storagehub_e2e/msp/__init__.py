"""
Main Storage Provider (MSP) backend client and types.
"""

from storagehub_e2e.msp.client import MspClient
from storagehub_e2e.msp.selection import ValuePropSelector, by_id, first_available
from storagehub_e2e.msp.types import (
    UPLOAD_SUCCESSFUL,
    BucketInfo,
    DownloadedFile,
    FileInfo,
    FileStatus,
    HealthStatus,
    InfoResponse,
    MspSession,
    StatusClass,
    UploadReceipt,
    UserProfile,
    ValueProp,
)

__all__ = [
    # Client
    "MspClient",
    # Selection
    "ValuePropSelector",
    "first_available",
    "by_id",
    # Types
    "FileStatus",
    "StatusClass",
    "HealthStatus",
    "InfoResponse",
    "ValueProp",
    "UserProfile",
    "BucketInfo",
    "UploadReceipt",
    "UPLOAD_SUCCESSFUL",
    "FileInfo",
    "MspSession",
    "DownloadedFile",
]
