"""
MSP backend types.

Response bodies of the Main Storage Provider backend use camelCase keys; the
models accept them by alias and expose snake_case attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# File status
# ============================================================================


class StatusClass(Enum):
    """How a poll loop should react to a file status."""

    READY = "ready"
    FAILED = "failed"
    PENDING = "pending"


class FileStatus(str, Enum):
    """File availability as reported by the MSP backend."""

    PENDING = "pending"
    READY = "ready"
    REVOKED = "revoked"
    REJECTED = "rejected"
    EXPIRED = "expired"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "FileStatus":
        """Map a wire value to a status; unrecognized values become UNKNOWN."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.UNKNOWN

    def classify(self) -> StatusClass:
        return _STATUS_CLASSES[self]


_STATUS_CLASSES: Dict[FileStatus, StatusClass] = {
    FileStatus.READY: StatusClass.READY,
    FileStatus.REVOKED: StatusClass.FAILED,
    FileStatus.REJECTED: StatusClass.FAILED,
    FileStatus.EXPIRED: StatusClass.FAILED,
    FileStatus.PENDING: StatusClass.PENDING,
    FileStatus.UNKNOWN: StatusClass.PENDING,
}


# ============================================================================
# Info / health / value propositions
# ============================================================================


class HealthStatus(BaseModel):
    """Result of ``GET /health``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    status: str = Field(..., description='Overall status, e.g. "healthy"')
    version: Optional[str] = None
    service: Optional[str] = None
    components: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status.lower() in ("healthy", "ok")


class InfoResponse(BaseModel):
    """Result of ``GET /info``: the MSP's on-chain id and network addresses."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    msp_id: str = Field(..., alias="mspId", description="On-chain provider id (bytes32 hex)")
    multiaddresses: List[str] = Field(default_factory=list)
    version: Optional[str] = None
    client: Optional[str] = None
    owner_account: Optional[str] = Field(default=None, alias="ownerAccount")
    payment_account: Optional[str] = Field(default=None, alias="paymentAccount")
    status: Optional[str] = None


class ValueProp(BaseModel):
    """A storage offer an MSP advertises for new buckets."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Value proposition id (bytes32 hex)")
    price_per_giga_unit_of_data_per_block: Optional[str] = Field(
        default=None, alias="pricePerGigaUnitOfDataPerBlock"
    )
    commitment: Optional[str] = None
    bucket_data_limit: Optional[str] = Field(default=None, alias="bucketDataLimit")
    available: bool = Field(default=True, alias="isAvailable")

    @field_validator(
        "price_per_giga_unit_of_data_per_block", "bucket_data_limit", mode="before"
    )
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # Large integers arrive as JSON numbers or strings
        return None if value is None else str(value)


class UserProfile(BaseModel):
    """Authenticated user as known to the MSP."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    address: str
    ens: Optional[str] = None


class NonceResponse(BaseModel):
    """Sign-in challenge returned by ``POST /auth/nonce``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    message: str
    nonce: Optional[str] = None


class VerifyResponse(BaseModel):
    """Session returned by ``POST /auth/verify``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    token: str
    user: Optional[UserProfile] = None


# ============================================================================
# Buckets and files
# ============================================================================


class BucketInfo(BaseModel):
    """The MSP backend's view of a bucket."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    bucket_id: str = Field(..., alias="bucketId")
    name: Optional[str] = None
    root: Optional[str] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")
    size_bytes: Optional[int] = Field(default=None, alias="sizeBytes")
    value_prop_id: Optional[str] = Field(default=None, alias="valuePropId")
    file_count: Optional[int] = Field(default=None, alias="fileCount")


UPLOAD_SUCCESSFUL = "upload_successful"


class UploadReceipt(BaseModel):
    """Response of a file upload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    status: str
    file_key: Optional[str] = Field(default=None, alias="fileKey")
    bucket_id: Optional[str] = Field(default=None, alias="bucketId")
    fingerprint: Optional[str] = None
    location: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == UPLOAD_SUCCESSFUL


class FileInfo(BaseModel):
    """The MSP backend's record of one file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    file_key: str = Field(..., alias="fileKey")
    bucket_id: Optional[str] = Field(default=None, alias="bucketId")
    fingerprint: Optional[str] = None
    location: Optional[str] = None
    size: Optional[int] = None
    is_public: Optional[bool] = Field(default=None, alias="isPublic")
    uploaded_at: Optional[datetime] = Field(default=None, alias="uploadedAt")
    status: FileStatus = FileStatus.UNKNOWN

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> FileStatus:
        return FileStatus.parse(value)


# ============================================================================
# Session and downloads
# ============================================================================


@dataclass(frozen=True)
class MspSession:
    """
    An authenticated session with the MSP backend.

    Created by ``MspClient.authenticate`` and dropped by ``MspClient.logout``.
    Lives only in process memory.
    """

    token: str
    address: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"MspSession(address={self.address!r}, created_at={self.created_at.isoformat()})"


@dataclass
class DownloadedFile:
    path: Path
    size: int
    mime: Optional[str] = None
