"""
Chain-side records and enums.

Chain state is read through Substrate storage queries, which return nested
dicts/lists of decoded SCALE values. The ``from_chain`` constructors map those
into plain dataclasses and normalize hex values to lowercase 0x strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from storagehub_e2e.utils.validation import to_hex

__all__ = [
    "ReplicationLevel",
    "TxResult",
    "BucketRecord",
    "StorageRequestRecord",
    "decode_bytes_field",
]


class ReplicationLevel(IntEnum):
    """Replication target classes understood by the file-system precompile."""

    BASIC = 0
    STANDARD = 1
    HIGH_SECURITY = 2
    SUPER_HIGH_SECURITY = 3
    ULTRA_HIGH_SECURITY = 4
    CUSTOM = 5


@dataclass
class TxResult:
    tx_hash: str
    receipt: Any
    block_number: Optional[int] = None


def decode_bytes_field(value: Any) -> Optional[str]:
    """Decode a ``Vec<u8>`` storage value into text.

    Depending on the runtime metadata the value arrives as raw bytes, a
    ``0x`` hex string, or already-decoded text.
    """
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str) and value.startswith("0x"):
        try:
            raw = bytes.fromhex(value[2:])
        except ValueError:
            return value
    elif isinstance(value, (list, tuple)):
        raw = bytes(value)
    else:
        return str(value)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return "0x" + raw.hex()


def _hex_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return to_hex(value)


@dataclass
class BucketRecord:
    """On-chain bucket (``Providers.Buckets``)."""

    bucket_id: str
    owner: Optional[str]
    msp_id: Optional[str]
    private: bool
    value_prop_id: Optional[str]
    name: Optional[str] = None
    root: Optional[str] = None
    size: int = 0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_chain(cls, bucket_id: str, value: Dict[str, Any]) -> "BucketRecord":
        return cls(
            bucket_id=to_hex(bucket_id),
            owner=value.get("user_id"),
            msp_id=_hex_or_none(value.get("msp_id")),
            private=bool(value.get("private", False)),
            value_prop_id=_hex_or_none(value.get("value_prop_id")),
            name=decode_bytes_field(value.get("name")),
            root=_hex_or_none(value.get("root")),
            size=int(value.get("size") or 0),
            raw=value,
        )


@dataclass
class StorageRequestRecord:
    """On-chain storage request (``FileSystem.StorageRequests``).

    Attributes:
        msp_id: Provider assigned to the request, if any
        msp_confirmed: True once the assigned MSP accepted the file on chain
        bsps_required: Backup providers needed before the request is fulfilled
        bsps_confirmed: Backup providers that have confirmed so far
    """

    file_key: str
    bucket_id: str
    owner: Optional[str]
    location: Optional[str]
    fingerprint: str
    size: int
    msp_id: Optional[str]
    msp_confirmed: bool
    user_peer_ids: List[str] = field(default_factory=list)
    bsps_required: int = 0
    bsps_confirmed: int = 0
    requested_at: Optional[int] = None
    expires_at: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_chain(cls, file_key: str, value: Dict[str, Any]) -> "StorageRequestRecord":
        msp = value.get("msp")
        msp_id: Optional[str] = None
        msp_confirmed = False
        if msp:
            # Option<(ProviderId, bool)>
            msp_id = _hex_or_none(msp[0])
            msp_confirmed = bool(msp[1])

        return cls(
            file_key=to_hex(file_key),
            bucket_id=to_hex(value["bucket_id"]),
            owner=value.get("owner"),
            location=decode_bytes_field(value.get("location")),
            fingerprint=to_hex(value["fingerprint"]),
            size=int(value.get("size") or 0),
            msp_id=msp_id,
            msp_confirmed=msp_confirmed,
            user_peer_ids=[
                decode_bytes_field(p) or "" for p in value.get("user_peer_ids") or []
            ],
            bsps_required=int(value.get("bsps_required") or 0),
            bsps_confirmed=int(value.get("bsps_confirmed") or 0),
            requested_at=value.get("requested_at"),
            expires_at=value.get("expires_at"),
            raw=value,
        )
