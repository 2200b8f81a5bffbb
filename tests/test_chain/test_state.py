"""
Tests for ChainStateClient and chain record parsing.
"""

from unittest.mock import MagicMock

import pytest
from substrateinterface.exceptions import SubstrateRequestException

from storagehub_e2e.chain import BucketRecord, ChainStateClient, StorageRequestRecord
from storagehub_e2e.chain.types import decode_bytes_field
from storagehub_e2e.errors import RpcError

from ..conftest import VALID_BUCKET_ID, VALID_FILE_KEY, VALID_MSP_ID

FINGERPRINT = "0x" + "9f" * 32


def storage_request_value(**overrides):
    value = {
        "requested_at": 120,
        "owner": "0x" + "ab" * 20,
        "bucket_id": VALID_BUCKET_ID,
        "location": "0x" + b"hello.txt".hex(),
        "fingerprint": FINGERPRINT.upper().replace("0X", "0x"),
        "size": 10,
        "msp": (VALID_MSP_ID, False),
        "user_peer_ids": [b"12D3KooWPeer"],
        "bsps_required": 1,
        "bsps_confirmed": 0,
        "expires_at": 240,
    }
    value.update(overrides)
    return value


class TestRecords:
    """Tests for from_chain constructors."""

    def test_storage_request_record(self) -> None:
        record = StorageRequestRecord.from_chain(VALID_FILE_KEY, storage_request_value())

        assert record.file_key == VALID_FILE_KEY
        assert record.bucket_id == VALID_BUCKET_ID
        assert record.fingerprint == FINGERPRINT
        assert record.location == "hello.txt"
        assert record.size == 10
        assert record.msp_id == VALID_MSP_ID
        assert record.msp_confirmed is False
        assert record.user_peer_ids == ["12D3KooWPeer"]

    def test_storage_request_confirmed(self) -> None:
        record = StorageRequestRecord.from_chain(
            VALID_FILE_KEY, storage_request_value(msp=(VALID_MSP_ID, True))
        )
        assert record.msp_confirmed is True

    def test_storage_request_without_msp(self) -> None:
        record = StorageRequestRecord.from_chain(VALID_FILE_KEY, storage_request_value(msp=None))
        assert record.msp_id is None
        assert record.msp_confirmed is False

    def test_bucket_record(self) -> None:
        record = BucketRecord.from_chain(
            VALID_BUCKET_ID,
            {
                "root": "0x" + "00" * 32,
                "user_id": "0x" + "ab" * 20,
                "msp_id": VALID_MSP_ID,
                "private": False,
                "read_access_group_id": None,
                "size": 0,
                "value_prop_id": "0x" + "7e" * 32,
                "name": b"test-bucket-001",
            },
        )
        assert record.name == "test-bucket-001"
        assert record.msp_id == VALID_MSP_ID
        assert record.private is False

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, None),
            (b"abc", "abc"),
            ("0x616263", "abc"),
            ([97, 98, 99], "abc"),
            ("plain", "plain"),
            (b"\xff\xfe", "0xfffe"),
        ],
    )
    def test_decode_bytes_field(self, raw, expected) -> None:
        assert decode_bytes_field(raw) == expected


class TestChainStateClient:
    """Tests for storage queries."""

    def test_get_storage_request(self) -> None:
        substrate = MagicMock()
        substrate.query.return_value = MagicMock(value=storage_request_value())
        client = ChainStateClient("ws://node.test", substrate=substrate)

        record = client.get_storage_request(VALID_FILE_KEY)

        substrate.query.assert_called_once_with("FileSystem", "StorageRequests", [VALID_FILE_KEY])
        assert record is not None
        assert record.bucket_id == VALID_BUCKET_ID

    def test_missing_entry_is_none(self) -> None:
        substrate = MagicMock()
        substrate.query.return_value = MagicMock(value=None)
        client = ChainStateClient("ws://node.test", substrate=substrate)

        assert client.get_storage_request(VALID_FILE_KEY) is None
        assert client.get_bucket(VALID_BUCKET_ID) is None

    def test_get_bucket_queries_providers(self) -> None:
        substrate = MagicMock()
        substrate.query.return_value = MagicMock(value={"msp_id": VALID_MSP_ID, "name": b"b"})
        client = ChainStateClient("ws://node.test", substrate=substrate)

        record = client.get_bucket(VALID_BUCKET_ID.upper().replace("0X", "0x"))

        substrate.query.assert_called_once_with("Providers", "Buckets", [VALID_BUCKET_ID])
        assert record.bucket_id == VALID_BUCKET_ID

    def test_request_exception_becomes_rpc_error(self) -> None:
        substrate = MagicMock()
        substrate.query.side_effect = SubstrateRequestException("boom")
        client = ChainStateClient("ws://node.test", substrate=substrate)

        with pytest.raises(RpcError) as exc_info:
            client.get_bucket(VALID_BUCKET_ID)

        assert exc_info.value.details["module"] == "Providers"

    def test_close_releases_connection(self) -> None:
        substrate = MagicMock()
        with ChainStateClient("ws://node.test", substrate=substrate) as client:
            pass

        substrate.close.assert_called_once()
        client.close()
        substrate.close.assert_called_once()
