"""
Tests for file operations.

Tests cover:
- Peer id extraction from multiaddresses
- Upload: storage request arguments, on-chain checks, sign-in, upload
- MSP on-chain confirmation wait (vanished request aborts immediately)
- Backend readiness wait (terminal states abort, 404 retried, exact cap)
- Download and byte-equality verification
"""

from pathlib import Path

import pytest

from storagehub_e2e.chain import FileManager, ReplicationLevel, StorageRequestRecord, TxResult
from storagehub_e2e.errors import (
    DownloadFailedError,
    FileExpiredError,
    FileRejectedError,
    FileRevokedError,
    MspNotFoundError,
    MspRequestError,
    MultiaddressesMissingError,
    PeerIdNotFoundError,
    PollingTimeoutError,
    StorageRequestMismatchError,
    StorageRequestNotFoundError,
    TerminalFileStateError,
    TransactionFailedError,
    UploadFailedError,
)
from storagehub_e2e.msp import DownloadedFile, FileInfo, InfoResponse, UploadReceipt, UserProfile
from storagehub_e2e.operations import (
    download_file,
    extract_peer_ids,
    upload_file,
    verify_download,
    wait_for_backend_file_ready,
    wait_for_msp_confirm_on_chain,
)
from storagehub_e2e.utils.polling import PollConfig

from ..conftest import (
    MSP_MULTIADDRESSES,
    PEER_ID,
    TEN_BYTES,
    VALID_BUCKET_ID,
    VALID_FILE_KEY,
    VALID_MSP_ID,
    VALID_TX_HASH,
)


def make_request(file_key, bucket_id=VALID_BUCKET_ID, fingerprint="0x" + "00" * 32, confirmed=False):
    return StorageRequestRecord.from_chain(
        file_key,
        {
            "bucket_id": bucket_id,
            "fingerprint": fingerprint,
            "location": b"hello.txt",
            "size": 10,
            "msp": (VALID_MSP_ID, confirmed),
        },
    )


def file_info(status: str) -> FileInfo:
    return FileInfo(fileKey=VALID_FILE_KEY, bucketId=VALID_BUCKET_ID, status=status)


# =============================================================================
# extract_peer_ids
# =============================================================================


class TestExtractPeerIds:
    def test_takes_segment_after_p2p(self) -> None:
        assert extract_peer_ids(MSP_MULTIADDRESSES) == [PEER_ID]

    def test_uses_last_p2p_segment(self) -> None:
        relayed = f"/ip4/1.2.3.4/tcp/1/p2p/RelayPeer/p2p-circuit/p2p/{PEER_ID}"
        assert extract_peer_ids([relayed]) == [PEER_ID]

    def test_skips_addresses_without_peer_id(self) -> None:
        assert extract_peer_ids(["/ip4/1.2.3.4/tcp/1", "/dns4/msp/tcp/2/p2p/"]) == []

    def test_empty(self) -> None:
        assert extract_peer_ids([]) == []


# =============================================================================
# upload_file
# =============================================================================


@pytest.fixture
def upload_mocks(ctx, mock_msp, mock_storage_hub, mock_chain_state, ten_byte_file):
    """Wire mocks for a successful upload of the 10-byte file."""
    fingerprint = "0x" + FileManager(ten_byte_file).get_fingerprint().hex()

    mock_msp.get_info.return_value = InfoResponse(mspId=VALID_MSP_ID, multiaddresses=MSP_MULTIADDRESSES)
    mock_storage_hub.issue_storage_request.return_value = TxResult(tx_hash=VALID_TX_HASH, receipt={})
    mock_chain_state.get_storage_request.side_effect = lambda key: make_request(
        key, fingerprint=fingerprint
    )
    mock_msp.authenticate.return_value = UserProfile(address=ctx.address)
    mock_msp.upload_file.return_value = UploadReceipt(status="upload_successful")
    return fingerprint


class TestUploadFile:
    """Tests for upload_file."""

    @pytest.mark.asyncio
    async def test_happy_path(
        self, ctx, mock_msp, mock_storage_hub, ten_byte_file, upload_mocks
    ) -> None:
        fingerprint = upload_mocks

        result = await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        expected_key = "0x" + FileManager(ten_byte_file).compute_file_key(
            ctx.address, VALID_BUCKET_ID, "hello.txt"
        ).hex()
        assert result.file_key == expected_key
        assert result.fingerprint == fingerprint
        assert result.size == len(TEN_BYTES)
        assert result.tx.tx_hash == VALID_TX_HASH

        mock_storage_hub.issue_storage_request.assert_called_once_with(
            VALID_BUCKET_ID,
            "hello.txt",
            fingerprint,
            10,
            VALID_MSP_ID,
            [PEER_ID],
            ReplicationLevel.CUSTOM,
            1,
        )
        mock_msp.authenticate.assert_awaited_once_with(
            ctx.account, ctx.network.chain_id, domain="localhost", uri="http://localhost"
        )
        mock_msp.upload_file.assert_awaited_once_with(
            VALID_BUCKET_ID, expected_key, ten_byte_file, ctx.address, "hello.txt"
        )

    @pytest.mark.asyncio
    async def test_missing_multiaddresses(self, ctx, mock_msp, mock_storage_hub, ten_byte_file) -> None:
        mock_msp.get_info.return_value = InfoResponse(mspId=VALID_MSP_ID, multiaddresses=[])

        with pytest.raises(MultiaddressesMissingError):
            await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        mock_storage_hub.issue_storage_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_peer_id(self, ctx, mock_msp, mock_storage_hub, ten_byte_file) -> None:
        mock_msp.get_info.return_value = InfoResponse(
            mspId=VALID_MSP_ID, multiaddresses=["/ip4/10.0.0.5/tcp/30333"]
        )

        with pytest.raises(PeerIdNotFoundError):
            await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        mock_storage_hub.issue_storage_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_request_transaction_fails(
        self, ctx, mock_msp, mock_storage_hub, ten_byte_file, upload_mocks
    ) -> None:
        mock_storage_hub.issue_storage_request.side_effect = TransactionFailedError(
            "issueStorageRequest", reason="reverted"
        )

        with pytest.raises(TransactionFailedError):
            await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        mock_msp.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_not_on_chain(
        self, ctx, mock_msp, mock_chain_state, ten_byte_file, upload_mocks
    ) -> None:
        mock_chain_state.get_storage_request.side_effect = None
        mock_chain_state.get_storage_request.return_value = None

        with pytest.raises(StorageRequestNotFoundError):
            await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        mock_msp.authenticate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fingerprint_mismatch(
        self, ctx, mock_msp, mock_chain_state, ten_byte_file, upload_mocks
    ) -> None:
        mock_chain_state.get_storage_request.side_effect = lambda key: make_request(
            key, fingerprint="0x" + "ee" * 32
        )

        with pytest.raises(StorageRequestMismatchError) as exc_info:
            await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        assert exc_info.value.field == "fingerprint"
        mock_msp.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bucket_mismatch(
        self, ctx, mock_chain_state, ten_byte_file, upload_mocks
    ) -> None:
        mock_chain_state.get_storage_request.side_effect = lambda key: make_request(
            key, bucket_id="0x" + "b2" * 32, fingerprint=upload_mocks
        )

        with pytest.raises(StorageRequestMismatchError) as exc_info:
            await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        assert exc_info.value.field == "bucket_id"

    @pytest.mark.asyncio
    async def test_upload_not_acknowledged(
        self, ctx, mock_msp, ten_byte_file, upload_mocks
    ) -> None:
        mock_msp.upload_file.return_value = UploadReceipt(status="pending")

        with pytest.raises(UploadFailedError) as exc_info:
            await upload_file(ctx, VALID_BUCKET_ID, ten_byte_file, "hello.txt")

        assert exc_info.value.status == "pending"


# =============================================================================
# wait_for_msp_confirm_on_chain
# =============================================================================


class TestWaitForMspConfirm:
    """Tests for wait_for_msp_confirm_on_chain."""

    @pytest.mark.asyncio
    async def test_returns_once_confirmed(self, ctx, mock_chain_state, no_sleep) -> None:
        mock_chain_state.get_storage_request.side_effect = [
            make_request(VALID_FILE_KEY),
            make_request(VALID_FILE_KEY),
            make_request(VALID_FILE_KEY, confirmed=True),
        ]

        request = await wait_for_msp_confirm_on_chain(ctx, VALID_FILE_KEY)

        assert request.msp_confirmed
        assert mock_chain_state.get_storage_request.call_count == 3

    @pytest.mark.asyncio
    async def test_vanished_request_aborts_immediately(self, ctx, mock_chain_state, no_sleep) -> None:
        mock_chain_state.get_storage_request.return_value = None

        with pytest.raises(StorageRequestNotFoundError) as exc_info:
            await wait_for_msp_confirm_on_chain(ctx, VALID_FILE_KEY)

        assert "no longer exists" in str(exc_info.value)
        assert mock_chain_state.get_storage_request.call_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_times_out_after_ten_attempts(self, ctx, mock_chain_state, no_sleep) -> None:
        mock_chain_state.get_storage_request.return_value = make_request(VALID_FILE_KEY)

        with pytest.raises(PollingTimeoutError) as exc_info:
            await wait_for_msp_confirm_on_chain(ctx, VALID_FILE_KEY)

        assert mock_chain_state.get_storage_request.call_count == 10
        assert exc_info.value.elapsed_ms == 20_000


# =============================================================================
# wait_for_backend_file_ready
# =============================================================================


class TestWaitForBackendFileReady:
    """Tests for wait_for_backend_file_ready."""

    @pytest.mark.asyncio
    async def test_pending_then_ready(self, ctx, mock_msp, no_sleep) -> None:
        mock_msp.get_file_info.side_effect = [
            MspNotFoundError("GET", "/buckets/x/info/y"),
            file_info("pending"),
            file_info("ready"),
        ]

        info = await wait_for_backend_file_ready(ctx, VALID_BUCKET_ID, VALID_FILE_KEY)

        assert info.file_key == VALID_FILE_KEY
        assert mock_msp.get_file_info.await_count == 3
        mock_msp.get_file_info.assert_awaited_with(VALID_BUCKET_ID, VALID_FILE_KEY)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error",
        [
            ("revoked", FileRevokedError),
            ("rejected", FileRejectedError),
            ("expired", FileExpiredError),
        ],
    )
    async def test_terminal_status_fails_immediately(
        self, ctx, mock_msp, no_sleep, status, error
    ) -> None:
        mock_msp.get_file_info.return_value = file_info(status)

        with pytest.raises(error) as exc_info:
            await wait_for_backend_file_ready(ctx, VALID_BUCKET_ID, VALID_FILE_KEY)

        assert isinstance(exc_info.value, TerminalFileStateError)
        assert exc_info.value.file_key == VALID_FILE_KEY
        assert mock_msp.get_file_info.await_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unrecognized_status_keeps_waiting(self, ctx, mock_msp, no_sleep) -> None:
        mock_msp.get_file_info.side_effect = [file_info("inProgress"), file_info("ready")]

        await wait_for_backend_file_ready(ctx, VALID_BUCKET_ID, VALID_FILE_KEY)

        assert mock_msp.get_file_info.await_count == 2

    @pytest.mark.asyncio
    async def test_times_out_after_exact_cap(self, ctx, mock_msp, no_sleep) -> None:
        mock_msp.get_file_info.return_value = file_info("pending")

        with pytest.raises(PollingTimeoutError):
            await wait_for_backend_file_ready(ctx, VALID_BUCKET_ID, VALID_FILE_KEY)

        assert mock_msp.get_file_info.await_count == 144
        assert no_sleep.await_count == 143

    @pytest.mark.asyncio
    async def test_custom_cap(self, ctx, mock_msp, no_sleep) -> None:
        mock_msp.get_file_info.side_effect = MspNotFoundError("GET", "/x")

        with pytest.raises(PollingTimeoutError):
            await wait_for_backend_file_ready(ctx, VALID_BUCKET_ID, VALID_FILE_KEY, PollConfig(4, 1))

        assert mock_msp.get_file_info.await_count == 4

    @pytest.mark.asyncio
    async def test_server_error_aborts(self, ctx, mock_msp, no_sleep) -> None:
        mock_msp.get_file_info.side_effect = MspRequestError("GET", "/x", 500)

        with pytest.raises(MspRequestError):
            await wait_for_backend_file_ready(ctx, VALID_BUCKET_ID, VALID_FILE_KEY)

        assert mock_msp.get_file_info.await_count == 1


# =============================================================================
# download_file / verify_download
# =============================================================================


class TestDownload:
    @pytest.mark.asyncio
    async def test_delegates_to_msp(self, ctx, mock_msp, tmp_path: Path) -> None:
        destination = tmp_path / "out.txt"
        mock_msp.download_file.return_value = DownloadedFile(path=destination, size=10, mime="text/plain")

        downloaded = await download_file(ctx, VALID_FILE_KEY, destination)

        assert downloaded.size == 10
        mock_msp.download_file.assert_awaited_once_with(VALID_FILE_KEY, destination)

    @pytest.mark.asyncio
    async def test_failure_propagates(self, ctx, mock_msp, tmp_path: Path) -> None:
        mock_msp.download_file.side_effect = DownloadFailedError(VALID_FILE_KEY, 500)

        with pytest.raises(DownloadFailedError):
            await download_file(ctx, VALID_FILE_KEY, tmp_path / "out.txt")


class TestVerifyDownload:
    def _pair(self, tmp_path: Path, first: bytes, second: bytes):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.write_bytes(first)
        b.write_bytes(second)
        return a, b

    def test_identical(self, tmp_path: Path) -> None:
        assert verify_download(*self._pair(tmp_path, TEN_BYTES, TEN_BYTES))

    def test_both_empty(self, tmp_path: Path) -> None:
        assert verify_download(*self._pair(tmp_path, b"", b""))

    def test_trailing_byte(self, tmp_path: Path) -> None:
        assert not verify_download(*self._pair(tmp_path, TEN_BYTES, TEN_BYTES + b"\n"))

    def test_same_length_different_content(self, tmp_path: Path) -> None:
        assert not verify_download(*self._pair(tmp_path, TEN_BYTES, b"9876543210"))

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            verify_download(tmp_path / "nope", tmp_path / "nope2")
