"""
File lifecycle: storage request, upload, confirmation waits, download, verify.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from storagehub_e2e.chain.file_manager import FileManager
from storagehub_e2e.chain.types import ReplicationLevel, StorageRequestRecord, TxResult
from storagehub_e2e.context import E2EContext
from storagehub_e2e.errors import (
    FileExpiredError,
    FileRejectedError,
    FileRevokedError,
    MspNotFoundError,
    MultiaddressesMissingError,
    PeerIdNotFoundError,
    StorageRequestMismatchError,
    StorageRequestNotFoundError,
    UploadFailedError,
)
from storagehub_e2e.msp.types import (
    DownloadedFile,
    FileInfo,
    FileStatus,
    StatusClass,
    UploadReceipt,
)
from storagehub_e2e.utils.logging import get_logger
from storagehub_e2e.utils.polling import PollConfig, poll_until
from storagehub_e2e.utils.validation import same_hex, to_hex

_logger = get_logger(__name__)

MSP_CONFIRM_POLL = PollConfig(max_attempts=10, interval_ms=2000)
# Sized for BSP replication, which is slower than one on-chain confirmation
FILE_READY_POLL = PollConfig(max_attempts=144, interval_ms=5000)

REPLICATION_LEVEL = ReplicationLevel.CUSTOM
REPLICAS = 1

_TERMINAL_ERRORS = {
    FileStatus.REVOKED: FileRevokedError,
    FileStatus.REJECTED: FileRejectedError,
    FileStatus.EXPIRED: FileExpiredError,
}


@dataclass
class UploadResult:
    file_key: str
    fingerprint: str
    size: int
    tx: TxResult
    storage_request: StorageRequestRecord
    receipt: UploadReceipt


def extract_peer_ids(multiaddresses: Iterable[str]) -> List[str]:
    """
    Extract libp2p peer ids from multiaddresses.

    A multiaddress such as ``/ip4/1.2.3.4/tcp/30333/p2p/12D3Koo...`` carries
    its peer id after the last ``/p2p/``. Addresses without that segment are
    skipped.
    """
    peer_ids = []
    for addr in multiaddresses or []:
        if "/p2p/" not in addr:
            continue
        peer_id = addr.rsplit("/p2p/", 1)[1].strip("/")
        if peer_id:
            peer_ids.append(peer_id)
    return peer_ids


async def upload_file(
    ctx: E2EContext,
    bucket_id: str,
    file_path: Union[str, os.PathLike],
    file_name: str,
) -> UploadResult:
    """
    Issue a storage request for a local file and upload its bytes to the MSP.

    Steps: fingerprint the file, resolve the MSP's peer ids, submit the
    storage request, derive the file key, check the request on chain,
    sign in to the MSP and upload.

    Raises:
        MultiaddressesMissingError: If the MSP reports no multiaddresses
        PeerIdNotFoundError: If no multiaddress carries a peer id
        TransactionFailedError: If the storage request transaction fails
        StorageRequestNotFoundError: If the request is not readable on chain
        StorageRequestMismatchError: If bucket id or fingerprint differ on chain
        UploadFailedError: If the MSP does not acknowledge the upload
    """
    manager = FileManager(file_path)
    size = await asyncio.to_thread(manager.get_file_size)
    fingerprint = to_hex(await asyncio.to_thread(manager.get_fingerprint))
    _logger.info("File fingerprinted", extra={"fingerprint": fingerprint, "size": size})

    info = await ctx.msp.get_info()
    if not info.multiaddresses:
        raise MultiaddressesMissingError(info.msp_id)
    peer_ids = extract_peer_ids(info.multiaddresses)
    if not peer_ids:
        raise PeerIdNotFoundError(info.multiaddresses)

    tx = await asyncio.to_thread(
        ctx.storage_hub.issue_storage_request,
        bucket_id,
        file_name,
        fingerprint,
        size,
        info.msp_id,
        peer_ids,
        REPLICATION_LEVEL,
        REPLICAS,
    )
    _logger.info("Storage request issued", extra={"tx_hash": tx.tx_hash})

    file_key = to_hex(
        await asyncio.to_thread(manager.compute_file_key, ctx.address, bucket_id, file_name)
    )

    request = await asyncio.to_thread(ctx.chain_state.get_storage_request, file_key)
    if request is None:
        raise StorageRequestNotFoundError(file_key)
    if not same_hex(request.bucket_id, bucket_id):
        raise StorageRequestMismatchError(
            "bucket_id", to_hex(bucket_id), request.bucket_id, file_key=file_key
        )
    if not same_hex(request.fingerprint, fingerprint):
        raise StorageRequestMismatchError(
            "fingerprint", fingerprint, request.fingerprint, file_key=file_key
        )
    _logger.info("Storage request found on chain", extra={"file_key": file_key})

    profile = await ctx.msp.authenticate(
        ctx.account,
        ctx.network.chain_id,
        domain=ctx.siwe_domain,
        uri=ctx.siwe_uri,
    )
    _logger.info("Authenticated with MSP", extra={"address": profile.address})

    receipt = await ctx.msp.upload_file(bucket_id, file_key, file_path, ctx.address, file_name)
    if not receipt.succeeded:
        raise UploadFailedError(file_key, status=receipt.status)
    _logger.info("File uploaded to MSP", extra={"file_key": file_key, "status": receipt.status})

    return UploadResult(
        file_key=file_key,
        fingerprint=fingerprint,
        size=size,
        tx=tx,
        storage_request=request,
        receipt=receipt,
    )


async def wait_for_msp_confirm_on_chain(
    ctx: E2EContext,
    file_key: str,
    config: Optional[PollConfig] = None,
) -> StorageRequestRecord:
    """
    Wait until the assigned MSP confirms the storage request on chain.

    Raises:
        StorageRequestNotFoundError: Immediately, if the request vanishes
        PollingTimeoutError: If the MSP has not confirmed after the last attempt
    """

    async def check(attempt: int) -> Optional[StorageRequestRecord]:
        request = await asyncio.to_thread(ctx.chain_state.get_storage_request, file_key)
        if request is None:
            raise StorageRequestNotFoundError(file_key, reason="no longer exists on chain")
        return request if request.msp_confirmed else None

    request = await poll_until(
        check,
        config or MSP_CONFIRM_POLL,
        description=f"MSP confirmation of {file_key} on chain",
    )
    _logger.info("Storage request confirmed by MSP on chain", extra={"file_key": file_key})
    return request


async def wait_for_backend_file_ready(
    ctx: E2EContext,
    bucket_id: str,
    file_key: str,
    config: Optional[PollConfig] = None,
) -> FileInfo:
    """
    Wait until the MSP backend reports the file as ready.

    Not-found responses mean the file is not indexed yet and are retried.
    Revoked, rejected and expired files fail on first sight.

    Raises:
        FileRevokedError, FileRejectedError, FileExpiredError: Terminal states
        PollingTimeoutError: If the file is not ready after the last attempt
    """

    async def check(attempt: int) -> Optional[FileInfo]:
        try:
            info = await ctx.msp.get_file_info(bucket_id, file_key)
        except MspNotFoundError:
            _logger.info("File not yet indexed in MSP backend", extra={"file_key": file_key})
            return None

        outcome = info.status.classify()
        if outcome is StatusClass.READY:
            return info
        if outcome is StatusClass.FAILED:
            raise _TERMINAL_ERRORS[info.status](file_key)
        _logger.info(
            "File not ready yet",
            extra={"file_key": file_key, "status": info.status.value},
        )
        return None

    info = await poll_until(
        check,
        config or FILE_READY_POLL,
        description=f"file {file_key} ready in MSP backend",
    )
    _logger.info("File ready in MSP backend", extra={"file_key": file_key})
    return info


async def download_file(
    ctx: E2EContext,
    file_key: str,
    destination: Union[str, os.PathLike],
) -> DownloadedFile:
    """Download a file from the MSP into ``destination``.

    Raises:
        DownloadFailedError: If the MSP does not answer 200
    """
    downloaded = await ctx.msp.download_file(file_key, destination)
    _logger.info(
        "File downloaded",
        extra={"path": str(downloaded.path), "size": downloaded.size, "mime": downloaded.mime},
    )
    return downloaded


def verify_download(original: Union[str, os.PathLike], downloaded: Union[str, os.PathLike]) -> bool:
    """Return True iff both files have identical bytes."""
    return Path(original).read_bytes() == Path(downloaded).read_bytes()
