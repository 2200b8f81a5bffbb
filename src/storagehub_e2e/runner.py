"""
End-to-end orchestration.

Runs every workflow step strictly in order. Any exception aborts the run and
propagates to the caller; the clients are released on every exit path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from storagehub_e2e.chain.types import BucketRecord
from storagehub_e2e.config import E2ESettings
from storagehub_e2e.context import E2EContext
from storagehub_e2e.msp.selection import ValuePropSelector, by_id, first_available
from storagehub_e2e.msp.types import DownloadedFile, FileInfo, HealthStatus
from storagehub_e2e.operations.buckets import (
    BucketCreation,
    create_bucket,
    verify_bucket_creation,
    wait_for_backend_bucket_ready,
)
from storagehub_e2e.operations.files import (
    UploadResult,
    download_file,
    upload_file,
    verify_download,
    wait_for_backend_file_ready,
    wait_for_msp_confirm_on_chain,
)
from storagehub_e2e.utils.logging import get_logger

_logger = get_logger(__name__)


@dataclass
class E2EReport:
    """Everything a completed run observed."""

    health: HealthStatus
    bucket: BucketCreation
    bucket_record: BucketRecord
    upload: UploadResult
    file_info: FileInfo
    download: DownloadedFile
    integrity_ok: bool

    @property
    def passed(self) -> bool:
        return self.integrity_ok

    def summary(self) -> str:
        return "\n".join(
            [
                f"Bucket ID:      {self.bucket.bucket_id}",
                f"Bucket tx:      {self.bucket.tx_hash}",
                f"File key:       {self.upload.file_key}",
                f"Fingerprint:    {self.upload.fingerprint}",
                f"Uploaded size:  {self.upload.size} bytes",
                f"Downloaded:     {self.download.size} bytes to {self.download.path}",
                f"Content type:   {self.download.mime or 'unknown'}",
                f"File integrity: {'PASSED' if self.integrity_ok else 'FAILED'}",
            ]
        )


async def run_e2e(
    settings: E2ESettings,
    *,
    context: Optional[E2EContext] = None,
    selector: Optional[ValuePropSelector] = None,
) -> E2EReport:
    """
    Run the full storage workflow once.

    Args:
        settings: Validated run settings
        context: Pre-built clients (built from ``settings`` when omitted)
        selector: Value proposition policy (defaults to ``settings.value_prop_id``
            when set, else the first available offer)

    Returns:
        E2EReport with the integrity verdict

    Raises:
        StorageHubE2EError: On the first failing step
    """
    if selector is None:
        selector = by_id(settings.value_prop_id) if settings.value_prop_id else first_available
    ctx = context or E2EContext.from_settings(settings)

    async with ctx:
        _logger.info("Starting StorageHub end-to-end run", extra={"address": ctx.address})

        health = await ctx.msp.get_health()
        _logger.info("MSP health", extra={"status": health.status})

        bucket = await create_bucket(
            ctx,
            settings.bucket_name,
            is_private=settings.bucket_private,
            selector=selector,
        )
        bucket_record = await verify_bucket_creation(ctx, bucket.bucket_id)
        await wait_for_backend_bucket_ready(ctx, bucket.bucket_id, settings.bucket_ready_poll)

        file_name = settings.file_path.name
        upload = await upload_file(ctx, bucket.bucket_id, settings.file_path, file_name)

        await wait_for_msp_confirm_on_chain(ctx, upload.file_key, settings.msp_confirm_poll)
        file_info = await wait_for_backend_file_ready(
            ctx, bucket.bucket_id, upload.file_key, settings.file_ready_poll
        )

        downloaded = await download_file(ctx, upload.file_key, settings.resolved_download_path)
        integrity_ok = verify_download(settings.file_path, downloaded.path)
        if integrity_ok:
            _logger.info("File integrity verified: PASSED")
        else:
            _logger.error("File integrity verified: FAILED", extra={"file_key": upload.file_key})

    _logger.info("StorageHub end-to-end run completed")
    return E2EReport(
        health=health,
        bucket=bucket,
        bucket_record=bucket_record,
        upload=upload,
        file_info=file_info,
        download=downloaded,
        integrity_ok=integrity_ok,
    )
