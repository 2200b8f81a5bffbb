"""
Workflow steps for buckets and files.
"""

from storagehub_e2e.operations.buckets import (
    BUCKET_READY_POLL,
    BucketCreation,
    create_bucket,
    verify_bucket_creation,
    wait_for_backend_bucket_ready,
)
from storagehub_e2e.operations.files import (
    FILE_READY_POLL,
    MSP_CONFIRM_POLL,
    UploadResult,
    download_file,
    extract_peer_ids,
    upload_file,
    verify_download,
    wait_for_backend_file_ready,
    wait_for_msp_confirm_on_chain,
)

__all__ = [
    # Buckets
    "BucketCreation",
    "BUCKET_READY_POLL",
    "create_bucket",
    "verify_bucket_creation",
    "wait_for_backend_bucket_ready",
    # Files
    "UploadResult",
    "MSP_CONFIRM_POLL",
    "FILE_READY_POLL",
    "extract_peer_ids",
    "upload_file",
    "wait_for_msp_confirm_on_chain",
    "wait_for_backend_file_ready",
    "download_file",
    "verify_download",
]
