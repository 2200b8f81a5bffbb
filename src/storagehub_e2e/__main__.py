"""
Command line entry point.

Usage:
    python -m storagehub_e2e [--network testnet] [--file files/datahaven.png]

Environment Variables:
    PRIVATE_KEY: Private key of the bucket owner (required)
    NETWORK: testnet or local (default: testnet)
    RPC_URL, WS_URL, MSP_URL: Endpoint overrides
    BUCKET_NAME: Bucket to create
    FILE_PATH: File to upload
    DOWNLOAD_PATH: Where to write the downloaded copy
    VALUE_PROP_ID: Value proposition to use instead of the first available
    LOG_LEVEL: Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from storagehub_e2e.config import E2ESettings, Network
from storagehub_e2e.errors import ConfigurationError, StorageHubE2EError
from storagehub_e2e.runner import run_e2e
from storagehub_e2e.utils.logging import configure_logging, get_logger

_logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storagehub-e2e",
        description="Create a bucket, upload a file, wait for it, download it and verify it.",
    )
    parser.add_argument("--env-file", help="Path to a .env file (default: search for .env)")
    parser.add_argument("--network", choices=[n.value for n in Network])
    parser.add_argument("--bucket-name")
    parser.add_argument("--file", dest="file_path", help="File to upload")
    parser.add_argument("--download-path")
    parser.add_argument("--value-prop-id")
    parser.add_argument("--log-level")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = E2ESettings.from_env(
            env_file=args.env_file,
            network=args.network,
            bucket_name=args.bucket_name,
            file_path=args.file_path,
            download_path=args.download_path,
            value_prop_id=args.value_prop_id,
            log_level=args.log_level,
        )
    except ConfigurationError as e:
        configure_logging()
        _logger.error(str(e), extra=e.details)
        return 2

    configure_logging(settings.log_level)

    try:
        report = asyncio.run(run_e2e(settings))
    except StorageHubE2EError as e:
        _logger.error(f"Run failed: {e}", extra={"error": e.to_dict()})
        return 1

    print(report.summary())
    return 0 if report.passed else 1


if __name__ == "__main__":
    sys.exit(main())
