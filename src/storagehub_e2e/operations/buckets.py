"""
Bucket lifecycle: create on chain, read back, wait for the MSP indexer.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from storagehub_e2e.chain.types import BucketRecord, TxResult
from storagehub_e2e.context import E2EContext
from storagehub_e2e.errors import BucketNotFoundOnChainError, MspNotFoundError
from storagehub_e2e.msp.selection import ValuePropSelector, first_available
from storagehub_e2e.msp.types import BucketInfo
from storagehub_e2e.utils.logging import get_logger
from storagehub_e2e.utils.polling import PollConfig, poll_until

_logger = get_logger(__name__)

BUCKET_READY_POLL = PollConfig(max_attempts=10, interval_ms=2000)


@dataclass
class BucketCreation:
    bucket_id: str
    value_prop_id: str
    tx: TxResult

    @property
    def tx_hash(self) -> str:
        return self.tx.tx_hash


async def create_bucket(
    ctx: E2EContext,
    name: str,
    *,
    is_private: bool = False,
    selector: ValuePropSelector = first_available,
) -> BucketCreation:
    """
    Create a bucket owned by the context account.

    The MSP's id and one of its value propositions are attached to the
    bucket. Bucket names are unique per owner, so creating the same name
    twice fails on chain.

    Raises:
        NoValuePropositionsError: If the MSP offers nothing to choose from
        TransactionFailedError: If the chain rejects the transaction
    """
    info = await ctx.msp.get_info()
    value_props = await ctx.msp.get_value_propositions()
    value_prop = selector(value_props)
    _logger.info("Chose value proposition", extra={"value_prop_id": value_prop.id})

    bucket_id = await asyncio.to_thread(ctx.storage_hub.derive_bucket_id, name)
    _logger.info("Creating bucket", extra={"bucket_name": name, "bucket_id": bucket_id})

    tx = await asyncio.to_thread(
        ctx.storage_hub.create_bucket,
        info.msp_id,
        name,
        is_private,
        value_prop.id,
    )
    _logger.info("Bucket created", extra={"bucket_id": bucket_id, "tx_hash": tx.tx_hash})
    return BucketCreation(bucket_id=bucket_id, value_prop_id=value_prop.id, tx=tx)


async def verify_bucket_creation(ctx: E2EContext, bucket_id: str) -> BucketRecord:
    """Read the bucket back from chain state.

    Raises:
        BucketNotFoundOnChainError: If the bucket is absent
    """
    record = await asyncio.to_thread(ctx.chain_state.get_bucket, bucket_id)
    if record is None:
        raise BucketNotFoundOnChainError(bucket_id)
    _logger.info(
        "Bucket found on chain",
        extra={"bucket_id": record.bucket_id, "msp_id": record.msp_id},
    )
    return record


async def wait_for_backend_bucket_ready(
    ctx: E2EContext,
    bucket_id: str,
    config: Optional[PollConfig] = None,
) -> BucketInfo:
    """Poll the MSP backend until its indexer knows the bucket.

    Raises:
        PollingTimeoutError: If the bucket is still unknown after the last attempt
    """

    async def check(attempt: int) -> Optional[BucketInfo]:
        try:
            return await ctx.msp.get_bucket(bucket_id)
        except MspNotFoundError:
            _logger.info("Bucket not yet indexed by MSP backend", extra={"bucket_id": bucket_id})
            return None

    bucket = await poll_until(
        check,
        config or BUCKET_READY_POLL,
        description=f"bucket {bucket_id} in MSP backend",
    )
    _logger.info("Bucket found in MSP backend", extra={"bucket_id": bucket_id})
    return bucket
