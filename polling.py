import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable, Optional

from config import settings

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = {"CONFIRMED", "SUCCESS"}
FAILED_STATUSES = {"FAILED"}


class PollOutcome(enum.Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


async def poll_transaction_status(
    api,
    device_id: str,
    wallet_id: Any,
    tx_hash: str,
    attempts: Optional[int] = None,
    interval: Optional[float] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> PollOutcome:
    """Poll a transaction until it settles.

    At most ``attempts`` requests are made with a fixed ``interval`` between
    them. Request errors are retried on the next attempt; a FAILED status or
    an unsuccessful envelope ends polling as FAILED.
    """
    attempts = settings.poll_attempts if attempts is None else attempts
    interval = settings.poll_interval if interval is None else interval

    for attempt in range(1, attempts + 1):
        try:
            response = await api.get_transaction_status(device_id, wallet_id, tx_hash)
        except Exception as e:
            logger.warning(f"Transaction {tx_hash} status request failed (attempt {attempt}/{attempts}): {str(e)}")
            if attempt < attempts:
                await sleep(interval)
            continue

        envelope_status = response.get("status") if isinstance(response, dict) else None
        if envelope_status == "success":
            data = response.get("data") or {}
            tx_status = str(data.get("status") or "").upper()
            if tx_status in SUCCESS_STATUSES:
                logger.info(f"Transaction {tx_hash} confirmed after {attempt} attempt(s)")
                return PollOutcome.SUCCEEDED
            if tx_status in FAILED_STATUSES:
                logger.warning(f"Transaction {tx_hash} failed: {data.get('error')}")
                return PollOutcome.FAILED
        elif envelope_status != "pending":
            logger.error(f"Unexpected transaction status response for {tx_hash}: {response}")
            return PollOutcome.FAILED

        if attempt < attempts:
            await sleep(interval)

    logger.warning(f"Transaction {tx_hash} still unconfirmed after {attempts} attempts")
    return PollOutcome.TIMED_OUT
