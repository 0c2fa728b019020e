import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from solders.signature import Signature

from .commitment import satisfies
from .config import CommitmentLevel, PollPolicy
from .errors import ConfirmationCancelledError, ConfirmationTimeoutError, TransactionFailedError
from .models import TransactionStatus

logger = logging.getLogger(__name__)

StatusFetcher = Callable[[Signature], Awaitable[Optional[TransactionStatus]]]

__all__ = ["ConfirmationPoller", "PollPolicy", "StatusFetcher"]


class ConfirmationPoller:
    """Polls a signature's status until it reaches the requested commitment.

    The loop is bounded by ``PollPolicy.max_attempts`` and/or
    ``PollPolicy.timeout``. The timeout caps the whole wait: sleeps are
    shortened to the time left and each fetch is bounded by it. A set
    ``cancel_event`` stops it before the next fetch. Task cancellation
    interrupts it at any await.
    """

    def __init__(
        self,
        fetch_status: StatusFetcher,
        commitment: Optional[CommitmentLevel],
        policy: PollPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.fetch_status = fetch_status
        self.commitment = commitment
        self.policy = policy
        self._sleep = sleep
        self._clock = clock

    async def wait(self, signature: Signature, cancel_event: Optional[asyncio.Event] = None) -> Signature:
        started = self._clock()
        attempts = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise ConfirmationCancelledError(signature=str(signature), attempts=attempts)

            remaining = self._remaining(started)
            if remaining is not None and remaining <= 0:
                raise self._timed_out(signature, attempts, started)

            status = await self._fetch(signature, remaining, attempts, started)
            attempts += 1
            logger.debug("confirmation poll %d for %s: %s", attempts, signature, status)

            if status is not None and satisfies(status, self.commitment):
                if not status.is_ok:
                    raise TransactionFailedError(signature=str(signature), err=status.err or status.status)
                logger.info("transaction %s reached %s after %d polls", signature, self._level_name(), attempts)
                return signature

            if self.policy.max_attempts is not None and attempts >= self.policy.max_attempts:
                raise self._timed_out(signature, attempts, started)
            remaining = self._remaining(started)
            if remaining is not None and remaining <= 0:
                raise self._timed_out(signature, attempts, started)

            await self._sleep(self.policy.interval if remaining is None else min(self.policy.interval, remaining))

    async def _fetch(
        self, signature: Signature, remaining: Optional[float], attempts: int, started: float
    ) -> Optional[TransactionStatus]:
        if remaining is None:
            return await self.fetch_status(signature)
        try:
            return await asyncio.wait_for(self.fetch_status(signature), remaining)
        except asyncio.TimeoutError:
            raise self._timed_out(signature, attempts + 1, started) from None

    def _remaining(self, started: float) -> Optional[float]:
        if self.policy.timeout is None:
            return None
        return self.policy.timeout - (self._clock() - started)

    def _timed_out(self, signature: Signature, attempts: int, started: float) -> ConfirmationTimeoutError:
        return ConfirmationTimeoutError(signature=str(signature), attempts=attempts, elapsed=self._clock() - started)

    def _level_name(self) -> str:
        return self.commitment.value if self.commitment is not None else "processed"
