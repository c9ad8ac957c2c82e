import structlog
from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_exception_type, stop_after_attempt, wait_incrementing

from tmtickets.core.core import Service
from tmtickets.core.modules.counter.models import TICKET_COUNTER_KEY
from tmtickets.core.storage.base import VersionedRecord
from tmtickets.errors import SequenceContentionError, VersionConflictError

logger = structlog.get_logger(__name__)


class CounterService(Service):
    """Issues unique, strictly increasing ticket numbers from a shared counter.

    The counter is a single versioned record. Each allocation reads it, then
    writes ``value + 1`` conditioned on the version it read; a lost race is
    retried with a linearly growing delay until the attempt budget runs out.
    """

    async def allocate_next(self) -> str:
        """Allocate the next ticket number, e.g. ``T-1000``."""
        config = self.core.config
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(VersionConflictError),
            stop=stop_after_attempt(config.ticket_number_max_attempts),
            wait=wait_incrementing(start=config.ticket_number_backoff, increment=config.ticket_number_backoff),
            before_sleep=_log_conflict,
        )

        value = None
        try:
            async for attempt in retrying:
                with attempt:
                    value = await self._increment()
        except RetryError as e:
            logger.warning("ticket_number_contention", attempts=config.ticket_number_max_attempts)
            raise SequenceContentionError from e

        ticket_number = f"{config.ticket_number_prefix}{value}"
        logger.info("ticket_number_allocated", ticket_number=ticket_number)
        return ticket_number

    async def current_value(self) -> int:
        """Last issued value, without incrementing."""
        record = await self.backend.counters.get(TICKET_COUNTER_KEY)
        if record is None:
            return self.core.config.ticket_number_start - 1
        return record.value

    async def _increment(self) -> int:
        store = self.backend.counters
        record = await store.get(TICKET_COUNTER_KEY)
        if record is None:
            record = await self._create_counter()
        updated = await store.replace(TICKET_COUNTER_KEY, record.value + 1, expected_version=record.version)
        return updated.value

    async def _create_counter(self) -> VersionedRecord:
        # Initialized one below start so the first allocation returns start
        initial = self.core.config.ticket_number_start - 1
        try:
            return await self.backend.counters.create(TICKET_COUNTER_KEY, initial)
        except VersionConflictError:
            logger.debug("counter_created_concurrently")
        record = await self.backend.counters.get(TICKET_COUNTER_KEY)
        if record is None:
            raise VersionConflictError("Counter vanished after concurrent create")
        return record


def _log_conflict(retry_state: RetryCallState) -> None:
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.debug("counter_conflict_retry", attempt=retry_state.attempt_number, delay=delay)
