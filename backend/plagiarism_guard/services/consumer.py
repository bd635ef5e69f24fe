"""Sequential consumption loop for submission events.

Classes:
    PlagiarismConsumer: Reads payloads one at a time from the subscriber, validates them and runs
        detection; owns the start/shutdown lifecycle of the bus subscription.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from plagiarism_guard.core.errors import BusConnectionError, DimensionMismatchError, MalformedMessageError
from plagiarism_guard.services.plagiarism import PlagiarismService
from plagiarism_guard.services.subscriber import SubmissionEventSubscriber, parse_submission_event

_LOGGER = logging.getLogger(__name__)


class PlagiarismConsumer:
    def __init__(
        self,
        service: PlagiarismService,
        subscriber: SubmissionEventSubscriber,
        *,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self._service = service
        self._subscriber = subscriber
        self._on_close = on_close
        self._task: Optional[asyncio.Task] = None
        self._shutdown_started = False

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        try:
            await self._subscriber.start()
        except BusConnectionError as exc:
            _LOGGER.critical("consumer not running: message bus unavailable: %s", exc)
            raise
        self._task = asyncio.create_task(self.run(), name="plagiarism-consumer")

    async def run(self) -> None:
        async for payload in self._subscriber.messages():
            await self.handle(payload)
        _LOGGER.info("consumption loop stopped subject=%s", self._subscriber.subject)

    async def handle(self, payload: bytes) -> bool:
        """Process a single payload; returns False when the message was dropped."""

        try:
            event = parse_submission_event(payload)
        except MalformedMessageError as exc:
            _LOGGER.warning("dropping malformed message: %s", exc)
            return False

        try:
            await self._service.process_submission(event.submission_id, event.tenant_id, event.course_id)
        except DimensionMismatchError as exc:
            _LOGGER.critical(
                "consumer not running: embedding dimension mismatch for submission_id=%s: %s",
                event.submission_id,
                exc,
            )
            raise
        except Exception:
            _LOGGER.exception("message processing error submission_id=%s", event.submission_id)
            return False
        return True

    async def shutdown(self) -> None:
        """Unsubscribe, let the in-flight message finish, drain the bus, then release the pool."""

        if self._shutdown_started:
            return
        self._shutdown_started = True

        await self._subscriber.unsubscribe()
        if self._task is not None:
            # asyncio.wait never cancels the loop task and lets our own cancellation propagate.
            await asyncio.wait({self._task})
            if self._task.cancelled():
                _LOGGER.warning("consumption loop was cancelled before shutdown")
            else:
                error = self._task.exception()
                if error is not None and not isinstance(error, DimensionMismatchError):
                    _LOGGER.error("consumption loop failed: %s", error, exc_info=error)
        await self._subscriber.close()
        if self._on_close is not None:
            await self._on_close()
        _LOGGER.info("consumer shut down")
