"""Message bus adapter for "submission created" events.

Classes:
    SubmissionEventSubscriber: Subscribes on NATS and hands raw payloads to a bounded queue that is
        consumed as an async iterator; closing the queue ends the iteration.

Functions:
    parse_submission_event(payload): Decode and validate a raw payload.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Awaitable, Callable, Optional

import nats
from pydantic import ValidationError
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from plagiarism_guard.core.config import Settings, get_settings
from plagiarism_guard.core.errors import BusConnectionError, MalformedMessageError
from plagiarism_guard.schemas import SubmissionCreatedEvent

_LOGGER = logging.getLogger(__name__)

_CLOSED = object()


def parse_submission_event(payload: bytes) -> SubmissionCreatedEvent:
    if not payload:
        raise MalformedMessageError("empty payload")
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedMessageError(f"payload is not valid UTF-8: {exc}") from exc
    try:
        return SubmissionCreatedEvent.model_validate_json(text)
    except ValidationError as exc:
        raise MalformedMessageError(
            f"invalid submission event: {exc.error_count()} error(s), first: {exc.errors()[0]['msg']}"
        ) from exc


class SubmissionEventSubscriber:
    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        connect: Callable[..., Awaitable[Any]] = nats.connect,
    ) -> None:
        settings = settings or get_settings()
        self._servers = [server.strip() for server in settings.nats_servers.split(",") if server.strip()]
        self._subject = settings.submission_subject
        self._queue_group = settings.nats_queue_group
        self._attempts = settings.bus_connect_attempts
        self._connect = connect
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=settings.subscriber_queue_size)
        self._nc: Any = None
        self._sub: Any = None
        self._closed = False

    @property
    def subject(self) -> str:
        return self._subject

    async def start(self) -> None:
        self._nc = await self._connect_with_retry()
        self._sub = await self._nc.subscribe(self._subject, queue=self._queue_group, cb=self._on_message)
        _LOGGER.info("subscribed subject=%s servers=%s", self._subject, ",".join(self._servers))

    async def _connect_with_retry(self) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=1, min=1, max=20),
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._connect(servers=self._servers, name="plagiarism-guard")
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            raise BusConnectionError(
                f"could not connect to {','.join(self._servers)} after {self._attempts} attempt(s): {cause}"
            ) from cause
        raise BusConnectionError("connect attempts exhausted")

    async def _on_message(self, msg: Any) -> None:
        if self._closed:
            return
        await self._queue.put(msg.data)

    async def messages(self) -> AsyncIterator[bytes]:
        """Yield raw payloads until the subscriber is closed and the queue has drained."""

        while True:
            if self._closed and self._queue.empty():
                return
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item

    async def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._sub is not None:
            try:
                await self._sub.unsubscribe()
            except Exception as exc:
                _LOGGER.warning("unsubscribe failed subject=%s: %s", self._subject, exc)
            self._sub = None
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def close(self) -> None:
        await self.unsubscribe()
        if self._nc is None:
            return
        nc, self._nc = self._nc, None
        try:
            await nc.drain()
        except Exception as exc:
            _LOGGER.warning("bus drain failed: %s", exc)
