"""Stand-alone entry point running only the submission consumer.

Usage:
    python -m plagiarism_guard.worker
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from sqlalchemy.exc import SQLAlchemyError

from plagiarism_guard.core.config import configure_logging, get_settings
from plagiarism_guard.core.errors import BusConnectionError
from plagiarism_guard.db.session import SessionLocal, dispose_engine, init_db
from plagiarism_guard.services import PlagiarismConsumer, SubmissionEventSubscriber, build_plagiarism_service

_LOGGER = logging.getLogger(__name__)


async def serve() -> int:
    settings = get_settings()
    configure_logging(settings)

    try:
        await init_db()
    except (SQLAlchemyError, OSError) as exc:
        _LOGGER.critical("consumer not running: database unavailable: %s", exc)
        await dispose_engine()
        return 1

    consumer = PlagiarismConsumer(
        build_plagiarism_service(SessionLocal, settings=settings),
        SubmissionEventSubscriber(settings=settings),
        on_close=dispose_engine,
    )
    try:
        await consumer.start()
    except BusConnectionError:
        await consumer.shutdown()
        return 1

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    stop_waiter = asyncio.create_task(stop.wait())
    await asyncio.wait({stop_waiter, consumer.task}, return_when=asyncio.FIRST_COMPLETED)
    stop_waiter.cancel()

    failed = consumer.task.done() and not stop.is_set()
    await consumer.shutdown()
    return 1 if failed else 0


def main() -> None:
    sys.exit(asyncio.run(serve()))


if __name__ == "__main__":
    main()
