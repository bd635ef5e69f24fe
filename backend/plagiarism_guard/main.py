"""Application bootstrap for the Plagiarism Guard API.

This module wires the FastAPI application and, when enabled, runs the submission consumer for the
lifetime of the process.

Functions:
    lifespan(app: FastAPI): Initialise database state, start the consumer, and shut it down on exit.
    health_check(): Lightweight readiness probe used by monitoring and local smoke tests.
    run(): Serve the API with uvicorn (`plagiarism-guard-api`).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from plagiarism_guard.api import api_router
from plagiarism_guard.core.config import configure_logging, get_settings
from plagiarism_guard.core.errors import BusConnectionError
from plagiarism_guard.db.session import SessionLocal, dispose_engine, init_db
from plagiarism_guard.services import PlagiarismConsumer, SubmissionEventSubscriber, build_plagiarism_service

settings = get_settings()
_LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    await init_db()
    consumer = None
    if settings.enable_consumer:
        consumer = PlagiarismConsumer(
            build_plagiarism_service(SessionLocal, settings=settings),
            SubmissionEventSubscriber(settings=settings),
        )
        try:
            await consumer.start()
        except BusConnectionError:
            consumer = None
    app.state.consumer = consumer
    try:
        yield
    finally:
        if consumer is not None:
            await consumer.shutdown()
        await dispose_engine()


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.include_router(api_router)


@app.get("/health")
async def health_check(request: Request):
    consumer = getattr(request.app.state, "consumer", None)
    return {"status": "ok", "consumer_running": bool(consumer and consumer.is_running)}


def run() -> None:
    uvicorn.run("plagiarism_guard.main:app", host=settings.api_host, port=settings.api_port)
