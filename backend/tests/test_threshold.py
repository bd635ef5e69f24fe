"""Tests for tenant threshold resolution."""

from __future__ import annotations

import pytest

from plagiarism_guard.services.submission_store import SubmissionStore
from plagiarism_guard.services.threshold import ThresholdResolver, coerce_threshold


class CountingStore:
    def __init__(self, settings: dict | None) -> None:
        self.settings = settings
        self.calls = 0

    async def get_tenant_settings(self, tenant_id: str):
        self.calls += 1
        return self.settings


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize(
    "raw, expected",
    [
        (0.65, 0.65),
        (1, 1.0),
        (0, 0.0),
        (1.1, 0.85),
        (-0.2, 0.85),
        ("0.7", 0.85),
        (True, 0.85),
        (None, 0.85),
        (float("nan"), 0.85),
    ],
)
def test_coerce_threshold(raw, expected):
    assert coerce_threshold(raw, 0.85) == pytest.approx(expected)


@pytest.mark.asyncio
async def test_resolves_tenant_value(session_factory, add_tenant, settings):
    await add_tenant("t1", {"plagiarism_threshold": 0.65, "theme": "dark"})
    resolver = ThresholdResolver(SubmissionStore(session_factory), settings=settings)

    assert await resolver.resolve_threshold("t1") == pytest.approx(0.65)


@pytest.mark.asyncio
async def test_missing_tenant_or_setting_uses_default(session_factory, add_tenant, settings):
    await add_tenant("t1", {"theme": "dark"})
    await add_tenant("t2", None)
    resolver = ThresholdResolver(SubmissionStore(session_factory), settings=settings)

    assert await resolver.resolve_threshold("t1") == pytest.approx(0.85)
    assert await resolver.resolve_threshold("t2") == pytest.approx(0.85)
    assert await resolver.resolve_threshold("unknown") == pytest.approx(0.85)


@pytest.mark.asyncio
async def test_no_caching_by_default(settings):
    store = CountingStore({"plagiarism_threshold": 0.5})
    resolver = ThresholdResolver(store, settings=settings)

    await resolver.resolve_threshold("t1")
    await resolver.resolve_threshold("t1")

    assert store.calls == 2


@pytest.mark.asyncio
async def test_ttl_cache_expires(settings):
    store = CountingStore({"plagiarism_threshold": 0.5})
    clock = FakeClock()
    resolver = ThresholdResolver(
        store,
        settings=settings.model_copy(update={"threshold_cache_ttl_seconds": 60.0}),
        clock=clock,
    )

    assert await resolver.resolve_threshold("t1") == pytest.approx(0.5)
    store.settings = {"plagiarism_threshold": 0.9}
    clock.now += 30
    assert await resolver.resolve_threshold("t1") == pytest.approx(0.5)
    clock.now += 31
    assert await resolver.resolve_threshold("t1") == pytest.approx(0.9)
    assert store.calls == 2


@pytest.mark.asyncio
async def test_ttl_is_capped_and_invalidation_forces_reload(settings):
    store = CountingStore({"plagiarism_threshold": 0.5})
    clock = FakeClock()
    resolver = ThresholdResolver(
        store,
        settings=settings.model_copy(update={"threshold_cache_ttl_seconds": 3600.0}),
        clock=clock,
    )

    await resolver.resolve_threshold("t1")
    clock.now += 301
    await resolver.resolve_threshold("t1")
    resolver.invalidate("t1")
    await resolver.resolve_threshold("t1")

    assert store.calls == 3
