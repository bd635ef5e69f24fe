"""Per-tenant plagiarism threshold resolution.

Classes:
    ThresholdResolver: Read ``plagiarism_threshold`` from tenant settings with an optional short-TTL cache.

Functions:
    coerce_threshold(value, default): Validate a raw settings value, falling back to ``default``.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Optional

from plagiarism_guard.core.config import Settings, get_settings
from plagiarism_guard.services.submission_store import SubmissionStore

_LOGGER = logging.getLogger(__name__)

THRESHOLD_SETTING_KEY = "plagiarism_threshold"


def coerce_threshold(value: Any, default: float) -> float:
    """Return ``value`` when it is a finite number in [0, 1], else ``default``."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        return default
    return float(value)


class ThresholdResolver:
    """Resolve the effective similarity threshold for a tenant.

    With ``threshold_cache_ttl_seconds`` at 0 (the default) every call reads the settings
    store. A positive TTL keeps resolved values for at most that long, capped at 300 seconds,
    so a settings change is visible within that bound.
    """

    def __init__(
        self,
        submission_store: SubmissionStore,
        *,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        settings = settings or get_settings()
        self._store = submission_store
        self._default = settings.plagiarism_default_threshold
        self._ttl = settings.threshold_cache_ttl
        self._clock = clock
        self._cache: dict[str, tuple[float, float]] = {}

    @property
    def default(self) -> float:
        return self._default

    async def resolve_threshold(self, tenant_id: str) -> float:
        if self._ttl > 0:
            cached = self._cache.get(tenant_id)
            if cached is not None and cached[1] > self._clock():
                return cached[0]

        tenant_settings = await self._store.get_tenant_settings(tenant_id)
        raw = tenant_settings.get(THRESHOLD_SETTING_KEY) if tenant_settings else None
        threshold = coerce_threshold(raw, self._default)
        if raw is not None and threshold != raw:
            _LOGGER.warning(
                "ignoring invalid %s=%r for tenant_id=%s, using default %.2f",
                THRESHOLD_SETTING_KEY,
                raw,
                tenant_id,
                self._default,
            )

        if self._ttl > 0:
            self._cache[tenant_id] = (threshold, self._clock() + self._ttl)
        return threshold

    def invalidate(self, tenant_id: Optional[str] = None) -> None:
        if tenant_id is None:
            self._cache.clear()
        else:
            self._cache.pop(tenant_id, None)
