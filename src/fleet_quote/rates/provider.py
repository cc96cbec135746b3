from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from fleet_quote.errors import RateSourceError
from fleet_quote.logging_config import get_logger
from fleet_quote.rates.config import RateConfig
from fleet_quote.singleflight import SingleFlight

logger = get_logger("rates.provider")

DEFAULT_TTL_SECONDS = 300.0


class RateSource(Protocol):
    async def fetch(self) -> RateConfig: ...


class StaticRateSource:
    """Serves a fixed record; handy for tests and offline runs."""

    def __init__(self, record: RateConfig | Mapping[str, Any] | None = None) -> None:
        if record is None:
            record = RateConfig.defaults()
        self._record = record

    async def fetch(self) -> RateConfig:
        if isinstance(self._record, RateConfig):
            return self._record
        return RateConfig.from_mapping(self._record)


class JsonFileRateSource:
    """Reads the rate record from a JSON file (see ``RateConfig.from_mapping``)."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> RateConfig:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RateSourceError(f"cannot read rates from {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise RateSourceError(f"rates file {self.path} must hold a JSON object")
        return RateConfig.from_mapping(raw)

    async def fetch(self) -> RateConfig:
        return await asyncio.to_thread(self._read)


@dataclass(frozen=True)
class RateCache:
    snapshot: RateConfig
    fetched_at: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        return (now - self.fetched_at) < ttl


class RateProvider:
    """
    TTL cache in front of a rate source.

    get_snapshot() never raises: on a failed refresh it serves the last good
    snapshot, or ``RateConfig.defaults()`` when nothing was ever fetched.
    """

    def __init__(
        self,
        source: RateSource,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._source = source
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._cache: RateCache | None = None
        self._flight = SingleFlight()
        self.last_error: BaseException | None = None

    @property
    def cache(self) -> RateCache | None:
        return self._cache

    def cached_snapshot(self) -> tuple[RateConfig, bool]:
        """
        Non-blocking view for the fast path.

        Returns (snapshot, is_fresh). Falls back to defaults (not fresh) when
        the cache is empty.
        """
        cache = self._cache
        if cache is None:
            return RateConfig.defaults(), False
        return cache.snapshot, cache.is_fresh(self._clock(), self._ttl)

    async def get_snapshot(self) -> RateConfig:
        cache = self._cache
        if cache is not None and cache.is_fresh(self._clock(), self._ttl):
            return cache.snapshot
        return await self._flight.do("rates", self._refresh)

    async def _refresh(self) -> RateConfig:
        try:
            snapshot = await self._source.fetch()
        except Exception as e:
            self.last_error = e
            if self._cache is not None:
                logger.warning(
                    "rate refresh failed; serving last good snapshot",
                    extra={"error": str(e), "snapshot_age_s": self._clock() - self._cache.fetched_at},
                )
                return self._cache.snapshot
            logger.warning("rate refresh failed; serving default rates", extra={"error": str(e)})
            return RateConfig.defaults()

        self._cache = RateCache(snapshot=snapshot, fetched_at=self._clock())
        self.last_error = None
        logger.info("rate snapshot refreshed", extra={"groups": sorted(snapshot.vehicle_groups)})
        return snapshot
