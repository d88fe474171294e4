"""Runtime wiring: refresh timer, tick timer, persistence.

Both timers run as tasks on the same event loop. Refreshes are serialized
by a lock; a tick never awaits in the middle of a state update.
"""

import asyncio
import logging

from displacement_api.core.broadcast import MESSAGE_TICK, ConnectionManager
from displacement_api.core.config import Settings
from displacement_api.core.fred_client import FredClient
from displacement_api.core.jitter import make_jitter
from displacement_api.core.measurements import MeasurementFetcher
from displacement_api.core.nowcast_engine import NowcastEngine
from displacement_api.domain.exceptions import StorageError
from displacement_api.storage import COUNTERS_KEY, SERIES_KEY, STATE_KEY, StateStore

logger = logging.getLogger(__name__)


class NowcastRuntime:
    """Owns the engine and drives it from two periodic triggers."""

    def __init__(
        self,
        engine: NowcastEngine,
        fetcher: MeasurementFetcher,
        store: StateStore,
        manager: ConnectionManager | None = None,
        refresh_interval: float = 6 * 60 * 60,
        tick_interval: float = 0.1,
        persist_every_ticks: int = 100,
    ):
        self.engine = engine
        self.fetcher = fetcher
        self.store = store
        self.manager = manager or ConnectionManager(send_timeout=max(tick_interval, 0.05))
        self.refresh_interval = refresh_interval
        self.tick_interval = tick_interval
        self.persist_every_ticks = persist_every_ticks
        self.tick_count = 0
        self._refresh_lock = asyncio.Lock()
        self._tasks: list[asyncio.Task] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Restore persisted state, fetch once, then start both timers."""
        await self.restore()
        try:
            await self.refresh()
        except Exception:
            logger.exception("[Nowcast] Initial refresh failed; starting on restored state")
        self._tasks = [
            asyncio.create_task(self.refresh_loop(), name="nowcast-refresh"),
            asyncio.create_task(self.tick_loop(), name="nowcast-tick"),
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        await self.persist_counters()
        await self.store.close()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def restore(self) -> None:
        try:
            counters = await self.store.get(COUNTERS_KEY)
            rates = await self.store.get(STATE_KEY)
            series = await self.store.get(SERIES_KEY)
        except StorageError as e:
            logger.error(f"[Store] Failed to restore state: {e}")
            return
        self.engine.restore(counters=counters, rates=rates, series=series)

    async def persist_counters(self) -> None:
        try:
            await self.store.set(COUNTERS_KEY, self.engine.counters_snapshot())
        except StorageError as e:
            logger.error(f"[Store] Counter persist failed: {e}")

    async def persist_state(self) -> None:
        try:
            await self.store.set(STATE_KEY, self.engine.rates_snapshot())
            await self.store.set(SERIES_KEY, self.engine.series.to_dict())
        except StorageError as e:
            logger.error(f"[Store] State persist failed: {e}")

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def refresh(self) -> None:
        """Fetch all series and recompute as one serialized update."""
        async with self._refresh_lock:
            outcomes = await self.fetcher.fetch_all()
            self.engine.refresh(outcomes)
        await self.persist_state()
        await self.persist_counters()

    async def refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_interval)
            try:
                await self.refresh()
            except Exception:
                logger.exception("[Nowcast] Refresh failed; keeping last known rates")

    async def tick_once(self) -> int:
        """Advance the counter by real elapsed time and push a tick."""
        self.engine.tick_now()
        delivered = await self.manager.broadcast(MESSAGE_TICK, self.engine.public_view())
        self.tick_count += 1
        if self.tick_count % self.persist_every_ticks == 0:
            await self.persist_counters()
        return delivered

    async def tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while True:
            try:
                await self.tick_once()
            except Exception:
                logger.exception("[Nowcast] Tick failed")
            next_at += self.tick_interval
            delay = next_at - loop.time()
            if delay < 0:
                # Fell behind; resume the fixed cadence from now
                next_at = loop.time()
                delay = 0
            await asyncio.sleep(delay)


def build_runtime(settings: Settings, store: StateStore) -> NowcastRuntime:
    """Assemble the runtime from settings."""
    client = FredClient(api_key=settings.fred_api_key, base_url=settings.fred_base_url)
    if not settings.fred_api_key:
        logger.warning("[FRED] FRED_API_KEY not set; live data unavailable")
    engine = NowcastEngine(jitter=make_jitter(settings.jitter_enabled))
    return NowcastRuntime(
        engine=engine,
        fetcher=MeasurementFetcher(client),
        store=store,
        refresh_interval=settings.refresh_interval_seconds,
        tick_interval=settings.tick_interval_seconds,
        persist_every_ticks=settings.persist_every_ticks,
    )
