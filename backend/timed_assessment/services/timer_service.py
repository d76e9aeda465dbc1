import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _to_naive_utc(dt: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC (remove tzinfo). If already naive, assume UTC and return as-is.
    Returns None if input is None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        # assume naive datetimes are already UTC
        return dt
    # convert to UTC and drop tzinfo
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimerReconciler:
    """Derives remaining time from the persisted session window.

    started_at on the stored session is the only time authority; whatever a
    client displays has to be recomputed from here.
    """

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    def expires_at(self, session) -> datetime:
        return _to_naive_utc(session.started_at) + timedelta(minutes=session.duration_minutes)

    def remaining_seconds(self, session) -> int:
        delta = self.expires_at(session) - _to_naive_utc(self.clock())
        return max(0, math.ceil(delta.total_seconds()))

    def is_expired(self, session) -> bool:
        return self.remaining_seconds(session) == 0

    def seconds_past_expiry(self, session) -> float:
        return max(0.0, (_to_naive_utc(self.clock()) - self.expires_at(session)).total_seconds())


class Countdown:
    """Local ticking display for one session.

    Every tick re-derives the remaining time from the reconciler. When it
    reaches zero on_expire is awaited once and the countdown stops. cancel()
    is for when the hosting view goes away.
    """

    def __init__(
        self,
        reconciler: TimerReconciler,
        session,
        on_expire: Callable[[], Awaitable[None]],
        on_tick: Optional[Callable[[int], None]] = None,
        interval: float = 1.0,
    ):
        self.reconciler = reconciler
        self.session = session
        self.on_expire = on_expire
        self.on_tick = on_tick
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self.expired = False

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self._task

    def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self):
        while True:
            remaining = self.reconciler.remaining_seconds(self.session)
            if self.on_tick is not None:
                self.on_tick(remaining)
            if remaining == 0:
                self.expired = True
                logger.info("Countdown expired for session %s", getattr(self.session, "id", None))
                await self.on_expire()
                return
            await asyncio.sleep(self.interval)


def format_time_display(seconds: int) -> str:
    """3665 -> '1h 1m 5s'."""
    if seconds <= 0:
        return "0s"

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)
