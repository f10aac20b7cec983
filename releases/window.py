"""Release window computation for the upcoming-games query."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Final

MODE_MONTH: Final[str] = "month"
MODE_30_DAYS: Final[str] = "30days"
DEFAULT_MODE: Final[str] = MODE_MONTH
WINDOW_MODES: Final[tuple[str, ...]] = (MODE_MONTH, MODE_30_DAYS)

THIRTY_DAYS_SECONDS: Final[int] = 30 * 86400

MODE_LABELS: Final[dict[str, str]] = {
    MODE_MONTH: "Next calendar month",
    MODE_30_DAYS: "Next 30 days",
}


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval ``[from_unix, to_unix)`` in epoch seconds."""

    from_unix: int
    to_unix: int
    mode: str = DEFAULT_MODE

    @property
    def starts_at(self) -> datetime:
        return datetime.fromtimestamp(self.from_unix)

    @property
    def ends_at(self) -> datetime:
        return datetime.fromtimestamp(self.to_unix)

    def contains(self, timestamp: int) -> bool:
        return self.from_unix <= timestamp < self.to_unix

    def describe(self) -> str:
        return (
            f"{self.starts_at:%Y-%m-%d %H:%M:%S} to "
            f"{self.ends_at:%Y-%m-%d %H:%M:%S} ({MODE_LABELS[self.mode]})"
        )


def resolve_window_mode(value: Any) -> str:
    """Return the canonical window mode for ``value``.

    Only ``"30days"`` selects the rolling window; anything else, including a
    missing or unrecognized value, falls back to the next calendar month.
    """

    if isinstance(value, str) and value.strip().lower() == MODE_30_DAYS:
        return MODE_30_DAYS
    return DEFAULT_MODE


def _start_of_month(year: int, month: int) -> datetime:
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1)


def next_month_window(now: datetime) -> TimeWindow:
    """Return the whole calendar month after the month containing ``now``."""

    start = _start_of_month(now.year, now.month + 1)
    end = _start_of_month(start.year, start.month + 1)
    return TimeWindow(
        from_unix=int(start.timestamp()),
        to_unix=int(end.timestamp()),
        mode=MODE_MONTH,
    )


def next_30_days_window(now: datetime) -> TimeWindow:
    """Return thirty days of releases starting at local midnight of ``now``."""

    start = datetime(now.year, now.month, now.day)
    from_unix = int(start.timestamp())
    return TimeWindow(
        from_unix=from_unix,
        to_unix=from_unix + THIRTY_DAYS_SECONDS,
        mode=MODE_30_DAYS,
    )


def compute_release_window(
    mode: Any = DEFAULT_MODE,
    *,
    now: datetime | None = None,
    clock: Callable[[], datetime] | None = None,
) -> TimeWindow:
    """Compute a fresh :class:`TimeWindow` for ``mode`` relative to local time.

    ``now`` is interpreted as a naive local timestamp; aware values are first
    converted to local time so month boundaries stay at local midnight.
    """

    if now is None:
        now = (clock or datetime.now)()
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)

    if resolve_window_mode(mode) == MODE_30_DAYS:
        return next_30_days_window(now)
    return next_month_window(now)


__all__ = [
    "DEFAULT_MODE",
    "MODE_30_DAYS",
    "MODE_LABELS",
    "MODE_MONTH",
    "THIRTY_DAYS_SECONDS",
    "TimeWindow",
    "WINDOW_MODES",
    "compute_release_window",
    "next_30_days_window",
    "next_month_window",
    "resolve_window_mode",
]
