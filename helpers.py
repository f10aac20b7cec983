"""General-purpose helper utilities shared across the application."""

from __future__ import annotations

import numbers
from datetime import datetime, timezone
from typing import Any, Iterable

import pandas as pd


__all__ = [
    "_coerce_unix_timestamp",
    "_dedupe_preserve_order",
    "_format_human_date",
    "_has_text",
    "_split_platform_labels",
    "_utc_datetime_from_unix",
]


_MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def _has_text(value: Any) -> bool:
    """Return ``True`` when ``value`` holds non-empty, non-NaN text."""

    if value is None:
        return False
    if isinstance(value, str):
        text = value.strip()
    else:
        try:
            if pd.isna(value):
                return False
        except (TypeError, ValueError):
            pass
        text = str(value).strip()
    if not text:
        return False
    if text.lower() == "nan":
        return False
    return True


def _coerce_unix_timestamp(value: Any) -> int | None:
    """Return ``value`` as whole epoch seconds, or ``None`` when absent."""

    if value is None or isinstance(value, bool):
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return int(float(value))
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return None
    try:
        return int(float(text))
    except (TypeError, ValueError):
        return None


def _utc_datetime_from_unix(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def _format_human_date(value: datetime) -> str:
    """Return ``value`` formatted like ``Jan 5, 2025``."""

    return f"{_MONTH_ABBREVIATIONS[value.month - 1]} {value.day}, {value.year}"


def _dedupe_preserve_order(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        text = str(value).strip()
        if not text:
            continue
        key = text.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(text)
    return result


def _split_platform_labels(summary: Any) -> list[str]:
    """Split a comma-joined platform summary into individual labels."""

    if not _has_text(summary):
        return []
    return _dedupe_preserve_order(str(summary).split(","))
