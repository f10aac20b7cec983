"""Flatten raw IGDB release records into display rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from helpers import (
    _coerce_unix_timestamp,
    _format_human_date,
    _has_text,
    _utc_datetime_from_unix,
)
from igdb.client import cover_url_from_cover

logger = logging.getLogger(__name__)

UNKNOWN_PLATFORM = "Unknown"


@dataclass(frozen=True)
class DisplayRow:
    iso_date: str
    human_date: str
    name: str | None
    slug: str | None
    platform_summary: str
    cover_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape served by the releases API."""

        return {
            "date": self.iso_date,
            "humanDate": self.human_date,
            "name": self.name,
            "slug": self.slug,
            "platforms": self.platform_summary,
            "coverUrl": self.cover_url,
        }


def summarize_platforms(platforms: Any, placeholder: str = UNKNOWN_PLATFORM) -> str:
    """Join platform abbreviations, falling back to full names per entry."""

    if not isinstance(platforms, (list, tuple)):
        return placeholder

    labels: list[str] = []
    for platform in platforms:
        if isinstance(platform, Mapping):
            abbreviation = platform.get("abbreviation")
            if _has_text(abbreviation):
                labels.append(str(abbreviation).strip())
                continue
            name = platform.get("name")
            if _has_text(name):
                labels.append(str(name).strip())
        elif _has_text(platform):
            labels.append(str(platform).strip())
    return ", ".join(labels) if labels else placeholder


def normalize_release(record: Mapping[str, Any]) -> DisplayRow | None:
    """Return a :class:`DisplayRow` for ``record`` or ``None`` when undated."""

    if not isinstance(record, Mapping):
        return None

    timestamp = _coerce_unix_timestamp(record.get("first_release_date"))
    if not timestamp:
        return None

    released = _utc_datetime_from_unix(timestamp)
    return DisplayRow(
        iso_date=released.date().isoformat(),
        human_date=_format_human_date(released),
        name=record.get("name"),
        slug=record.get("slug"),
        platform_summary=summarize_platforms(record.get("platforms")),
        cover_url=cover_url_from_cover(record.get("cover")),
    )


def normalize_releases(records: Iterable[Mapping[str, Any]] | None) -> list[DisplayRow]:
    """Normalize ``records`` into rows sorted by release day.

    Records without a release date are dropped. The sort is stable, so rows
    sharing a day keep the order the catalog returned them in.
    """

    rows: list[DisplayRow] = []
    skipped = 0
    for record in records or []:
        row = normalize_release(record)
        if row is None:
            skipped += 1
            continue
        rows.append(row)

    if skipped:
        logger.debug("Skipped %s IGDB records without a release date", skipped)

    rows.sort(key=lambda row: row.iso_date)
    return rows


__all__ = [
    "DisplayRow",
    "UNKNOWN_PLATFORM",
    "normalize_release",
    "normalize_releases",
    "summarize_platforms",
]
