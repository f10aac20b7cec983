"""Presentation state for the release table: filters, tokens and day groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import groupby
from typing import Any, Iterable, Mapping

import pandas as pd

from helpers import _split_platform_labels
from releases.window import DEFAULT_MODE, MODE_LABELS, resolve_window_mode

ROW_COLUMNS: tuple[str, ...] = (
    "date",
    "humanDate",
    "name",
    "slug",
    "platforms",
    "coverUrl",
)


@dataclass
class DayGroup:
    date: str
    human_date: str
    rows: list[dict[str, Any]] = field(default_factory=list)


def _rows_frame(rows: Iterable[Mapping[str, Any]] | None) -> pd.DataFrame:
    records = [dict(row) for row in rows or []]
    return pd.DataFrame.from_records(records, columns=list(ROW_COLUMNS))


def _frame_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    if df.empty:
        return []
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict(orient="records")


def group_by_day(rows: Iterable[Mapping[str, Any]]) -> list[DayGroup]:
    """Group consecutive rows sharing a ``date`` under one header."""

    groups: list[DayGroup] = []
    for date, members in groupby(rows, key=lambda row: row.get("date")):
        items = [dict(row) for row in members]
        groups.append(
            DayGroup(date=date, human_date=items[0].get("humanDate") or "", rows=items)
        )
    return groups


@dataclass
class ReleaseBrowser:
    """Own the rows and active filters behind the release page.

    Filtering never mutates ``rows_df``; changing the window mode clears both
    filters, matching the page's behaviour when a new range is loaded.
    """

    mode: str = DEFAULT_MODE
    rows_df: pd.DataFrame = field(default_factory=lambda: _rows_frame(None))
    text_filter: str = ""
    active_platforms: set[str] = field(default_factory=set)

    @classmethod
    def from_rows(
        cls, rows: Iterable[Mapping[str, Any]], *, mode: str = DEFAULT_MODE
    ) -> "ReleaseBrowser":
        browser = cls(mode=resolve_window_mode(mode))
        browser.set_rows(rows)
        return browser

    @property
    def total(self) -> int:
        return len(self.rows_df)

    def set_rows(self, rows: Iterable[Mapping[str, Any]] | None) -> None:
        self.rows_df = _rows_frame(rows)

    def set_mode(self, mode: Any) -> str:
        """Switch window mode, clearing filters; returns the resolved mode."""

        self.mode = resolve_window_mode(mode)
        self.clear_filters()
        self.rows_df = _rows_frame(None)
        return self.mode

    def clear_filters(self) -> None:
        self.text_filter = ""
        self.active_platforms = set()

    def set_text_filter(self, value: str | None) -> None:
        self.text_filter = (value or "").strip()

    def toggle_platform(self, token: str, active: bool | None = None) -> None:
        key = (token or "").strip()
        if not key:
            return
        current = {value.casefold() for value in self.active_platforms}
        if active is None:
            active = key.casefold() not in current
        if active:
            self.active_platforms.add(key)
        else:
            self.active_platforms = {
                value
                for value in self.active_platforms
                if value.casefold() != key.casefold()
            }

    def platform_tokens(self) -> list[str]:
        """Return the distinct platform labels present in the loaded rows."""

        values: dict[str, str] = {}
        if not self.rows_df.empty:
            for summary in self.rows_df["platforms"].dropna():
                for label in _split_platform_labels(summary):
                    values.setdefault(label.casefold(), label)
        return sorted(values.values(), key=str.casefold)

    def _filter_mask(self) -> pd.Series:
        platforms = self.rows_df["platforms"].fillna("").astype(str).str.lower()
        mask = pd.Series(True, index=self.rows_df.index)

        query = self.text_filter.lower()
        if query:
            mask &= platforms.str.contains(query, regex=False)

        tokens = [token.lower() for token in self.active_platforms if token.strip()]
        if tokens:
            token_mask = pd.Series(False, index=self.rows_df.index)
            for token in tokens:
                token_mask |= platforms.str.contains(token, regex=False)
            mask &= token_mask
        return mask

    def filtered_rows(self) -> list[dict[str, Any]]:
        """Rows matching the text filter and at least one active platform."""

        if self.rows_df.empty:
            return []
        return _frame_records(self.rows_df[self._filter_mask()])

    def grouped_rows(self) -> list[DayGroup]:
        return group_by_day(self.filtered_rows())

    def status_text(self) -> str:
        if self.rows_df.empty:
            return "No games found."
        return f"Showing {self.total} games. ({MODE_LABELS[self.mode]})"


__all__ = ["DayGroup", "ROW_COLUMNS", "ReleaseBrowser", "group_by_day"]
