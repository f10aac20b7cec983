#!/usr/bin/env python3
"""Print upcoming IGDB releases grouped by day, or just check credentials."""

import argparse
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config import ConfigurationError, require_igdb_credentials
from igdb.client import IGDBError
from processed.browser import group_by_day
from releases.service import ServiceFailure
from releases.window import MODE_LABELS, WINDOW_MODES, resolve_window_mode

from app import exchange_twitch_credentials, get_releases


def format_report(rows: Iterable[Mapping[str, Any]]) -> list[str]:
    groups = group_by_day(rows)
    if not groups:
        return ["No games found for the selected window."]

    lines: list[str] = []
    for group in groups:
        lines.append("")
        lines.append(f"=== {group.human_date} ===")
        for row in group.rows:
            lines.append(f"• {row.get('name')} ({row.get('platforms')})")
    return lines


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--mode",
        default=WINDOW_MODES[0],
        help="release window: 'month' (next calendar month) or '30days'",
    )
    parser.add_argument(
        "--check-token",
        action="store_true",
        help="only exchange the Twitch credentials and report the result",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)

    try:
        require_igdb_credentials()
    except ConfigurationError as exc:
        print(f"{exc}", file=sys.stderr)
        raise SystemExit(1)

    if args.check_token:
        try:
            exchange_twitch_credentials(force_refresh=True)
        except IGDBError as exc:
            print(f"Error getting access token: {exc}", file=sys.stderr)
            raise SystemExit(1)
        print("Access token acquired successfully.")
        return

    mode = resolve_window_mode(args.mode)
    try:
        rows = get_releases(mode)
    except ServiceFailure as exc:
        cause = exc.cause if exc.cause is not None else exc
        print(f"Error: {cause}", file=sys.stderr)
        raise SystemExit(1)

    print(f"{MODE_LABELS[mode]}: {len(rows)} games")
    for line in format_report(rows):
        print(line)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    main()
