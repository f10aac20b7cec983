"""Release query orchestration: window, token, IGDB query, normalization."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from config import ConfigurationError
from igdb.client import IGDBClient, IGDBError

from .normalize import DisplayRow, normalize_releases
from .window import TimeWindow, compute_release_window, resolve_window_mode

logger = logging.getLogger(__name__)


class ServiceFailure(RuntimeError):
    """A release query failed; ``cause`` holds the upstream error."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ReleaseQueryService:
    """Run the release pipeline for one request at a time.

    Every call computes its own window, acquires (or reuses) a token and
    queries IGDB; nothing about a result is kept between calls.
    """

    def __init__(
        self,
        client: IGDBClient,
        *,
        limit: int = 500,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._limit = limit
        self._clock = clock or datetime.now

    @staticmethod
    def resolve_mode(mode: Any) -> str:
        return resolve_window_mode(mode)

    def compute_window(self, mode: Any = None) -> TimeWindow:
        return compute_release_window(mode, now=self._clock())

    def get_releases(self, mode: Any = None) -> list[DisplayRow]:
        """Return normalized rows for ``mode`` or raise :class:`ServiceFailure`."""

        window = self.compute_window(mode)
        logger.info("Querying IGDB releases from %s", window.describe())

        try:
            access_token, client_id = self._client.exchange_twitch_credentials()
            records = self._client.fetch_upcoming_games(
                access_token, client_id, window, limit=self._limit
            )
        except IGDBError as exc:
            logger.error(
                "%s during release query (status=%s): %s | body=%s",
                type(exc).__name__,
                exc.status,
                exc,
                exc.body,
            )
            raise ServiceFailure("failed to fetch IGDB data", cause=exc) from exc
        except ConfigurationError as exc:
            logger.error("Release query aborted: %s", exc)
            raise ServiceFailure("failed to fetch IGDB data", cause=exc) from exc

        rows = normalize_releases(records)
        logger.info(
            "IGDB returned %s records, %s dated rows for %s window",
            len(records),
            len(rows),
            window.mode,
        )
        return rows

    def get_release_payload(self, mode: Any = None) -> list[dict[str, Any]]:
        return [row.to_dict() for row in self.get_releases(mode)]


__all__ = ["ReleaseQueryService", "ServiceFailure"]
