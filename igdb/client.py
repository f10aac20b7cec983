"""IGDB client and Twitch credential exchange helpers."""

from __future__ import annotations

import http.client
import json
import logging
import os
import time
from dataclasses import dataclass
from threading import Lock
from typing import TYPE_CHECKING, Any, Callable, Mapping

from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from config import CLIENT_ID_ENV_VARS, CLIENT_SECRET_ENV_VARS, ConfigurationError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from releases.window import TimeWindow

logger = logging.getLogger(__name__)


__all__ = [
    "AccessToken",
    "AuthFailure",
    "IGDBClient",
    "IGDBError",
    "RELEASE_FIELDS",
    "UpstreamFailure",
    "UpstreamTimeout",
    "build_release_query",
    "cover_url_from_cover",
    "resolve_igdb_page_size",
]


RELEASE_FIELDS: tuple[str, ...] = (
    "name",
    "slug",
    "first_release_date",
    "platforms.name",
    "platforms.abbreviation",
    "cover.image_id",
)


class IGDBError(RuntimeError):
    """Base error for failed Twitch or IGDB calls."""

    def __init__(self, message: str, *, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class AuthFailure(IGDBError):
    """The Twitch token endpoint rejected the credential exchange."""


class UpstreamFailure(IGDBError):
    """The IGDB API (or the network in between) failed a request."""


class UpstreamTimeout(UpstreamFailure):
    """An outbound call exceeded the configured timeout."""


@dataclass(frozen=True)
class AccessToken:
    """A bearer token together with its absolute expiry (epoch seconds)."""

    value: str
    client_id: str
    expires_at: float | None = None

    def is_usable(self, now: float, margin: float) -> bool:
        if self.expires_at is None:
            return False
        return now < self.expires_at - margin


def resolve_igdb_page_size(batch_size: Any, *, max_page_size: int = 500) -> int:
    """Return a sanitized IGDB page size respecting API constraints."""

    try:
        size = int(batch_size)
    except (TypeError, ValueError):
        return max_page_size
    if size <= 0:
        return max_page_size
    return min(size, max_page_size)


def cover_url_from_cover(value: Any, size: str = "t_cover_big") -> str | None:
    """Return the IGDB image URL for a cover payload, or ``None`` without one."""

    image_id: str | None = None
    if isinstance(value, Mapping):
        raw_id = value.get("image_id")
        if isinstance(raw_id, str):
            image_id = raw_id.strip()
        elif raw_id is not None:
            image_id = str(raw_id).strip()
    elif isinstance(value, str):
        image_id = value.strip()
    if not image_id:
        return None
    size_key = str(size).strip() if size else "t_cover_big"
    if not size_key:
        size_key = "t_cover_big"
    return "https://images.igdb.com/igdb/image/upload/" f"{size_key}/{image_id}.jpg"


def build_release_query(window: "TimeWindow", limit: int = 500) -> str:
    """Return the Apicalypse query selecting releases inside ``window``."""

    sanitized_limit = resolve_igdb_page_size(limit)
    return (
        f"fields {','.join(RELEASE_FIELDS)}; "
        "where first_release_date != null & "
        f"first_release_date >= {int(window.from_unix)} & "
        f"first_release_date < {int(window.to_unix)}; "
        "sort first_release_date asc; "
        f"limit {sanitized_limit};"
    )


class IGDBClient:
    """High level helper that manages Twitch authentication and IGDB queries."""

    BASE_URL = "https://api.igdb.com/v4"
    TOKEN_URL = "https://id.twitch.tv/oauth2/token"

    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        user_agent: str | None = None,
        timeout: float = 10.0,
        cache_tokens: bool = True,
        refresh_margin: float = 60.0,
        request_factory: Callable[..., Any] | None = None,
        opener: Callable[..., Any] | None = None,
        clock: Callable[[], float] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._client_id = (client_id or "").strip()
        self._client_secret = (client_secret or "").strip()
        self._user_agent = (user_agent or "").strip()
        self._timeout = timeout if timeout and timeout > 0 else 10.0
        self._cache_tokens = bool(cache_tokens)
        self._refresh_margin = max(0.0, float(refresh_margin or 0.0))
        self._request_factory = request_factory
        self._opener = opener
        self._clock = clock or time.time
        self._env = env if env is not None else os.environ
        self._token_lock = Lock()
        self._cached_token: AccessToken | None = None

    @property
    def user_agent(self) -> str:
        if self._user_agent:
            return self._user_agent
        env_agent = self._env.get("IGDB_USER_AGENT")
        if env_agent:
            return env_agent.strip()
        return "Upcoming-Releases/1.0 (support@example.com)"

    @property
    def timeout(self) -> float:
        return self._timeout

    def resolve_credentials(
        self, client_id: str | None = None, client_secret: str | None = None
    ) -> tuple[str, str]:
        resolved_client_id = (
            client_id or self._client_id or self._env_value(CLIENT_ID_ENV_VARS)
        ).strip()
        resolved_client_secret = (
            client_secret
            or self._client_secret
            or self._env_value(CLIENT_SECRET_ENV_VARS)
        ).strip()
        if not resolved_client_id or not resolved_client_secret:
            raise ConfigurationError("missing twitch client credentials")
        return resolved_client_id, resolved_client_secret

    def exchange_twitch_credentials(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        *,
        force_refresh: bool = False,
        request_factory: Callable[..., Any] | None = None,
        opener: Callable[..., Any] | None = None,
    ) -> tuple[str, str]:
        """Return a Twitch access token paired with the resolved client id."""

        token = self.acquire_token(
            client_id,
            client_secret,
            force_refresh=force_refresh,
            request_factory=request_factory,
            opener=opener,
        )
        return token.value, token.client_id

    def acquire_token(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        *,
        force_refresh: bool = False,
        request_factory: Callable[..., Any] | None = None,
        opener: Callable[..., Any] | None = None,
    ) -> AccessToken:
        """Perform (or reuse) a client-credentials exchange.

        A cached token is only returned while it is still valid for at least
        the configured refresh margin and was issued for the same client id.
        Concurrent callers may each hit the token endpoint; only the cache
        slot itself is guarded.
        """

        resolved_client_id, resolved_client_secret = self.resolve_credentials(
            client_id, client_secret
        )

        if self._cache_tokens and not force_refresh:
            with self._token_lock:
                cached = self._cached_token
            if (
                cached is not None
                and cached.client_id == resolved_client_id
                and cached.is_usable(self._clock(), self._refresh_margin)
            ):
                return cached

        query = urlencode(
            {
                "client_id": resolved_client_id,
                "client_secret": resolved_client_secret,
                "grant_type": "client_credentials",
            }
        )

        build_request = self._resolve_request_factory(request_factory)
        open_request = self._resolve_opener(opener)

        issued_at = self._clock()
        request = build_request(
            f"{self.TOKEN_URL}?{query}",
            data=b"",
            method="POST",
        )
        request.add_header("Accept", "application/json")

        data = self._request_json(
            request,
            open_request,
            error_prefix="Token request failed",
            failure_cls=AuthFailure,
        )

        value = data.get("access_token") if isinstance(data, Mapping) else None
        if not value:
            raise AuthFailure(
                "missing access token in twitch response",
                status=200,
                body=_safe_dumps(data),
            )

        expires_at = _expiry_from(data.get("expires_in"), issued_at)
        token = AccessToken(
            value=str(value), client_id=resolved_client_id, expires_at=expires_at
        )
        if self._cache_tokens and expires_at is not None:
            with self._token_lock:
                self._cached_token = token
        logger.debug(
            "Acquired Twitch access token for client %s (expires_in=%s)",
            resolved_client_id,
            data.get("expires_in"),
        )
        return token

    def fetch_upcoming_games(
        self,
        access_token: str,
        client_id: str,
        window: "TimeWindow",
        *,
        limit: int = 500,
        user_agent: str | None = None,
        request_factory: Callable[..., Any] | None = None,
        opener: Callable[..., Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return raw IGDB game records released inside ``window``."""

        query = build_release_query(window, limit)
        build_request = self._resolve_request_factory(request_factory)
        open_request = self._resolve_opener(opener)

        request = build_request(
            f"{self.BASE_URL}/games",
            data=query.encode("utf-8"),
            method="POST",
        )
        self._apply_headers(request, client_id, access_token, user_agent)

        payload = self._request_json(
            request,
            open_request,
            error_prefix="IGDB request failed",
            failure_cls=UpstreamFailure,
        )

        if not isinstance(payload, list):
            raise UpstreamFailure(
                "unexpected IGDB payload; expected a list of games",
                body=_safe_dumps(payload),
            )
        return [dict(item) for item in payload if isinstance(item, Mapping)]

    def _env_value(self, names: tuple[str, ...]) -> str:
        for name in names:
            value = self._env.get(name)
            if value and value.strip():
                return value.strip()
        return ""

    def _apply_headers(
        self,
        request: Any,
        client_id: str,
        access_token: str,
        user_agent: str | None,
    ) -> None:
        request.add_header("Client-ID", client_id)
        request.add_header("Authorization", f"Bearer {access_token}")
        request.add_header("Accept", "application/json")
        request.add_header("Content-Type", "text/plain")
        request.add_header("User-Agent", (user_agent or self.user_agent).strip())

    def _resolve_request_factory(self, request_factory: Callable[..., Any] | None):
        return request_factory or self._request_factory or Request

    def _resolve_opener(self, opener: Callable[..., Any] | None):
        return opener or self._opener or urlopen

    def _request_json(
        self,
        request: Any,
        opener: Callable[..., Any],
        *,
        error_prefix: str,
        failure_cls: type[IGDBError],
    ) -> Any:
        try:
            with opener(request, timeout=self._timeout) as response:
                status = getattr(response, "status", None)
                body = response.read()
        except HTTPError as exc:
            error_body = _read_error_body(exc)
            raise failure_cls(
                _format_http_error(error_prefix, exc.code, error_body or str(exc.reason or "")),
                status=exc.code,
                body=error_body,
            ) from exc
        except TimeoutError as exc:
            raise UpstreamTimeout(
                f"{error_prefix}: timed out after {self._timeout:g}s"
            ) from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise UpstreamTimeout(
                    f"{error_prefix}: timed out after {self._timeout:g}s"
                ) from exc
            raise UpstreamFailure(f"{error_prefix}: {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise UpstreamFailure(f"{error_prefix}: {exc!r}") from exc

        text = body.decode("utf-8", errors="replace") if body else ""
        if isinstance(status, int) and not 200 <= status < 300:
            raise failure_cls(
                _format_http_error(error_prefix, status, text.strip()),
                status=status,
                body=text,
            )
        try:
            return json.loads(text) if text else []
        except ValueError as exc:
            raise UpstreamFailure(
                "invalid JSON response from IGDB", status=status, body=text
            ) from exc


def _expiry_from(expires_in: Any, issued_at: float) -> float | None:
    if isinstance(expires_in, bool):
        return None
    try:
        lifetime = float(expires_in)
    except (TypeError, ValueError):
        return None
    if lifetime <= 0:
        return None
    return issued_at + lifetime


def _safe_dumps(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)


def _read_error_body(error: HTTPError) -> str:
    try:
        error_body = error.read()
    except Exception:  # pragma: no cover - best effort to capture error body
        error_body = b""
    if not error_body:
        return ""
    return error_body.decode("utf-8", errors="replace").strip()


def _format_http_error(prefix: str, status: int | None, detail: str) -> str:
    message = f"{prefix}: {status}"
    if detail:
        message = f"{message} {detail}"
    return message
