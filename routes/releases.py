"""Release API routes."""

from __future__ import annotations

from typing import Any, Mapping

from flask import Blueprint, jsonify, request

from releases.service import ReleaseQueryService, ServiceFailure
from routes.api_utils import ReleasesUnavailableError, handle_api_errors

releases_blueprint = Blueprint("releases", __name__)

_context: dict[str, Any] = {}


def configure(context: Mapping[str, Any]) -> None:
    """Inject the release service used by the API routes."""
    _context.update(context)


def _ctx(key: str) -> Any:
    if key not in _context:
        raise RuntimeError(f"release routes missing context value: {key}")
    return _context[key]


@releases_blueprint.route('/api/releases/next-month', methods=['GET'])
@handle_api_errors
def api_next_month_releases():
    service: ReleaseQueryService = _ctx('release_service')
    mode = service.resolve_mode(request.args.get('mode'))
    try:
        rows = service.get_releases(mode)
    except ServiceFailure as exc:
        raise ReleasesUnavailableError() from exc
    return jsonify([row.to_dict() for row in rows])
