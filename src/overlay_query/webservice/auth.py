"""Bearer-token gate for the admin endpoints."""

from __future__ import annotations

import hmac

from fastapi import Depends, Header

from overlay_query.commons.errors import Unauthorized
from overlay_query.configs import Settings
from overlay_query.webservice.deps import get_settings

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token of a ``Bearer <token>`` header, or ``None``."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):]
    return token or None


def verify_bearer(authorization: str | None, secret: str) -> bool:
    """Check the header against ``secret`` in time independent of where they differ."""
    token = extract_bearer_token(authorization)
    if token is None:
        return False
    return hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))


def require_admin(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request unless it carries the configured admin token."""
    if not verify_bearer(authorization, settings.admin_token):
        raise Unauthorized()
