"""Caller identity for the API.

Authentication itself happens upstream: the gateway verifies credentials
and forwards the identity in ``X-User-Id`` / ``X-User-Role``. This module
trusts those headers, optionally after checking a shared API key.
"""

import secrets
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Security
from fastapi.security import APIKeyHeader, APIKeyQuery

from taskboard.config import get_settings
from taskboard.errors import ForbiddenError, UnauthorizedError

# Support API key via header or query parameter
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
api_key_query = APIKeyQuery(name="api_key", auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity supplied by the credential service."""

    id: str
    role: str = "user"


async def verify_api_key(
    header_key: Annotated[str | None, Security(api_key_header)] = None,
    query_key: Annotated[str | None, Security(api_key_query)] = None,
) -> None:
    """Verify the shared API key if one is configured.

    If TASKBOARD_API_KEY is not set, the check is disabled.
    """
    settings = get_settings()
    if settings.api_key is None:
        return

    # Get the provided key (prefer header over query)
    provided_key = header_key or query_key
    if provided_key is None:
        raise UnauthorizedError("API key required")

    # Use constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(provided_key, settings.api_key):
        raise UnauthorizedError("Invalid API key")


async def get_current_user(
    _: Annotated[None, Depends(verify_api_key)],
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Resolve the authenticated caller from forwarded identity headers."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedError("Authentication required")

    role = (x_user_role or "user").strip() or "user"
    if role not in get_settings().allowed_roles:
        raise ForbiddenError(f"Role {role!r} is not allowed")

    return CurrentUser(id=user_id, role=role)


# Dependency for use in routes
AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]
