"""FastAPI dependency injection helpers."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Header

from app.config import settings
from app.services.common import TTLCache
from app.services.registry import ChoreLedgerServices, default_services
from app.utils.errors import ForbiddenError, UnauthorizedError
from app.utils.supabase_client import get_auth_client

_token_cache = TTLCache(
    settings.auth_token_cache_ttl_seconds,
    max_entries=settings.auth_token_cache_max_entries,
)


def get_authenticated_user(authorization: str = Header(None)) -> Any:
    """Extract and validate a Supabase JWT from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")

    token = authorization.split(" ", 1)[1]
    cached_user = _token_cache.get(token)
    if cached_user is not None:
        return cached_user

    supabase = get_auth_client()

    try:
        response = supabase.auth.get_user(token)
        if not response or not response.user:
            raise UnauthorizedError("Invalid token")
        _token_cache.set(token, response.user)
        return response.user
    except UnauthorizedError:
        raise
    except Exception as exc:
        raise UnauthorizedError("Invalid or expired token") from exc


def get_current_user_id(user: Any) -> str:
    """Extract a stable user id string from the Supabase user object."""
    return str(user.id)


def get_actor_id(user: Any = Depends(get_authenticated_user)) -> str:
    """Return the id of the authenticated caller."""
    return get_current_user_id(user)


def get_services() -> ChoreLedgerServices:
    """Return the process-wide reconciliation services."""
    return default_services()


def require_privileged(
    actor_id: str = Depends(get_actor_id),
    services: ChoreLedgerServices = Depends(get_services),
) -> str:
    """Allow only parents through; returns the actor id."""
    if not services.roles.is_privileged(actor_id):
        raise ForbiddenError("Only a parent can do this")
    return actor_id


def ensure_can_view_person(services: ChoreLedgerServices, actor_id: str, person_id: str) -> None:
    """Allow a person to read their own data and parents to read anyone's."""
    if actor_id != person_id and not services.roles.is_privileged(actor_id):
        raise ForbiddenError("You can only view your own chores and balance")
