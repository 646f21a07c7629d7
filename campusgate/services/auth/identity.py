"""
Identity provider adapter.

Turns an incoming request into a ``Session``. Credentials are read from the
``Authorization: Bearer`` header first and the session cookie second. Any
problem with the credential (bad signature, expired, wrong token type, claims
that do not form a valid user) yields an anonymous session rather than an
error, so the guard can redirect.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request
from pydantic import ValidationError

from campusgate.core.config import settings
from campusgate.core.security import decode_token
from campusgate.domain.schemas.user import Session, User

logger = structlog.get_logger(__name__)


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the header, falling back to the session cookie."""
    authorization = request.headers.get("authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def user_from_claims(payload: Dict[str, Any]) -> Optional[User]:
    """Build a user from token claims, None if they are incomplete or invalid."""
    if payload.get("type") != "access":
        return None

    try:
        return User(
            id=payload.get("sub") or "",
            email=payload.get("email") or "",
            full_name=payload.get("name") or "",
            role=payload.get("role"),
            tenant_id=payload.get("tenant_id") or "",
            student_id=payload.get("student_id"),
        )
    except ValidationError as e:
        logger.warning("invalid_identity_claims", error_count=e.error_count())
        return None


class IdentityProvider:
    """Resolves sessions from request credentials."""

    async def resolve_session(self, request: Request) -> Session:
        token = extract_token(request)
        if not token:
            return Session.anonymous()

        payload = decode_token(token)
        if not payload:
            logger.info("session_token_rejected", path=request.url.path)
            return Session.anonymous()

        user = user_from_claims(payload)
        if user is None:
            return Session.anonymous()

        return Session.for_user(user)


identity_provider = IdentityProvider()
