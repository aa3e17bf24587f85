"""JWT handling for clinic staff tokens.

Tokens carry the acting user in ``sub`` and the clinic the user works in
under ``clinic_id``. Every scheduling call is scoped by that clinic.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from jose import JWTError, jwt

from clinic_scheduler.config import settings

logger = structlog.get_logger(__name__)

CLINIC_CLAIM = "clinic_id"
ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    user_id: UUID,
    clinic_id: UUID,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """
    Create an access token for a user acting within one clinic.

    Args:
        user_id: Staff user ID, stored as ``sub``
        clinic_id: Clinic the token is scoped to
        expires_delta: Optional lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES
        extra_claims: Additional claims to embed

    Returns:
        Encoded JWT token
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    claims = dict(extra_claims or {})
    claims.update(
        {
            "sub": str(user_id),
            CLINIC_CLAIM: str(clinic_id),
            "exp": expire,
            "iat": now,
            "type": ACCESS_TOKEN_TYPE,
        }
    )

    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid, expired or not an access token
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.debug("access_token_rejected", error=str(e))
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    return payload


def read_principal_claims(token: str) -> tuple[UUID, UUID] | None:
    """
    Extract the user and clinic IDs from an access token.

    Returns:
        ``(user_id, clinic_id)``, or None when the token is invalid or a
        claim is missing or not a UUID
    """
    payload = decode_access_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    clinic_id = payload.get(CLINIC_CLAIM)
    if not isinstance(user_id, str) or not isinstance(clinic_id, str):
        return None

    try:
        return UUID(user_id), UUID(clinic_id)
    except ValueError:
        return None
