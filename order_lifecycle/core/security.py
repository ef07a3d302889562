"""JWT bearer authentication resolving the acting identity."""

from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from order_lifecycle.core.config import settings
from order_lifecycle.models.status import ActorRole, normalize_role
from order_lifecycle.services.permissions import SYSTEM_ACTOR_NAME, Actor

bearer_scheme: HTTPBearer = HTTPBearer(auto_error=True)


def create_access_token(data: dict[str, Any]) -> str:
    """Create a signed JWT access token from payload data."""
    to_encode: dict[str, Any] = data.copy()
    expire: datetime = datetime.now(timezone.utc) + timedelta(
        minutes=settings.jwt_expire_minutes
    )
    to_encode.update({"exp": expire})
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def verify_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT token payload."""
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from exc

    return payload


def actor_from_claims(payload: dict[str, Any]) -> Actor:
    """Build the acting identity from verified token claims."""
    try:
        role: ActorRole = normalize_role(payload.get("role", ""))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        ) from exc

    tenant_id = payload.get("tenant_id")
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not bound to a tenant",
        )

    subject = payload.get("sub")
    if subject is None and payload.get("name") != SYSTEM_ACTOR_NAME:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )

    return Actor(
        id=str(subject) if subject is not None else None,
        name=str(payload.get("name") or subject),
        role=role,
        tenant_id=str(tenant_id),
    )


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Actor:
    """Resolve the acting identity from the Authorization header."""
    payload: dict[str, Any] = verify_token(credentials.credentials)
    return actor_from_claims(payload)
