"""Bearer token parsing and JWT validation."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Mapping
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from tubely.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_ISSUER = "tubely-access"


class AuthError(Exception):
    """Raised when a request carries no usable credentials."""


def get_bearer_token(headers: Mapping[str, str]) -> str:
    auth_header = headers.get("Authorization")
    if not auth_header:
        raise AuthError("no auth header included in request")
    parts = auth_header.split()
    if len(parts) != 2 or parts[0] != "Bearer":
        raise AuthError("malformed authorization header")
    return parts[1]


def make_jwt(
    user_id: uuid.UUID,
    secret: str,
    expires_in: timedelta,
    issuer: str = TOKEN_ISSUER,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "iss": issuer,
        "iat": now,
        "exp": now + expires_in,
        "sub": str(user_id),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def validate_jwt(token: str, secret: str, issuer: str = TOKEN_ISSUER) -> uuid.UUID:
    """Verify signature, expiry and issuer and return the user id in ``sub``."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], issuer=issuer)
    except JWTError as e:
        raise AuthError(f"invalid token: {e}") from e

    subject = payload.get("sub")
    if not subject:
        raise AuthError("token has no subject")
    try:
        return uuid.UUID(subject)
    except ValueError as e:
        raise AuthError("invalid user id in token") from e


def authenticate_request(request: Request, settings: Settings) -> uuid.UUID:
    """Resolve the caller's user id or raise a 401."""
    try:
        token = get_bearer_token(request.headers)
    except AuthError as e:
        logger.warning(f"Couldn't find JWT: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Couldn't find JWT",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return validate_jwt(token, settings.jwt_secret, issuer=settings.jwt_issuer)
    except AuthError as e:
        logger.warning(f"Couldn't validate JWT: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Couldn't validate JWT",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user_id(
    request: Request, settings: Settings = Depends(get_settings)
) -> uuid.UUID:
    return authenticate_request(request, settings)
