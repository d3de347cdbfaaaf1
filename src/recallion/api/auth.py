"""Bearer-token identity for API callers.

The owner of every memory is the token's ``sub`` claim. Tokens are issued
elsewhere; ``create_access_token`` exists for local development and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel

from recallion.core.config import settings
from recallion.core.errors import AuthenticationError

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24


class TokenData(BaseModel):
    """Verified token payload."""

    owner_id: str
    claims: dict[str, Any] = {}


def create_access_token(owner_id: str, expires_delta: timedelta | None = None, **claims: Any) -> str:
    """Create a signed JWT whose subject is ``owner_id``."""
    to_encode: dict[str, Any] = {"sub": owner_id, **claims}
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode["exp"] = expire
    if settings.jwt_audience:
        to_encode.setdefault("aud", settings.jwt_audience)
    return jwt.encode(to_encode, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenData:
    """Verify and decode a JWT.

    Raises:
        AuthenticationError: If the signature, expiry or audience check
            fails, or the token has no subject.
    """
    secret = settings.jwt_secret.get_secret_value()
    if not secret:
        raise AuthenticationError(details={"source": "verify_token", "operation": "secret"})
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except JWTError as e:
        raise AuthenticationError(details={"source": "verify_token", "operation": "decode"}) from e

    owner_id = payload.get("sub")
    if not owner_id:
        raise AuthenticationError(details={"source": "verify_token", "operation": "subject"})
    return TokenData(owner_id=str(owner_id), claims=payload)
