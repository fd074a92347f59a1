"""JWT access tokens carrying the identity provider's user claims.

ParkPulse does not own accounts. The identity provider signs a token whose
``sub`` is the stable user id and whose ``name``/``email`` claims are the
display name and verified contact address; the core trusts them as given.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt

from parkpulse.config import settings


@dataclass(frozen=True)
class Identity:
    """The authenticated caller."""

    user_id: str
    name: str
    email: str


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a short-lived access token.

    Args:
        data: Payload data. Must include ``sub``; ``name`` and ``email`` are
            expected for any caller that books or lists.
        expires_delta: Custom expiration duration. Defaults to
            ``settings.jwt_access_token_expire_minutes`` minutes.

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_identity_token(identity: Identity, expires_delta: timedelta | None = None) -> str:
    return create_access_token(
        {"sub": identity.user_id, "name": identity.name, "email": identity.email},
        expires_delta=expires_delta,
    )


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Raises:
        jose.JWTError: If the token is invalid, expired, or malformed.
    """
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
