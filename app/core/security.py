import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from app.core.config import settings

ALGORITHM = "HS256"


def create_jwt(payload: dict, secret: str, expires_delta: timedelta, issuer: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    claims = dict(payload)
    claims["iat"] = int(now.timestamp())
    claims["exp"] = int((now + expires_delta).timestamp())
    if issuer:
        claims["iss"] = issuer
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_jwt(token: str, secret: str, issuer: str | None = None) -> dict:
    return jwt.decode(token, secret, algorithms=[ALGORITHM], issuer=issuer)


def issue_access_token(user_id: str, *, username: str | None = None, email: str | None = None) -> str:
    """Mint a caller token accepted by ``get_current_user``."""
    payload = {"sub": str(user_id)}
    if username:
        payload["username"] = username
    if email:
        payload["email"] = email
    return create_jwt(
        payload,
        settings.JWT_SECRET,
        timedelta(hours=settings.JWT_TTL_HOURS),
        issuer=settings.JWT_ISSUER,
    )


def subject_of(claims: dict) -> str:
    """Canonical caller id from the ``sub`` claim; raises ValueError unless it is a UUID."""
    return str(uuid.UUID(str(claims.get("sub") or "").strip()))
