from dataclasses import dataclass

from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.core.config import settings
from app.core.errors import Unauthorized
from app.core.security import decode_jwt, subject_of
from app.schemas.universal import QueryParams

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    username: str | None = None
    email: str | None = None


def get_current_user(
    auth_cookie: str | None = Cookie(default=None, alias=settings.AUTH_COOKIE_NAME),
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> CurrentUser:
    # Cookie wins over the Authorization header.
    token = auth_cookie or (creds.credentials if creds else None)
    if not token:
        raise Unauthorized("Missing authentication token")
    try:
        claims = decode_jwt(token, settings.JWT_SECRET, issuer=settings.JWT_ISSUER)
    except JWTError:
        raise Unauthorized("Invalid authentication token")
    try:
        user_id = subject_of(claims)
    except ValueError:
        raise Unauthorized("Invalid authentication token")
    return CurrentUser(user_id=user_id, username=claims.get("username"), email=claims.get("email"))


def get_query_params(request: Request) -> QueryParams:
    return QueryParams.from_query(request.query_params)
