"""Authentication dependencies for FastAPI routes."""

from __future__ import annotations

import typing as t

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from soyuz.core import di
from soyuz.model import UserID

from .jwt import JWTManager, TokenData

bearer_scheme = HTTPBearer(auto_error=False)


@di.inject
def decode_token(token: str, manager: JWTManager = di.Provide["auth.jwt_manager"]) -> TokenData | None:
    return manager.decode_token(token)


class AuthContext(t.NamedTuple):
    """Current authentication context."""

    user_id: UserID
    token_data: TokenData


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> AuthContext:
    """
    Users live with the identity provider, so a verified token is all the
    service needs; every query is then scoped to `user_id`.

    Raises:
        HTTPException 401: If no token is provided or it does not verify
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_token(credentials.credentials)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthContext(user_id=token_data.user_id, token_data=token_data)
