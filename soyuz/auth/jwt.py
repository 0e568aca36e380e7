"""Bearer token verification and development token issuance."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import jwt
import pydantic as p

from soyuz.model import UserID

RequiredClaims = ("sub", "exp", "iat")


class TokenData(t.NamedTuple):
    user_id: UserID
    expires_at: datetime.datetime
    issued_at: datetime.datetime


class JWTManager(object):
    """
    HMAC-signed JWTs whose `sub` is a `UserID`.

    The service only verifies tokens. `create_access_token` exists for the
    `soyuz token` command and for tests.
    """

    def __init__(
        self,
        secret_key: p.Secret[str],
        algorithm: t.Literal["HS256", "HS384", "HS512"] = "HS256",
        access_token_expire_minutes: t.Annotated[int, ant.Gt(1)] = 60,
        issuer: str | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._lifetime = datetime.timedelta(minutes=access_token_expire_minutes)
        self._issuer = issuer

    def create_access_token(self, user_id: UserID, expires_delta: datetime.timedelta | None = None) -> str:
        now = datetime.datetime.now(datetime.UTC)
        claims: dict[str, t.Any] = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + (expires_delta or self._lifetime)).timestamp()),
        }
        if self._issuer:
            claims["iss"] = self._issuer
        return jwt.encode(claims, self._secret_key.get_secret_value(), algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenData | None:
        """None unless the token verifies, is unexpired and names a valid user."""
        try:
            claims = jwt.decode(
                token,
                self._secret_key.get_secret_value(),
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": list(RequiredClaims)},
            )
            user_id = UserID(claims["sub"])
        except (jwt.InvalidTokenError, ValueError):
            return None
        return TokenData(
            user_id=user_id,
            expires_at=datetime.datetime.fromtimestamp(claims["exp"], tz=datetime.UTC),
            issued_at=datetime.datetime.fromtimestamp(claims["iat"], tz=datetime.UTC),
        )
