from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class ServeSettings(BaseSettings):
    host: p.IPvAnyAddress
    port: t.Annotated[int, ant.Gt(0), ant.Le(65535)]


class AuthSettings(BaseSettings):
    """Bearer token verification; tokens are issued by the identity provider."""

    jwt_algorithm: t.Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_expire_minutes: t.Annotated[int, ant.Gt(1)] = 60
    issuer: str | None = None


class SoyuzWebSettings(BaseSettings):
    backend: ServeSettings
    auth: AuthSettings = AuthSettings()
    cors_origins: list[str] = []


class WebSettings(BaseSettings):
    soyuz: SoyuzWebSettings
