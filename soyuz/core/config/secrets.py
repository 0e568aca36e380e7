from __future__ import annotations

import pydantic as p
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from soyuz.model import BaseModel, DeploymentEnvironment

from .base import BaseSecrets
from .source import YAMLSecretsSource


class PostgresqlSecrets(BaseSecrets):
    username: p.Secret[str] | None = None
    password: p.Secret[str] | None = None


class AuthSecrets(BaseSecrets):
    jwt: p.Secret[str]


class AutosaveSecrets(BaseSecrets):
    """Bearer token the CLI presents to the assessment service."""

    token: p.Secret[str] | None = None


class Secrets(BaseSecrets, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    model_config = SettingsConfigDict(env_prefix="SOYUZ_SECRETS__", env_nested_delimiter="__")

    root: p.AnyUrl
    env: DeploymentEnvironment

    auth: AuthSecrets | None = None
    postgresql: PostgresqlSecrets = PostgresqlSecrets()
    autosave: AutosaveSecrets = AutosaveSecrets()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, YAMLSecretsSource(settings_cls)
