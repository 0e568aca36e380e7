from __future__ import annotations

import typing as t
from pathlib import Path

import annotated_types as ant
import pydantic as p

from .base import BaseSettings

Seconds = t.Annotated[float, ant.Gt(0)]


class RetrySettings(BaseSettings):
    base_delay: Seconds = 1.0
    multiplier: t.Annotated[float, ant.Ge(1)] = 2.0
    max_delay: Seconds = 8.0
    max_retries: t.Annotated[int, ant.Ge(0)] = 3


class RemoteSettings(BaseSettings):
    base_url: p.HttpUrl
    timeout: Seconds = 10.0


class AutosaveSettings(BaseSettings):
    debounce: Seconds = 0.5
    retry: RetrySettings = RetrySettings()
    remote: RemoteSettings
    # defaults to $XDG_STATE_HOME/soyuz/autosave
    backup_path: Path | None = None
