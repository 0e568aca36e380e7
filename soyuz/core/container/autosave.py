from __future__ import annotations

from pathlib import Path

from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Factory, Object, Provider, Singleton

from soyuz.autosave.backup import FileBackupStore
from soyuz.autosave.client import AssessmentClient
from soyuz.autosave.orchestrator import AutoSaver
from soyuz.autosave.retry import RetryPolicy

from ..config.autosave import RetrySettings
from ..provider import TimestampProvider


def provide_backup_store(backup_path: Path | None, state_path: Path) -> FileBackupStore:
    return FileBackupStore(backup_path or state_path / "autosave")


class AutosaveContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    state_path: Provider[Path] = Object()
    utcnow: Provider[TimestampProvider] = Object()

    retry_policy: Provider[RetryPolicy] = Singleton(
        RetryPolicy.from_settings,
        config.retry.as_(RetrySettings),
    )
    backup: Provider[FileBackupStore] = Singleton(
        provide_backup_store,
        backup_path=config.backup_path,
        state_path=state_path,
    )
    # token is supplied per user at call time unless configured for the CLI
    client: Provider[AssessmentClient] = Factory(
        AssessmentClient,
        base_url=config.remote.base_url.as_(str),
        timeout=config.remote.timeout,
        token=secrets.token,
    )
    saver: Provider[AutoSaver] = Factory(
        AutoSaver,
        backup=backup,
        debounce=config.debounce,
        retry=retry_policy,
        utcnow=utcnow,
    )
