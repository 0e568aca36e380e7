"""Inspect and replay payloads the auto-saver backed up locally."""

from __future__ import annotations

import asyncio

import soyuz.lib.cli as click
from soyuz.auth import JWTManager
from soyuz.autosave import AssessmentClient, BackupStore, parse_backup_key, PayloadValidationError, \
    PersistenceError
from soyuz.core import di, LoggingProvider
from soyuz.core.container.autosave import AutosaveContainer
from soyuz.model import AssessmentStatus, UserID


@di.inject
def client_for(
    user_id: UserID,
    manager: JWTManager = di.Provide["auth.jwt_manager"],
    autosave: AutosaveContainer = di.Provide["autosave"],
) -> AssessmentClient:
    """A service client authenticated as `user_id` with a freshly issued token."""
    return autosave.client(token=manager.create_access_token(user_id))


@click.group("autosave")
def autosave(): ...


@autosave.command("show")
@click.option("--user", "-u", "user_id", type=click.KeyType(UserID), default=None, help="only backups of this user")
@di.inject
def show(user_id: UserID | None, backup: BackupStore = di.Provide["autosave.backup"]) -> None:
    """List local backups."""
    found = 0
    for key in backup.keys():
        parsed = parse_backup_key(key)
        if parsed is None or (user_id and parsed[1] != user_id):
            continue
        record = backup.read(key)
        if record is None:
            continue
        found += 1
        sections = ", ".join(name for name, value in record.payload if value is not None) or "-"
        click.echo(f"{key}")
        click.echo(f"  user:       {parsed[1]}")
        click.echo(f"  assessment: {record.assessment_id or '(not created)'}")
        click.echo(f"  status:     {record.status.value}")
        click.echo(f"  saved at:   {record.saved_at.isoformat()}")
        click.echo(f"  sections:   {sections}")
    if not found:
        click.echo("No backups found.")


@autosave.command("replay")
@click.option("--user", "-u", "user_id", type=click.KeyType(UserID), default=None, help="only backups of this user")
@click.option("--dry-run", is_flag=True, default=False)
@di.inject
def replay(
    user_id: UserID | None,
    dry_run: bool,
    backup: BackupStore = di.Provide["autosave.backup"],
    logging_provider: LoggingProvider = di.Provide["logging"],
) -> None:
    """Send backed-up payloads to the service, deleting each one it accepts."""
    logger = logging_provider.get_logger()

    async def _replay() -> tuple[int, int]:
        sent = failed = 0
        for key in backup.keys():
            parsed = parse_backup_key(key)
            if parsed is None or (user_id and parsed[1] != user_id):
                continue
            record = backup.read(key)
            if record is None:
                continue

            type, owner = parsed
            if dry_run:
                click.echo(f"would replay {key}")
                continue

            status = AssessmentStatus.Completed if record.status is AssessmentStatus.Completed else None
            async with client_for(owner) as client:
                try:
                    saved = await client.save(type, record.payload, assessment_id=record.assessment_id, status=status)
                except PayloadValidationError as e:
                    # kept for inspection, replaying it again would fail the same way
                    logger.warning("service rejected backup", extra={"key": key, "status_code": e.status_code})
                    click.echo(f"rejected {key}: {e}", err=True)
                    failed += 1
                    continue
                except PersistenceError as e:
                    logger.warning("could not replay backup", extra={"key": key, "error": str(e)})
                    click.echo(f"failed {key}: {e}", err=True)
                    failed += 1
                    continue

            backup.delete(key)
            sent += 1
            logger.info("replayed backup", extra={"key": key, "assessment_id": saved.assessment_id})
            click.echo(f"replayed {key} -> {saved.assessment_id}")
        return sent, failed

    sent, failed = asyncio.run(_replay())
    if not dry_run:
        click.echo(f"Replayed {sent} backup(s), {failed} failed.")
    if failed:
        raise SystemExit(1)
