"""
Local fallback for payloads the assessment service did not accept.

Stores are best effort: an unwritable directory or a corrupt file is logged
and otherwise ignored, so the caller never sees a storage error.
"""

from __future__ import annotations

import datetime
import logging
import os
import tempfile
import typing as t
from pathlib import Path

import pydantic as p

from soyuz.model import AssessmentID, AssessmentStatus, AssessmentType, BaseModel, PartialResults, UserID

logger = logging.getLogger(__name__)

KeyPrefix = "assessment_autosave"


def backup_key(type: AssessmentType, user_id: UserID) -> str:
    return f"{KeyPrefix}_{type.value}_{user_id}"


def parse_backup_key(key: str) -> tuple[AssessmentType, UserID] | None:
    for type in AssessmentType:
        head = f"{KeyPrefix}_{type.value}_"
        if key.startswith(head):
            try:
                return type, UserID(key[len(head) :])
            except ValueError:
                return None
    return None


class BackupRecord(BaseModel):
    assessment_id: AssessmentID | None = None
    type: AssessmentType
    status: AssessmentStatus = AssessmentStatus.InProgress
    saved_at: datetime.datetime
    payload: PartialResults


class BackupStore(t.Protocol):
    def write(self, key: str, record: BackupRecord) -> None: ...

    def read(self, key: str) -> BackupRecord | None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryBackupStore(object):
    """Keeps serialized records in a dict; used by tests and short-lived sessions."""

    _records: dict[str, str]

    def __init__(self) -> None:
        self._records = {}

    def write(self, key: str, record: BackupRecord) -> None:
        self._records[key] = record.model_dump_json()

    def read(self, key: str) -> BackupRecord | None:
        raw = self._records.get(key)
        if raw is None:
            return None
        try:
            return BackupRecord.model_validate_json(raw)
        except p.ValidationError:
            logger.warning("discarding unreadable backup", extra={"key": key})
            del self._records[key]
            return None

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._records)

    def __len__(self) -> int:
        return len(self._records)


class FileBackupStore(object):
    """One JSON file per key under `directory`, replaced atomically on write."""

    directory: Path

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path(self, key: str) -> Path:
        if os.sep in key or (os.altsep and os.altsep in key) or key.startswith("."):
            raise ValueError(f"invalid backup key: {key!r}")
        return self.directory / f"{key}.json"

    def write(self, key: str, record: BackupRecord) -> None:
        target = self.path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf8") as f:
                    f.write(record.model_dump_json())
                os.replace(tmp, target)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError:
            logger.exception("failed to write backup", extra={"key": key, "path": str(target)})

    def read(self, key: str) -> BackupRecord | None:
        target = self.path(key)
        try:
            raw = target.read_text(encoding="utf8")
        except FileNotFoundError:
            return None
        except OSError:
            logger.exception("failed to read backup", extra={"key": key, "path": str(target)})
            return None

        try:
            return BackupRecord.model_validate_json(raw)
        except p.ValidationError:
            logger.warning("discarding unreadable backup", extra={"key": key, "path": str(target)})
            self.delete(key)
            return None

    def delete(self, key: str) -> None:
        target = self.path(key)
        try:
            target.unlink(missing_ok=True)
        except OSError:
            logger.exception("failed to delete backup", extra={"key": key, "path": str(target)})

    def keys(self) -> list[str]:
        try:
            return sorted(fn.stem for fn in self.directory.glob(f"{KeyPrefix}_*.json"))
        except OSError:
            logger.exception("failed to list backups", extra={"path": str(self.directory)})
            return []
