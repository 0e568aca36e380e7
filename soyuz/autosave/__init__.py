__all__ = [
    "AssessmentClient",
    "AssessmentPage",
    "AuthenticationError",
    "AutoSaver",
    "AutoSaveState",
    "BackupRecord",
    "BackupStore",
    "Debouncer",
    "ExportFormat",
    "FileBackupStore",
    "MemoryBackupStore",
    "PayloadValidationError",
    "PendingSave",
    "PersistenceError",
    "RetryPolicy",
    "RetrySchedule",
    "SavePhase",
    "SaveStatus",
    "TransientError",
    "backup_key",
    "parse_backup_key",
]

from .backup import backup_key, BackupRecord, BackupStore, FileBackupStore, MemoryBackupStore, parse_backup_key
from .client import AssessmentClient, AssessmentPage, ExportFormat
from .debounce import Debouncer
from .errors import AuthenticationError, PayloadValidationError, PersistenceError, TransientError
from .orchestrator import AutoSaver, AutoSaveState, PendingSave, SavePhase, SaveStatus
from .retry import RetryPolicy, RetrySchedule
