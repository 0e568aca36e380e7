"""
Debounced, retried persistence of partial assessment results.

Screens hand partial results to an AutoSaver as answers change. The saver
keeps a single pending slot: every update replaces it and restarts the
debounce window, and when the window closes one request carries the pending
fields merged over whatever the service has already confirmed. Failures are
kept in observable state and, when worth keeping, in the local backup.

Every save carries a sequence number. A response is applied only if no newer
save has been applied before it, so a slow request finishing late cannot undo
the state left by a newer one. A request also carries the fields of older
requests still awaiting an answer, so an older request failing late loses
nothing once a newer one has been sent.
"""

from __future__ import annotations

import asyncio
import datetime
import enum
import logging
import typing as t

import pydantic as p

import soyuz.lib.json as json
from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, BaseModel, PartialResults, UserID

from .backup import backup_key, BackupRecord, BackupStore
from .client import AssessmentClient
from .debounce import Debouncer
from .errors import AuthenticationError, PersistenceError
from .retry import RetryPolicy, RetrySchedule

if t.TYPE_CHECKING:
    from soyuz.core.provider import TimestampProvider

logger = logging.getLogger(__name__)

Payload = PartialResults | t.Mapping[str, t.Any]
StateListener = t.Callable[["AutoSaveState"], t.Any]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class SavePhase(enum.Enum):
    Idle = "idle"
    Pending = "pending"
    Saving = "saving"
    Saved = "saved"
    Error = "error"
    Retrying = "retrying"
    Completing = "completing"
    Completed = "completed"


class SaveStatus(enum.Enum):
    Saving = "Saving…"
    Saved = "Saved"
    Error = "Error saving"
    NotSaved = "Not saved"


class AutoSaveState(BaseModel):
    model_config = p.ConfigDict(frozen=True)

    assessment_id: AssessmentID | None = None
    phase: SavePhase = SavePhase.Idle
    is_saving: bool = False
    error: str | None = None
    last_saved: datetime.datetime | None = None
    retry_attempt: int = 0

    @property
    def status(self) -> SaveStatus:
        if self.is_saving:
            return SaveStatus.Saving
        if self.error is not None:
            return SaveStatus.Error
        if self.last_saved is not None:
            return SaveStatus.Saved
        return SaveStatus.NotSaved


class PendingSave(t.NamedTuple):
    payload: PartialResults
    seq: int


class AutoSaver(object):
    client: AssessmentClient
    backup: BackupStore
    type: AssessmentType
    user_id: UserID

    _state: AutoSaveState
    _listeners: list[StateListener]
    _debouncer: Debouncer[PendingSave]
    _retry: RetrySchedule
    _utcnow: TimestampProvider

    # recency bookkeeping: last issued, last sent, last applied
    _seq: int
    _sent_seq: int
    _applied_seq: int
    # saves issued up to here belong to an assessment that was reset away
    _reset_seq: int

    # failed save waiting for (or out of) retries; folded into the next update
    _failed: PendingSave | None
    # payloads by sequence number that were dispatched but not acknowledged
    _unconfirmed: dict[int, PartialResults]
    _confirmed: PartialResults
    _last_payload: str | None
    _create_task: asyncio.Task[Assessment | None] | None
    _tasks: set[asyncio.Task[Assessment | None]]
    _closed: bool

    def __init__(
        self,
        client: AssessmentClient,
        backup: BackupStore,
        type: AssessmentType,
        user_id: UserID,
        debounce: float = 0.5,
        retry: RetryPolicy | None = None,
        utcnow: TimestampProvider = utcnow,
    ) -> None:
        self.client = client
        self.backup = backup
        self.type = type
        self.user_id = user_id

        self._state = AutoSaveState()
        self._listeners = []
        self._debouncer = Debouncer(debounce, self._on_debounce)
        self._retry = RetrySchedule(retry or RetryPolicy())
        self._utcnow = utcnow

        self._seq = 0
        self._sent_seq = 0
        self._applied_seq = 0
        self._reset_seq = 0

        self._failed = None
        self._unconfirmed = {}
        self._confirmed = PartialResults()
        self._last_payload = None
        self._create_task = None
        self._tasks = set()
        self._closed = False

        # continue the assessment a previous session failed to finish saving
        record = self.backup.read(self.backup_key)
        if record is not None and record.assessment_id is not None:
            self._state = AutoSaveState(assessment_id=record.assessment_id)

    async def __aenter__(self) -> t.Self:
        return self

    async def __aexit__(self, *exc: t.Any) -> None:
        self.close()

    @property
    def state(self) -> AutoSaveState:
        return self._state

    @property
    def confirmed(self) -> PartialResults:
        """Fields the service has acknowledged for the current assessment."""
        return self._confirmed

    @property
    def backup_key(self) -> str:
        return backup_key(self.type, self.user_id)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def busy(self) -> bool:
        return bool(self._tasks) or self._debouncer.pending or self._retry.scheduled

    def subscribe(self, listener: StateListener) -> t.Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def save_progress(self, payload: Payload) -> None:
        """
        Queue partial results for a debounced save. Never raises; a payload
        identical to the previous one is ignored.
        """
        if self._closed:
            return
        try:
            results = _coerce(payload)
        except p.ValidationError as e:
            logger.warning("rejected invalid progress payload", extra={"errors": e.error_count()})
            self._set(phase=SavePhase.Error, is_saving=False, error=f"invalid payload: {e.error_count()} errors")
            return

        fingerprint = json.canonical(results.as_fields())
        if fingerprint == self._last_payload:
            return
        self._last_payload = fingerprint

        # a scheduled retry is superseded, but its fields still need saving
        if self._failed is not None:
            results = self._failed.payload.merge(results)
            self._failed = None
        self._retry.reset()

        self._seq += 1
        self._debouncer.push(PendingSave(results, self._seq))
        self._set(phase=SavePhase.Pending, is_saving=True, error=None, retry_attempt=0)

    async def complete_assessment(self, payload: Payload | None = None) -> Assessment | None:
        """
        Persist the final results immediately with status completed.

        Always resolves: returns the saved assessment, or None when the save
        failed, in which case the payload is kept in the local backup.
        """
        if self._closed:
            return None
        try:
            results = _coerce(payload) if payload is not None else PartialResults()
        except p.ValidationError as e:
            logger.warning("rejected invalid final payload", extra={"errors": e.error_count()})
            self._set(phase=SavePhase.Error, is_saving=False, error=f"invalid payload: {e.error_count()} errors")
            return None

        results = self._take_unsaved().merge(results)
        self._seq += 1
        self._set(phase=SavePhase.Completing, is_saving=True, error=None, retry_attempt=0)
        return await self._spawn(PendingSave(results, self._seq), AssessmentStatus.Completed)

    save_final_results = complete_assessment

    async def load_incomplete_assessment(self) -> Assessment | None:
        """
        Adopt the user's most recent in-progress assessment, if any. Lookup
        failures are logged and read as "nothing to resume".
        """
        try:
            found = await self.client.find_incomplete()
        except PersistenceError as e:
            logger.warning("could not look up incomplete assessment", extra={"error": str(e)})
            return None
        if found is None or self._closed:
            return found
        self.adopt(found)
        return found

    def adopt(self, assessment: Assessment) -> None:
        """Continue saving into an existing assessment, taking on its type."""
        self.type = assessment.type
        self._confirmed = assessment.results
        self._last_payload = None
        self._set(assessment_id=assessment.assessment_id, last_saved=assessment.update_time)

    async def retry_manual(self) -> Assessment | None:
        """Resubmit the backed up payload now; a no-op without a backup."""
        if self._closed:
            return None
        record = self.backup.read(self.backup_key)
        if record is None:
            return None
        if self._state.assessment_id is None and record.assessment_id is not None:
            self._set(assessment_id=record.assessment_id)

        results = record.payload.merge(self._take_unsaved())
        status = AssessmentStatus.Completed if record.status is AssessmentStatus.Completed else None
        self._seq += 1
        self._set(
            phase=SavePhase.Completing if status else SavePhase.Saving, is_saving=True, error=None, retry_attempt=0
        )
        return await self._spawn(PendingSave(results, self._seq), status)

    def reset(self) -> None:
        """Forget the current assessment; responses still in flight are ignored."""
        self._debouncer.cancel()
        self._retry.reset()
        self._failed = None
        self._unconfirmed.clear()
        self._confirmed = PartialResults()
        self._last_payload = None
        self._create_task = None
        self._seq += 1
        self._applied_seq = self._sent_seq = self._reset_seq = self._seq
        self._replace_state(AutoSaveState())

    async def drain(self, poll: float = 0.01) -> None:
        """Wait until no debounce window, retry or request is outstanding."""
        while not self._closed:
            if self._tasks:
                await asyncio.wait(set(self._tasks))
            elif self._debouncer.pending or self._retry.scheduled:
                await asyncio.sleep(poll)
            else:
                return

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._debouncer.close()
        self._retry.cancel()
        logger.debug("auto-save closed", extra={"key": self.backup_key, "in_flight": len(self._tasks)})

    def _take_unsaved(self) -> PartialResults:
        """Pull the pending and failed payloads out of the timers, oldest first."""
        results = PartialResults()
        if self._failed is not None:
            results = self._failed.payload
            self._failed = None
        if (pending := self._debouncer.flush()) is not None:
            results = results.merge(pending.payload)
        self._retry.reset()
        return results

    def _on_debounce(self, pending: PendingSave) -> None:
        if self._closed:
            return
        self._spawn(pending, None)

    def _on_retry(self) -> None:
        if self._closed or self._failed is None:
            return
        pending, self._failed = self._failed, None
        self._spawn(pending, None)

    def _spawn(self, pending: PendingSave, status: AssessmentStatus | None) -> asyncio.Task[Assessment | None]:
        self._unconfirmed[pending.seq] = pending.payload
        task = asyncio.create_task(self._save(pending, status))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _save(self, pending: PendingSave, status: AssessmentStatus | None) -> Assessment | None:
        if status is None:
            self._set(phase=SavePhase.Saving, is_saving=True)

        # without an id, only one request may create the assessment
        if self._state.assessment_id is None:
            creating = self._create_task
            if creating is not None and not creating.done() and creating is not asyncio.current_task():
                await asyncio.wait({creating})
                if self._closed:
                    return None
            if self._state.assessment_id is None:
                self._create_task = t.cast(asyncio.Task[Assessment | None], asyncio.current_task())

        pending = self._gather(pending)
        body = self._confirmed.merge(pending.payload)
        try:
            saved = await self.client.save(self.type, body, assessment_id=self._state.assessment_id, status=status)
        except PersistenceError as e:
            self._on_failure(pending, status, e)
            return None
        except Exception as e:
            logger.exception("unexpected error while saving", extra={"key": self.backup_key, "seq": pending.seq})
            self._on_failure(pending, status, PersistenceError(f"{type(e).__name__}: {e}"))
            return None
        finally:
            if self._create_task is asyncio.current_task():
                self._create_task = None

        return self._on_success(pending, status, saved)

    def _gather(self, pending: PendingSave) -> PendingSave:
        """Carry the fields of older, still unacknowledged saves along with `pending`."""
        self._sent_seq = max(self._sent_seq, pending.seq)
        payload = PartialResults()
        for seq in sorted(self._unconfirmed):
            if seq < pending.seq:
                payload = payload.merge(self._unconfirmed[seq])
        gathered = PendingSave(payload.merge(pending.payload), pending.seq)
        if pending.seq in self._unconfirmed:
            self._unconfirmed[pending.seq] = gathered.payload
        return gathered

    def _on_success(self, pending: PendingSave, status: AssessmentStatus | None, saved: Assessment) -> Assessment | None:
        if self._closed or pending.seq <= self._reset_seq:
            return None
        if self._state.assessment_id is None:
            # the id is kept even from a superseded response; it names the only assessment
            self._set(assessment_id=saved.assessment_id)
        # everything issued up to here was carried by this request
        for seq in [seq for seq in self._unconfirmed if seq <= pending.seq]:
            del self._unconfirmed[seq]
        if pending.seq < self._applied_seq:
            logger.debug("ignoring superseded save response", extra={"seq": pending.seq, "applied": self._applied_seq})
            return saved
        self._applied_seq = pending.seq
        self._confirmed = self._confirmed.merge(pending.payload)
        if self._failed is not None and self._failed.seq <= pending.seq:
            self._failed = None
        if self._failed is None:
            self._retry.reset()
        if pending.seq == self._seq:
            self.backup.delete(self.backup_key)

        completed = status is AssessmentStatus.Completed
        newer = pending.seq < self._seq
        logger.info(
            "saved assessment",
            extra={"assessment_id": saved.assessment_id, "seq": pending.seq, "status": saved.status.value},
        )
        self._set(
            phase=SavePhase.Completed if completed else (self._state.phase if newer else SavePhase.Saved),
            is_saving=newer and not completed,
            error=None,
            last_saved=self._utcnow(),
            retry_attempt=0,
        )
        return saved

    def _on_failure(self, pending: PendingSave, status: AssessmentStatus | None, e: PersistenceError) -> None:
        if self._closed or pending.seq <= self._reset_seq:
            return
        if pending.seq < self._applied_seq:
            # a newer acknowledged save carried these fields
            self._unconfirmed.pop(pending.seq, None)
            logger.debug("ignoring superseded save failure", extra={"seq": pending.seq, "error": str(e)})
            return
        completing = status is AssessmentStatus.Completed

        if e.back_up or (completing and not isinstance(e, AuthenticationError)):
            self.backup.write(
                self.backup_key,
                BackupRecord(
                    assessment_id=self._state.assessment_id,
                    type=self.type,
                    status=status or AssessmentStatus.InProgress,
                    saved_at=self._utcnow(),
                    payload=self._confirmed.merge(pending.payload),
                ),
            )

        if pending.seq < self._sent_seq:
            # a newer request already on its way carries these fields
            self._unconfirmed.pop(pending.seq, None)
            logger.warning("save failed; newer save in flight", extra={"seq": pending.seq, "error": str(e)})
            return

        self._applied_seq = pending.seq
        if pending.seq < self._seq and not completing:
            # the newer update not sent yet picks these fields up, unless they were rejected
            if not e.retryable:
                self._unconfirmed.pop(pending.seq, None)
            logger.warning("save failed; newer update pending", extra={"seq": pending.seq, "error": str(e)})
            return
        self._unconfirmed.pop(pending.seq, None)

        delay = None
        if e.retryable and not completing:
            self._failed = pending
            delay = self._retry.schedule(self._on_retry)

        logger.warning(
            "save failed",
            extra={
                "seq": pending.seq,
                "error": str(e),
                "status_code": e.status_code,
                "retry_in": delay,
                "retry_attempt": self._retry.attempt,
            },
        )
        self._set(
            phase=SavePhase.Retrying if delay is not None else SavePhase.Error,
            is_saving=False,
            error=str(e),
            retry_attempt=self._retry.attempt,
        )

    def _set(self, **changes: t.Any) -> None:
        self._replace_state(self._state.model_copy(update=changes))

    def _replace_state(self, state: AutoSaveState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("auto-save state listener failed")


def _coerce(payload: Payload) -> PartialResults:
    if isinstance(payload, PartialResults):
        return payload
    return PartialResults.model_validate(payload)
