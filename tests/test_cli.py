"""Tests for the `autosave` and `history` commands, against a mocked service."""

from __future__ import annotations

import datetime
import json
import typing as t

import httpx
import pytest
from click.testing import CliRunner
from dependency_injector.providers import Factory

import soyuz.cli.autosave
import soyuz.cli.history
from soyuz.autosave import AssessmentClient, backup_key, BackupRecord, MemoryBackupStore
from soyuz.core import SoyuzContainer
from soyuz.model import AssessmentID, AssessmentStatus, AssessmentType, DiscResults, PartialResults, UserID

Created = datetime.datetime(2024, 5, 1, 12, tzinfo=datetime.UTC)


class Service(object):
    """Answers assessment requests; `reject` maps assessment ids to an error status."""

    requests: list[httpx.Request]
    reject: dict[str, int]
    listing: list[dict[str, t.Any]]

    def __init__(self) -> None:
        self.requests = []
        self.reject = {}
        self.listing = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/assessments":
            return httpx.Response(
                200,
                json={
                    "assessments": self.listing,
                    "pagination": {"total": len(self.listing), "page": 1, "limit": 10, "total_pages": 1},
                },
            )

        body = json.loads(request.content)
        if (status_code := self.reject.get(body.get("assessment_id", ""))) is not None:
            return httpx.Response(status_code, json={"detail": "nope"})
        return httpx.Response(
            200,
            json=assessment_body(
                assessment_id=body.get("assessment_id") or str(AssessmentID()),
                type=body["type"],
                status=body.get("status", "in_progress"),
            ),
        )

    def saved(self) -> list[dict[str, t.Any]]:
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]


def assessment_body(**overrides: t.Any) -> dict[str, t.Any]:
    return {
        "assessment_id": str(AssessmentID()),
        "user_id": str(UserID()),
        "type": "complete",
        "status": "in_progress",
        "create_time": Created.isoformat(),
        "update_time": Created.isoformat(),
        **overrides,
    }


@pytest.fixture
def service() -> Service:
    return Service()


@pytest.fixture
def backup(container: SoyuzContainer, service: Service) -> t.Generator[MemoryBackupStore]:
    """Route the commands' backup store and service client to in-memory stand-ins."""
    store = MemoryBackupStore()
    autosave = container.autosave()
    container.wire(modules=[soyuz.cli.autosave, soyuz.cli.history])
    autosave.backup.override(store)
    autosave.client.override(
        Factory(AssessmentClient, base_url="http://service", transport=httpx.MockTransport(service))
    )

    yield store

    autosave.client.reset_override()
    autosave.backup.reset_override()


def write(
    store: MemoryBackupStore,
    user_id: UserID,
    type: AssessmentType = AssessmentType.Complete,
    status: AssessmentStatus = AssessmentStatus.InProgress,
    assessment_id: AssessmentID | None = None,
) -> str:
    key = backup_key(type, user_id)
    store.write(
        key,
        BackupRecord(
            assessment_id=assessment_id,
            type=type,
            status=status,
            saved_at=Created,
            payload=PartialResults(disc_results=DiscResults(D=2)),
        ),
    )
    return key


class TestReplay(object):
    def test_accepted_backups_are_deleted(self, backup: MemoryBackupStore, service: Service) -> None:
        user_id = UserID()
        existing = AssessmentID()
        write(backup, user_id, status=AssessmentStatus.Completed, assessment_id=existing)
        write(backup, user_id, type=AssessmentType.Disc)

        result = CliRunner().invoke(soyuz.cli.autosave.autosave, ["replay"])

        assert result.exit_code == 0, result.output
        assert "Replayed 2 backup(s), 0 failed." in result.output
        assert len(backup) == 0
        bodies = {body["type"]: body for body in service.saved()}
        assert bodies["complete"]["assessment_id"] == str(existing)
        assert bodies["complete"]["status"] == "completed"
        assert bodies["complete"]["disc_results"]["D"] == 2
        assert "assessment_id" not in bodies["disc"]
        assert "status" not in bodies["disc"]
        assert all(r.headers["Authorization"].startswith("Bearer ") for r in service.requests)

    def test_rejected_backup_is_kept(self, backup: MemoryBackupStore, service: Service) -> None:
        """A rejected payload stays for inspection and the command exits 1."""
        user_id = UserID()
        rejected = AssessmentID()
        service.reject[str(rejected)] = 409
        kept = write(backup, user_id, assessment_id=rejected)
        write(backup, user_id, type=AssessmentType.Sjt)

        result = CliRunner().invoke(soyuz.cli.autosave.autosave, ["replay"])

        assert result.exit_code == 1
        assert f"rejected {kept}" in result.output
        assert "Replayed 1 backup(s), 1 failed." in result.output
        assert backup.keys() == [kept]

    def test_unreachable_service_keeps_backup(self, backup: MemoryBackupStore, service: Service) -> None:
        user_id = UserID()
        unavailable = AssessmentID()
        service.reject[str(unavailable)] = 503
        kept = write(backup, user_id, assessment_id=unavailable)

        result = CliRunner().invoke(soyuz.cli.autosave.autosave, ["replay"])

        assert result.exit_code == 1
        assert f"failed {kept}" in result.output
        assert backup.keys() == [kept]

    def test_dry_run_sends_nothing(self, backup: MemoryBackupStore, service: Service) -> None:
        key = write(backup, UserID())

        result = CliRunner().invoke(soyuz.cli.autosave.autosave, ["replay", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert f"would replay {key}" in result.output
        assert service.requests == []
        assert backup.keys() == [key]

    def test_user_filter(self, backup: MemoryBackupStore, service: Service) -> None:
        mine, theirs = UserID(), UserID()
        write(backup, mine)
        other = write(backup, theirs)

        result = CliRunner().invoke(soyuz.cli.autosave.autosave, ["replay", "--user", str(mine)])

        assert result.exit_code == 0, result.output
        assert len(service.saved()) == 1
        assert backup.keys() == [other]


class TestShow(object):
    def test_lists_backups(self, backup: MemoryBackupStore) -> None:
        user_id = UserID()
        key = write(backup, user_id, type=AssessmentType.Disc)

        result = CliRunner().invoke(soyuz.cli.autosave.autosave, ["show"])

        assert result.exit_code == 0, result.output
        assert key in result.output
        assert "(not created)" in result.output
        assert "disc_results" in result.output

    def test_no_backups(self, backup: MemoryBackupStore) -> None:
        result = CliRunner().invoke(soyuz.cli.autosave.autosave, ["show", "--user", str(UserID())])

        assert result.exit_code == 0, result.output
        assert "No backups found." in result.output


class TestHistoryList(object):
    def test_lists_page_and_stats(self, backup: MemoryBackupStore, service: Service) -> None:
        user_id = UserID()
        done = assessment_body(
            user_id=str(user_id),
            status="completed",
            completed_at=(Created + datetime.timedelta(minutes=30)).isoformat(),
        )
        service.listing = [done, assessment_body(user_id=str(user_id), type="disc")]

        result = CliRunner().invoke(
            soyuz.cli.history.history, ["list", str(user_id), "--type", "complete", "--from", "2024-05-01"]
        )

        assert result.exit_code == 0, result.output
        assert done["assessment_id"] in result.output
        assert "page 1/1 (2 total)" in result.output
        assert "completed 1/2 (50%), average completion time 30 min" in result.output
        params = service.requests[0].url.params
        assert params["type"] == "complete"
        assert params["date_from"] == "2024-05-01"

    def test_empty_history(self, backup: MemoryBackupStore, service: Service) -> None:
        result = CliRunner().invoke(soyuz.cli.history.history, ["list", str(UserID())])

        assert result.exit_code == 0, result.output
        assert "No assessments found." in result.output
