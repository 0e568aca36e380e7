"""Tests for the container's auto-save providers under the test configuration."""

from __future__ import annotations

import pytest

from soyuz.autosave import AssessmentClient, AutoSaver, MemoryBackupStore
from soyuz.core import SoyuzContainer
from soyuz.model import AssessmentType, UserID


class TestAutosaveContainer(object):
    def test_retry_policy_from_config(self, container: SoyuzContainer) -> None:
        policy = container.autosave().retry_policy()

        assert policy.base_delay == 0.01
        assert policy.max_delay == 0.04
        assert policy.max_retries == 3
        assert policy.delay(5) == 0.04

    @pytest.mark.anyio
    async def test_client_and_saver(self, container: SoyuzContainer) -> None:
        autosave = container.autosave()
        user_id = UserID()

        async with autosave.client(token="tok") as client:
            assert isinstance(client, AssessmentClient)
            saver = autosave.saver(
                client=client, backup=MemoryBackupStore(), type=AssessmentType.Disc, user_id=user_id
            )

        assert isinstance(saver, AutoSaver)
        assert saver.client is client
        assert saver.user_id == user_id
        assert saver.backup_key == f"assessment_autosave_disc_{user_id}"
