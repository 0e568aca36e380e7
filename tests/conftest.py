"""Pytest fixtures for Soyuz tests.

The container is booted once per session in the `test` environment, which
points storage at an in-memory SQLite database. Each test that touches the
database runs inside a transaction that is rolled back afterwards.

Usage:
    def test_get_incomplete(client: TestClient, auth_headers: dict[str, str], assessment_factory):
        assessment_factory(type=AssessmentType.Disc)
        response = client.get("/api/assessment", headers=auth_headers)
        assert response.status_code == 200
"""

from __future__ import annotations

import datetime
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import soyuz
from soyuz.auth import JWTManager
from soyuz.core import SoyuzContainer
from soyuz.model import Assessment, AssessmentStatus, AssessmentType, DeploymentEnvironment, PartialResults, UserID
from soyuz.storage import assessment as assessment_storage
from soyuz.storage.table import metadata


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(scope="session")
def container() -> t.Generator[SoyuzContainer]:
    """Boot the DI container for the test session against in-memory SQLite."""
    ct = SoyuzContainer()
    root = Path(os.path.dirname(soyuz.__file__)).parent

    SoyuzContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )
    metadata.create_all(ct.storage().persistent().engine())

    yield ct

    ct.shutdown_resources()


@pytest.fixture(scope="session")
def app(container: SoyuzContainer) -> FastAPI:
    """Create the FastAPI application with the web modules wired to the test container."""
    from soyuz.core.config.web import SoyuzWebSettings
    from soyuz.web.soyuz.main import _create_app, WebModules  # pyright: ignore[reportPrivateUsage]

    container.wire(modules=WebModules)
    return _create_app(
        config=SoyuzWebSettings(**container.config.web.soyuz()),
        env=DeploymentEnvironment.Test,
    )


@pytest.fixture
def db_session(container: SoyuzContainer) -> t.Generator[Session]:
    """Provide a database session wrapped in a transaction.

    join_transaction_mode="create_savepoint" turns the session.begin() calls
    made by routes and storage functions into savepoints, so everything is
    discarded when the outer transaction rolls back.
    """
    engine = container.storage().persistent().engine()

    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        autobegin=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def client(app: FastAPI, container: SoyuzContainer, db_session: Session) -> t.Generator[TestClient]:
    """Provide a TestClient whose requests share the test's transactional session."""
    container.storage().persistent().session.override(db_session)

    with TestClient(app) as test_client:
        yield test_client

    container.storage().persistent().session.reset_override()


@pytest.fixture
def jwt_manager(container: SoyuzContainer) -> JWTManager:
    return container.auth().jwt_manager()


@pytest.fixture
def user_id() -> UserID:
    return UserID()


@pytest.fixture
def auth_headers(jwt_manager: JWTManager, user_id: UserID) -> dict[str, str]:
    return {"Authorization": f"Bearer {jwt_manager.create_access_token(user_id)}"}


@pytest.fixture
def assessment_factory(db_session: Session, user_id: UserID) -> t.Callable[..., Assessment]:
    """Factory fixture creating assessments for the authenticated test user by default.

    Usage:
        def test_something(assessment_factory):
            a = assessment_factory(type=AssessmentType.Disc, created=datetime.datetime(2024, 3, 1, tzinfo=UTC))
    """

    def create_assessment(
        type: AssessmentType = AssessmentType.Complete,
        status: AssessmentStatus = AssessmentStatus.InProgress,
        results: PartialResults | None = None,
        owner: UserID | None = None,
        created: datetime.datetime | None = None,
    ) -> Assessment:
        results = results or PartialResults()
        when = created or datetime.datetime.now(datetime.UTC)
        with db_session.begin():
            return assessment_storage.create(
                {
                    "user_id": owner or user_id,
                    "type": type,
                    "status": status,
                    "disc_results": results.disc_results,
                    "soft_skills_results": results.soft_skills_results,
                    "sjt_results": results.sjt_results,
                    "progress_data": results.progress_data,
                },
                session=db_session,
                utcnow=lambda: when,
            )

    return create_assessment
