from __future__ import annotations

import datetime
import enum
import logging
import re
import typing as t

import httpx
import pydantic as p

from soyuz.model import Assessment, AssessmentID, AssessmentStatus, AssessmentType, BaseModel, PartialResults

from . import errors
from .errors import PersistenceError, TransientError

logger = logging.getLogger(__name__)


class ExportFormat(enum.Enum):
    Csv = "csv"
    Text = "txt"


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class AssessmentPage(BaseModel):
    assessments: list[Assessment]
    pagination: Pagination


class ExportedFile(t.NamedTuple):
    filename: str
    content_type: str
    content: bytes


class AssessmentClient(object):
    """
    Async client for the assessment service.

    Every failure is raised as a PersistenceError subclass so callers can
    tell retryable failures from rejected payloads and bad credentials.
    """

    _client: httpx.AsyncClient

    def __init__(
        self,
        base_url: str,
        token: str | p.Secret[str] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if isinstance(token, p.Secret):
            token = token.get_secret_value()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    async def __aenter__(self) -> t.Self:
        return self

    async def __aexit__(self, *exc: t.Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: t.Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise errors.from_transport(e) from e
        logger.debug("%s %s -> %d", method, url, response.status_code)
        if response.is_error:
            raise errors.from_response(response)
        return response

    @staticmethod
    def _assessment(response: httpx.Response) -> Assessment:
        try:
            return Assessment.model_validate_json(response.content)
        except p.ValidationError as e:
            # the service answered but not with an assessment, e.g. a proxy error page
            raise TransientError(f"unexpected response body: {e.error_count()} errors", response.status_code) from e

    async def save(
        self,
        type: AssessmentType,
        results: PartialResults,
        *,
        assessment_id: AssessmentID | None = None,
        status: AssessmentStatus | None = None,
    ) -> Assessment:
        """Create an assessment, or partially update it when `assessment_id` is given."""
        body: dict[str, t.Any] = {"type": type.value, **results.as_fields()}
        if assessment_id is not None:
            body["assessment_id"] = str(assessment_id)
        if status is not None:
            body["status"] = status.value
        response = await self._request("POST", "/api/assessment", json=body)
        return self._assessment(response)

    async def complete(
        self, type: AssessmentType, results: PartialResults, *, assessment_id: AssessmentID | None = None
    ) -> Assessment:
        return await self.save(type, results, assessment_id=assessment_id, status=AssessmentStatus.Completed)

    async def get(self, assessment_id: AssessmentID) -> Assessment | None:
        try:
            response = await self._request("GET", f"/api/assessment/{assessment_id}")
        except PersistenceError as e:
            if e.status_code == 404:
                return None
            raise
        return self._assessment(response)

    async def find_incomplete(self) -> Assessment | None:
        try:
            response = await self._request("GET", "/api/assessment")
        except PersistenceError as e:
            if e.status_code == 404:
                return None
            raise
        return self._assessment(response)

    async def abandon(self, assessment_id: AssessmentID) -> Assessment:
        response = await self._request("DELETE", f"/api/assessment/{assessment_id}")
        return self._assessment(response)

    async def find(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        type: AssessmentType | None = None,
        status: AssessmentStatus | None = None,
        date_from: datetime.date | None = None,
        date_to: datetime.date | None = None,
    ) -> AssessmentPage:
        params: dict[str, str | int] = {"page": page, "limit": limit}
        if type is not None:
            params["type"] = type.value
        if status is not None:
            params["status"] = status.value
        if date_from is not None:
            params["date_from"] = date_from.isoformat()
        if date_to is not None:
            params["date_to"] = date_to.isoformat()
        response = await self._request("GET", "/api/assessments", params=params)
        try:
            return AssessmentPage.model_validate_json(response.content)
        except p.ValidationError as e:
            raise TransientError(f"unexpected response body: {e.error_count()} errors", response.status_code) from e

    async def export(self, assessment_id: AssessmentID, format: ExportFormat = ExportFormat.Csv) -> ExportedFile:
        response = await self._request(
            "POST", "/api/assessment/export", json={"assessment_id": str(assessment_id), "format": format.value}
        )
        disposition = response.headers.get("content-disposition", "")
        match = re.search(r'filename="?([^";]+)"?', disposition)
        return ExportedFile(
            filename=match.group(1) if match else f"assessment.{format.value}",
            content_type=response.headers.get("content-type", "application/octet-stream"),
            content=response.content,
        )
