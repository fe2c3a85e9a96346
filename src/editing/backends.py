"""
Draft backends: where a draft session reads and writes its record.

Two flavours of each record type:

- ``Service*Backend`` calls the service layer in-process (used by the CLI,
  the tests and anything embedding the journal).
- ``Http*Backend`` talks to a running server over ``httpx.AsyncClient``.

Both turn a stale-revision rejection into ``VersionConflict`` and let every
other ``JournalError`` propagate.

Usage:
    async with create_journal_client(base_url, user_id) as client:
        draft = await ReviewDraft.open(HttpReviewBackend(client, submission_id))
        draft.edit('summary', 'The paper argues ...')
        await draft.flush()
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Optional

import httpx

from utils import log_tags
from utils.log import get_logger
from web.config import USER_HEADER
from web.errors import ErrorCode, JournalError, external_service_error
from web.services.store import User

from .state import ServerSnapshot, VersionConflict, parse_timestamp

logger = get_logger(__name__)


# =============================================================================
# In-process backends
# =============================================================================

@contextmanager
def _stale_revision_as_conflict():
    try:
        yield
    except JournalError as e:
        if e.code == ErrorCode.VERSION_CONFLICT:
            raise VersionConflict(e.message) from e
        raise


class ServiceReviewBackend:
    """Review draft access through ``ReviewService``."""

    def __init__(self, service, user: User, submission_id: str):
        self.service = service
        self.user = user
        self.submission_id = submission_id

    async def save(self, field: str, content: str, expected_revision: int) -> int:
        with _stale_revision_as_conflict():
            return self.service.update_section(
                self.user, self.submission_id, field, content, expected_revision
            )

    async def fetch(self) -> ServerSnapshot:
        workspace = self.service.get_submission_for_reviewer(self.user, self.submission_id)
        if workspace is None:
            raise JournalError(ErrorCode.NOT_FOUND, 'Review not found')
        review = workspace['review']
        return ServerSnapshot(
            values=dict(review.sections),
            revision=review.revision,
            status=review.status,
            submitted_at=review.submitted_at,
        )

    async def submit(self, expected_revision: int) -> Optional[int]:
        with _stale_revision_as_conflict():
            review = self.service.submit_review(self.user, self.submission_id, expected_revision)
        return review.revision


class ServiceAbstractBackend:
    """Reviewer abstract access through ``AbstractService``."""

    def __init__(self, service, user: User, submission_id: str):
        self.service = service
        self.user = user
        self.submission_id = submission_id

    async def save(self, field: str, content: str, expected_revision: int) -> int:
        with _stale_revision_as_conflict():
            return self.service.update_content(self.user, self.submission_id, content, expected_revision)

    async def fetch(self) -> ServerSnapshot:
        result = self.service.get_by_submission(self.user, self.submission_id)
        if result is None:
            raise JournalError(ErrorCode.NOT_FOUND, 'Reviewer abstract not found')
        abstract = result['abstract']
        return ServerSnapshot(
            values={'content': abstract.content},
            revision=abstract.revision,
            status=abstract.status,
            is_signed=abstract.is_signed,
        )

    async def submit(self, expected_revision: int) -> Optional[int]:
        with _stale_revision_as_conflict():
            self.service.submit_abstract(self.user, self.submission_id, expected_revision)
        return None

    async def set_signing(self, is_signed: bool) -> None:
        self.service.update_signing(self.user, self.submission_id, is_signed)


# =============================================================================
# HTTP backends
# =============================================================================

DEFAULT_TIMEOUT = 10.0

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def create_journal_client(
    base_url: str,
    user_id: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Async client for the journal API, acting as ``user_id``.

    Parameters
    ----------
    base_url : str
        Server root, e.g. ``http://127.0.0.1:8000``
    user_id : str
        Sent as the identity header on every request
    timeout : float
        Per-request timeout in seconds
    transport : httpx.AsyncBaseTransport, optional
        Custom transport (``httpx.ASGITransport`` to call an app in-process)
    """
    headers = {**DEFAULT_HEADERS, USER_HEADER: user_id}
    logger.debug(f"{log_tags.AUTOSAVE} Creating journal client for {base_url} as {user_id}")
    return httpx.AsyncClient(
        base_url=base_url,
        headers=headers,
        timeout=timeout,
        transport=transport,
    )


def raise_for_error(response: httpx.Response) -> None:
    """
    Raise the typed error carried by a failed response.

    Raises
    ------
    VersionConflict
        On a ``VERSION_CONFLICT`` body
    JournalError
        On any other error status
    """
    if response.is_success:
        return

    try:
        body = response.json()
    except ValueError:
        body = {}

    code = body.get("code") if isinstance(body, dict) else None
    if code == ErrorCode.VERSION_CONFLICT.value:
        raise VersionConflict(body.get("message") or "Version conflict")
    if code in {c.value for c in ErrorCode}:
        raise JournalError(ErrorCode(code), body.get("message", ""), status_code=response.status_code)

    # Request validation failures come back as FastAPI's {"detail": [...]}
    detail = body.get("detail") if isinstance(body, dict) else None
    if response.status_code == 422:
        raise JournalError(ErrorCode.VALIDATION_ERROR, str(detail or response.text), status_code=422)
    raise JournalError(
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        f"Unexpected response {response.status_code}: {detail or response.text[:200]}",
        status_code=response.status_code,
    )


class _HttpBackend:
    def __init__(self, client: httpx.AsyncClient, submission_id: str):
        self.client = client
        self.submission_id = submission_id

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{log_tags.AUTOSAVE} {method} {path} failed: {e}")
            raise external_service_error('journal API', str(e)) from e
        raise_for_error(response)
        return response


class HttpReviewBackend(_HttpBackend):
    """Review draft access over the REST API."""

    async def save(self, field: str, content: str, expected_revision: int) -> int:
        response = await self._request(
            "PATCH",
            f"/api/reviews/{self.submission_id}/sections",
            json={"section": field, "content": content, "expected_revision": expected_revision},
        )
        return response.json()["revision"]

    async def fetch(self) -> ServerSnapshot:
        response = await self._request("GET", f"/api/reviews/{self.submission_id}")
        review = response.json()["review"]
        return ServerSnapshot(
            values=dict(review.get("sections") or {}),
            revision=review["revision"],
            status=review["status"],
            submitted_at=parse_timestamp(review.get("submitted_at")),
        )

    async def submit(self, expected_revision: int) -> Optional[int]:
        response = await self._request(
            "POST",
            f"/api/reviews/{self.submission_id}/submit",
            json={"expected_revision": expected_revision},
        )
        return response.json()["revision"]


class HttpAbstractBackend(_HttpBackend):
    """Reviewer abstract access over the REST API."""

    async def save(self, field: str, content: str, expected_revision: int) -> int:
        response = await self._request(
            "PATCH",
            f"/api/abstracts/{self.submission_id}/content",
            json={"content": content, "expected_revision": expected_revision},
        )
        return response.json()["revision"]

    async def fetch(self) -> ServerSnapshot:
        response = await self._request("GET", f"/api/abstracts/{self.submission_id}")
        abstract = response.json()
        if abstract is None:
            raise JournalError(ErrorCode.NOT_FOUND, 'Reviewer abstract not found')
        return ServerSnapshot(
            values={"content": abstract["content"]},
            revision=abstract["revision"],
            status=abstract["status"],
            is_signed=abstract["is_signed"],
        )

    async def submit(self, expected_revision: int) -> Optional[int]:
        await self._request(
            "POST",
            f"/api/abstracts/{self.submission_id}/submit",
            json={"expected_revision": expected_revision},
        )
        return None

    async def set_signing(self, is_signed: bool) -> None:
        await self._request(
            "PUT",
            f"/api/abstracts/{self.submission_id}/signing",
            json={"is_signed": is_signed},
        )
