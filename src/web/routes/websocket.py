"""
WebSocket routes for live draft snapshots.

A draft editor subscribes to the record it is editing. The server polls the
store and pushes a snapshot whenever the record's revision or status
changes, so a second tab (or a second device) sees saves as they land.
The client feeds each snapshot to ``DraftSession.apply_server_snapshot``.
"""
import asyncio
from typing import Callable, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from utils import log_tags
from utils.log import get_logger

from ..errors import JournalError, not_found_error, unauthenticated_error
from ..services.abstract_service import get_abstract_service
from ..services.context import get_context
from ..services.review_service import get_review_service
from ..services.store import User
from ..services.user_service import get_user_service

logger = get_logger(__name__)

router = APIRouter()


def _resolve_user(websocket: WebSocket) -> User:
    """Browsers cannot set headers on sockets, so a query parameter also works."""
    user_id = websocket.headers.get("x-user-id") or websocket.query_params.get("user_id")
    if not user_id:
        raise unauthenticated_error()
    return get_user_service().get_user(user_id)


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def review_snapshot(user: User, submission_id: str) -> dict:
    workspace = get_review_service().get_submission_for_reviewer(user, submission_id)
    if workspace is None:
        raise not_found_error("Review")
    review = workspace["review"]
    return {
        "type": "snapshot",
        "revision": review.revision,
        "status": review.status,
        "values": dict(review.sections),
        "submitted_at": _isoformat(review.submitted_at),
    }


def abstract_snapshot(user: User, submission_id: str) -> dict:
    result = get_abstract_service().get_by_submission(user, submission_id)
    if result is None:
        raise not_found_error("Reviewer abstract")
    abstract = result["abstract"]
    return {
        "type": "snapshot",
        "revision": abstract.revision,
        "status": abstract.status,
        "values": {"content": abstract.content},
        "word_count": abstract.word_count,
        "is_signed": abstract.is_signed,
    }


async def stream_snapshots(websocket: WebSocket, read: Callable[[User], dict]):
    """
    Push snapshots until the client disconnects.

    Any message from the client forces the current snapshot to be resent.
    """
    await websocket.accept()
    interval = get_context().settings.ws_poll_interval_seconds
    last_key = None

    try:
        user = _resolve_user(websocket)
        while True:
            snapshot = read(user)
            key = (snapshot["revision"], snapshot["status"], snapshot.get("is_signed"))
            if key != last_key:
                await websocket.send_json(snapshot)
                last_key = key

            try:
                await asyncio.wait_for(websocket.receive_text(), timeout=interval)
                last_key = None
            except asyncio.TimeoutError:
                pass

    except WebSocketDisconnect:
        # Client went away
        pass
    except JournalError as e:
        await websocket.send_json({"type": "error", **e.to_dict()})
        await websocket.close()
    except Exception as e:
        logger.exception(f"{log_tags.WS} Snapshot stream failed")
        await websocket.send_json({"type": "error", "message": str(e)})
        await websocket.close()


@router.websocket("/ws/reviews/{submission_id}")
async def review_updates(websocket: WebSocket, submission_id: str):
    """Stream the caller's review for a submission."""
    await stream_snapshots(websocket, lambda user: review_snapshot(user, submission_id))


@router.websocket("/ws/abstracts/{submission_id}")
async def abstract_updates(websocket: WebSocket, submission_id: str):
    """Stream the reviewer abstract for a submission."""
    await stream_snapshots(websocket, lambda user: abstract_snapshot(user, submission_id))
