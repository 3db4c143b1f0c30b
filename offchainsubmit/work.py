from __future__ import annotations

"""Work submission and tracking.

Status transitions are driven by the server; this module only observes them.
`await_completion` hands the blocking wait to the session and returns any
terminal status, failed ones included, without raising.
"""

import logging
import threading
import time
from typing import Any, Mapping

from .errors import NotCompletedError, NotFoundError, SubmissionError, WaitTimeoutError
from .models import Work
from .session import ServerSession
from .wire import entity_of

logger = logging.getLogger(__name__)


def submit_work(
    session: ServerSession,
    app_uid: str,
    parameters: Mapping[str, Any] | None = None,
) -> str:
    """Submit work against a deployed application; returns the work uid."""
    if not app_uid:
        raise SubmissionError("app uid is required to submit work", operation="submit")
    return session.submit_work(app_uid, dict(parameters or {}))


def work_from_document(uid: str, document: Mapping[str, Any]) -> Work:
    """Build a `Work` snapshot, rejecting documents without a work record."""
    entity = entity_of(document, "work")
    if entity is None:
        raise NotFoundError(f"no current work associated with uid {uid}", uid=uid)
    return Work(
        uid=str(entity.get("uid") or uid),
        status=str(entity.get("status") or "").upper(),
        app_uid=entity.get("appuid"),
        result_uri=entity.get("resulturi") or None,
        record=dict(entity),
    )


def fetch_status(session: ServerSession, work_uid: str) -> Work:
    """Read one status snapshot; unknown uids raise `NotFoundError`."""
    return work_from_document(work_uid, session.get_by_uid(work_uid))


def await_completion(
    session: ServerSession,
    work_uid: str,
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
) -> Work:
    """Block until the server reports a terminal status for `work_uid`.

    `timeout` (seconds) and `cancel_event` bound the wait; they surface as
    `WaitTimeoutError` and `WaitCancelledError` respectively.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        remaining = None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(
                    f"work did not finish within {timeout}s", operation="await_completion", uid=work_uid
                )
        document = session.wait_for_work(work_uid, timeout=remaining, cancel_event=cancel_event)
        work = work_from_document(work_uid, document)
        if work.is_terminal:
            logger.debug("work %s finished with status %s", work_uid, work.status)
            return work
        logger.debug("wait for work %s returned non-terminal %s; waiting again", work_uid, work.status)


def result_address(work: Work) -> str:
    if not work.is_completed:
        raise NotCompletedError(f"work is {work.status or 'in an unknown state'}, not COMPLETED", uid=work.uid)
    if not work.result_uri:
        raise NotFoundError("completed work has no result address", uid=work.uid)
    return work.result_uri
