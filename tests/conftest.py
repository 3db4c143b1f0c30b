from __future__ import annotations

import itertools
from typing import Any

import pytest

from offchainsubmit.addressing import XWAddressCodec
from offchainsubmit.errors import NotFoundError
from offchainsubmit.models import is_terminal_status


class FakeSession:
    """In-memory stand-in for `ServerSession` recording every call."""

    def __init__(self, host: str = "server.test") -> None:
        self.codec = XWAddressCodec(host)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.records: dict[str, dict[str, Any]] = {}
        self.blobs: dict[str, bytes] = {}
        self.app_names: set[str] = set()
        self.progress: dict[str, list[str]] = {}
        self.result_uris: dict[str, str] = {}
        self.polls: dict[str, int] = {}
        self.call_result: Any = {"xwhep": {}}
        self.opened = 0
        self.closed = 0
        self._sequence = itertools.count(1)

    def __enter__(self) -> "FakeSession":
        self.opened += 1
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed += 1

    def calls_named(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    def add_work(
        self,
        uid: str,
        statuses: list[str],
        *,
        content_type: str = "IMG",
        payload: bytes = b"result-bytes",
    ) -> str:
        """Script the statuses successive reads of `uid` observe."""
        self.progress[uid] = list(statuses)
        result_uid = f"result-{uid}"
        self.records[result_uid] = {"xwhep": {"data": {"uid": result_uid, "type": content_type}}}
        self.blobs[result_uid] = payload
        self.result_uris[uid] = self.codec.encode(result_uid)
        return result_uid

    def _work_document(self, uid: str) -> dict[str, Any]:
        statuses = self.progress[uid]
        status = statuses.pop(0) if len(statuses) > 1 else statuses[0]
        entity = {"uid": uid, "status": status, "appuid": "app-1"}
        if status == "COMPLETED":
            entity["resulturi"] = self.result_uris[uid]
        return {"xwhep": {"work": entity}}

    def get_by_uid(self, uid: str) -> dict[str, Any]:
        self.calls.append(("get_by_uid", (uid,)))
        if uid in self.progress:
            self.polls[uid] = self.polls.get(uid, 0) + 1
            return self._work_document(uid)
        return self.records.get(uid, {"xwhep": {}})

    def register_data(self, payload: bytes, size: int, fields: dict[str, Any]) -> str:
        self.calls.append(("register_data", (payload, size, dict(fields))))
        uid = str(fields["uid"])
        self.blobs[uid] = payload
        self.records[uid] = {"xwhep": {"data": dict(fields)}}
        return uid

    def register_app(self, fields: dict[str, Any]) -> str:
        self.calls.append(("register_app", (dict(fields),)))
        uid = f"app-{next(self._sequence)}"
        name = fields.get("name")
        # An existing name leaves the new uid without an app record.
        if name not in self.app_names:
            self.app_names.add(name)
            self.records[uid] = {"xwhep": {"app": dict(fields, uid=uid)}}
        return uid

    def submit_work(self, app_uid: str, parameters: dict[str, Any]) -> str:
        self.calls.append(("submit_work", (app_uid, dict(parameters))))
        uid = f"work-{next(self._sequence)}"
        self.add_work(uid, ["PENDING"])
        return uid

    def wait_for_work(self, uid: str, *, timeout=None, cancel_event=None) -> dict[str, Any]:  # noqa: ANN001
        self.calls.append(("wait_for_work", (uid, timeout, cancel_event)))
        while True:
            document = self.get_by_uid(uid)
            work = document["xwhep"].get("work")
            if work is None or is_terminal_status(work.get("status")):
                return document

    def download_stream(self, uid: str, sink: Any) -> int:
        self.calls.append(("download_stream", (uid,)))
        if uid not in self.blobs:
            raise NotFoundError(f"no blob for {uid}", uid=uid)
        sink.write(self.blobs[uid])
        return len(self.blobs[uid])

    def version(self) -> str:
        self.calls.append(("version", ()))
        return "13.1.0"

    def call(self, operation: str, *args: Any) -> Any:
        self.calls.append(("call", (operation,) + args))
        return self.call_result


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OFFCHAINSUBMIT_JWTOKEN", raising=False)
    monkeypatch.delenv("OFFCHAINSUBMIT_SERVER", raising=False)
