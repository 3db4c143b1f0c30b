from __future__ import annotations

import io
from pathlib import Path

import pytest

from offchainsubmit.errors import MalformedAddressError, NotFoundError, RemoteError
from offchainsubmit.results import download_result, resolve_result, result_path


class RecordingSink(io.BytesIO):
    def __init__(self) -> None:
        super().__init__()
        self.captured = b""

    def close(self) -> None:
        if not self.closed:
            self.captured = self.getvalue()
        super().close()


def test_resolve_result_lowercases_content_type(fake_session) -> None:  # noqa: ANN001
    fake_session.add_work("w1", ["COMPLETED"], content_type="ZIP")
    descriptor = resolve_result(fake_session, "xw://server.test/result-w1")
    assert descriptor.uid == "result-w1"
    assert descriptor.content_type == "zip"
    assert descriptor.address == "xw://server.test/result-w1"


def test_resolve_result_rejects_malformed_address(fake_session) -> None:  # noqa: ANN001
    with pytest.raises(MalformedAddressError):
        resolve_result(fake_session, "result-w1")
    assert fake_session.calls == []


def test_resolve_result_stale_address_raises_not_found(fake_session) -> None:  # noqa: ANN001
    with pytest.raises(NotFoundError) as excinfo:
        resolve_result(fake_session, "xw://server.test/stale-uid")
    assert excinfo.value.uid == "stale-uid"
    assert fake_session.calls == [("get_by_uid", ("stale-uid",))]


def test_resolve_result_requires_content_type(fake_session) -> None:  # noqa: ANN001
    fake_session.records["r1"] = {"xwhep": {"data": {"uid": "r1"}}}
    with pytest.raises(RemoteError, match="content type"):
        resolve_result(fake_session, "xw://server.test/r1")


def test_download_result_writes_and_closes_sink(fake_session) -> None:  # noqa: ANN001
    fake_session.add_work("w1", ["COMPLETED"], payload=b"\x89PNG data")
    sink = RecordingSink()
    written = download_result(fake_session, "result-w1", sink)
    assert written == len(b"\x89PNG data")
    assert sink.closed
    assert sink.captured == b"\x89PNG data"


def test_download_result_closes_sink_on_failure(fake_session) -> None:  # noqa: ANN001
    sink = RecordingSink()
    with pytest.raises(NotFoundError):
        download_result(fake_session, "missing", sink)
    assert sink.closed


def test_result_path_takes_extension_from_content_type(tmp_path: Path) -> None:
    assert result_path(tmp_path, "myfile", "IMG") == tmp_path / "myfile.img"
    assert result_path(str(tmp_path), "w1", "zip") == tmp_path / "w1.zip"
