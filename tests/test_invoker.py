from __future__ import annotations

from offchainsubmit.invoker import invoke_generic


def test_invoke_generic_forwards_operation_and_arguments(fake_session) -> None:  # noqa: ANN001
    raw = {"xwhep": {"work": {"uid": "abc123", "status": "RUNNING"}}}
    fake_session.call_result = raw

    result = invoke_generic(fake_session, "getByUID", ["abc123"])

    assert fake_session.calls == [("call", ("getByUID", "abc123"))]
    assert result is raw


def test_invoke_generic_passes_no_arguments_through(fake_session) -> None:  # noqa: ANN001
    invoke_generic(fake_session, "version", [])
    assert fake_session.calls == [("call", ("version",))]
