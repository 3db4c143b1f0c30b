from __future__ import annotations

"""Authenticated server sessions.

`establish_session` exchanges a bearer credential for a server `state` handle
and returns a `ServerSession`, the collaborator every lifecycle component
talks to. Sessions are scoped to one top-level operation and closed with it.
"""

import inspect
import logging
import threading
import time
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Any, BinaryIO, Mapping

import httpx

from .addressing import AddressCodec, binary_field_name, make_address_codec
from .auth import Credential
from .builder import DescriptorBuilder, new_uid
from .errors import (
    AuthError,
    RemoteError,
    SubmissionError,
    UploadError,
    WaitCancelledError,
    WaitTimeoutError,
)
from .models import is_terminal_status
from .wire import ServerConnection, decode_document, encode_description, entity_of

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_REQUEST_TIMEOUT = 30.0
STATE_COOKIE = "state"

# Server-style operation names accepted by `ServerSession.call`.
_OPERATION_ALIASES = {
    "getByUID": "get_by_uid",
    "get": "get",
    "version": "version",
    "uid2uri": "uid_to_uri",
    "uri2uid": "uri_to_uid",
    "getAppBinaryFieldName": "app_binary_field_name",
    "submitWork": "submit_work",
    "waitForWorkCompleted": "wait_for_work",
}


def _resolve_client_version() -> str:
    """Resolve installed package version for the User-Agent header."""
    try:
        return package_version("offchainsubmit")
    except PackageNotFoundError:
        return "0.0.0"


class ServerSession:
    """Authenticated handle exposing the server operations used by the client."""

    def __init__(
        self,
        connection: ServerConnection,
        codec: AddressCodec,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.connection = connection
        self.codec = codec
        self.poll_interval = poll_interval

    def __enter__(self) -> "ServerSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.connection.close()

    @property
    def state(self) -> str | None:
        return self.connection.state

    def get(self, path: str) -> dict[str, Any]:
        """GET an arbitrary server path and decode its XML document."""
        response = self.connection.request("GET", "/" + path.lstrip("/"), op=f"get.{path}")
        return decode_document(response.text)

    def get_by_uid(self, uid: str) -> dict[str, Any]:
        response = self.connection.request("GET", f"/get/{uid}", op="get_by_uid")
        return decode_document(response.text)

    def version(self) -> str:
        document = self.get("version")
        entity = entity_of(document, "Version") or {}
        server_version = entity.get("version")
        if not server_version:
            raise RemoteError("server version missing from response", operation="version")
        return str(server_version)

    def uid_to_uri(self, uid: str) -> str:
        return self.codec.encode(uid)

    def uri_to_uid(self, uri: str) -> str:
        return self.codec.decode(uri)

    def app_binary_field_name(self, os_name: str, cpu: str) -> str:
        return binary_field_name(os_name, cpu)

    def _send(
        self,
        entity: str,
        fields: Mapping[str, Any],
        *,
        error_cls: type[RemoteError] = RemoteError,
    ) -> str:
        uid = str(fields["uid"])
        self.connection.request(
            "POST",
            f"/send{entity}",
            op=f"send_{entity}",
            data={"XMLDESC": encode_description(entity, fields)},
            error_cls=error_cls,
        )
        return uid

    def register_data(self, payload: bytes, size: int, fields: Mapping[str, Any]) -> str:
        """Describe then upload a data blob; returns its server uid."""
        uid = self._send("data", fields, error_cls=UploadError)
        self.connection.request(
            "POST",
            f"/uploaddata/{uid}",
            op="upload_data",
            data={
                "DATAUID": uid,
                "DATAMD5SUM": str(fields.get("md5", "")),
                "DATASIZE": str(size),
            },
            files={"DATAFILE": (uid, payload, "application/octet-stream")},
            error_cls=UploadError,
        )
        logger.debug("registered data %s (%d bytes)", uid, size)
        return uid

    def register_app(self, fields: Mapping[str, Any]) -> str:
        fields = dict(fields)
        fields.setdefault("uid", new_uid())
        uid = self._send("app", fields)
        logger.debug("registered app %s", uid)
        return uid

    def submit_work(self, app_uid: str, parameters: Mapping[str, Any] | None = None) -> str:
        fields = DescriptorBuilder.build_work_fields(new_uid(), app_uid, parameters)
        uid = self._send("work", fields, error_cls=SubmissionError)
        logger.debug("submitted work %s to app %s", uid, app_uid)
        return uid

    def wait_for_work(
        self,
        uid: str,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
        poll_interval: float | None = None,
    ) -> dict[str, Any]:
        """Block until the work record reaches a terminal status.

        Returns the last decoded record, which may lack a `work` entity when the
        server has no such work. Raises `WaitTimeoutError` once `timeout`
        seconds elapse and `WaitCancelledError` when `cancel_event` is set.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        deadline = None if timeout is None else time.monotonic() + timeout
        polls = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise WaitCancelledError("wait for work cancelled", operation="wait_for_work", uid=uid)
            document = self.get_by_uid(uid)
            polls += 1
            work = entity_of(document, "work")
            if work is None or is_terminal_status(work.get("status")):
                logger.debug("work %s settled after %d polls", uid, polls)
                return document

            delay = interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise WaitTimeoutError(
                        f"work still {work.get('status')} after {timeout}s",
                        operation="wait_for_work",
                        uid=uid,
                    )
                delay = min(delay, remaining)
            if cancel_event is not None:
                if cancel_event.wait(delay):
                    raise WaitCancelledError("wait for work cancelled", operation="wait_for_work", uid=uid)
            elif delay > 0:
                time.sleep(delay)

    def download_stream(self, uid: str, sink: BinaryIO) -> int:
        return self.connection.stream_to(f"/downloaddata/{uid}", sink, op="download_data")

    def call(self, operation: str, *args: Any) -> Any:
        """Dispatch a named session operation; see `invoker.invoke_generic`."""
        method_name = _OPERATION_ALIASES.get(operation)
        if method_name is None and operation in _OPERATION_ALIASES.values():
            method_name = operation
        if method_name is None:
            raise RemoteError(f"unknown operation {operation!r}", operation=operation)
        method = getattr(self, method_name)
        try:
            inspect.signature(method).bind(*args)
        except TypeError as exc:
            raise RemoteError(f"bad arguments for {operation}: {exc}", operation=operation) from exc
        return method(*args)


def establish_session(
    server_url: str,
    credential: Credential,
    *,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    address_scheme: str = "xw",
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    transport: httpx.BaseTransport | None = None,
) -> ServerSession:
    """Exchange `credential` for a server state handle."""
    if not credential.jwtoken:
        raise AuthError("credential is empty", operation="establish_session")
    codec = make_address_codec(server_url, address_scheme)
    connection = ServerConnection(
        server_url=server_url,
        timeout=timeout,
        user_agent=f"offchainsubmit/{_resolve_client_version()}",
        transport=transport,
    )
    try:
        response = connection.request(
            "GET",
            "/ethauth/",
            op="establish_session",
            params={"noredirect": "", "XWHEPJWT": credential.jwtoken},
        )
        state = response.cookies.get(STATE_COOKIE)
        if not state:
            raise AuthError("server did not issue a session state", operation="establish_session")
    except RemoteError as exc:
        connection.close()
        if exc.status_code is None:
            raise
        raise AuthError(
            f"server rejected credential exchange (HTTP {exc.status_code})",
            operation="establish_session",
        ) from exc
    except Exception:
        connection.close()
        raise
    connection.state = state
    logger.debug("session established with %s", server_url)
    return ServerSession(connection, codec, poll_interval=poll_interval)
