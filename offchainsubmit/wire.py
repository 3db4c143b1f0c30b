from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from typing import Any, BinaryIO, Mapping

import httpx

from .errors import AuthError, NotFoundError, RemoteError

logger = logging.getLogger(__name__)

ROOT_TAG = "xwhep"


def encode_description(entity: str, fields: Mapping[str, Any]) -> str:
    # Wire format is <xwhep><entity><key>value</key>...</entity></xwhep>.
    root = ET.Element(ROOT_TAG)
    node = ET.SubElement(root, entity)
    for key, value in fields.items():
        if value is None:
            continue
        child = ET.SubElement(node, str(key))
        if isinstance(value, bool):
            child.text = "true" if value else "false"
        else:
            child.text = str(value)
    return ET.tostring(root, encoding="unicode")


def _decode_entity(element: ET.Element) -> dict[str, Any] | str:
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()
    entity: dict[str, Any] = dict(element.attrib)
    for child in children:
        entity[child.tag] = (child.text or "").strip() if not list(child) else _decode_entity(child)
    return entity


def decode_document(text: str) -> dict[str, Any]:
    text = (text or "").strip()
    if not text:
        return {ROOT_TAG: {}}
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise RemoteError(f"failed to decode server document: {exc}") from exc

    body: dict[str, Any] = {}
    for element in root:
        decoded = _decode_entity(element)
        if element.tag in body:
            existing = body[element.tag]
            if not isinstance(existing, list):
                body[element.tag] = [existing]
            body[element.tag].append(decoded)
        else:
            body[element.tag] = decoded
    return {root.tag: body}


def entity_of(document: Mapping[str, Any], entity: str) -> dict[str, Any] | None:
    body = document.get(ROOT_TAG) or {}
    value = body.get(entity)
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        return value
    return None


def field_value(document: Mapping[str, Any], name: str) -> Any:
    """Return `name` from the first entity of a decoded document."""
    body = document.get(ROOT_TAG) or {}
    for value in body.values():
        if isinstance(value, list):
            value = value[0] if value else None
        if isinstance(value, dict) and name in value:
            return value[name]
    return None


class ServerConnection:
    """HTTP transport for the work server's REST endpoints."""

    def __init__(
        self,
        *,
        server_url: str,
        timeout: float,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self.state: str | None = None
        headers = {"User-Agent": user_agent} if user_agent else {}
        self._closed = False
        self._client = httpx.Client(
            base_url=self.server_url,
            timeout=httpx.Timeout(timeout),
            headers=headers,
            transport=transport,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._client.close()
        self._closed = True

    def _client_or_raise(self) -> httpx.Client:
        if self._closed:
            raise RemoteError("server connection is already closed")
        return self._client

    def _params(self, extra: Mapping[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.state:
            params["XWHEPSTATE"] = self.state
        if extra:
            params.update(extra)
        return params

    @staticmethod
    def _raise_for_status(response: httpx.Response, op: str, error_cls: type[RemoteError]) -> None:
        status_code = response.status_code
        if status_code < 400:
            return
        if status_code in (401, 403):
            raise AuthError(f"server rejected session (HTTP {status_code})", operation=op)
        if status_code == 404:
            raise NotFoundError(f"no such record (HTTP {status_code})", operation=op, status_code=status_code)
        raise error_cls(f"server returned HTTP {status_code}", operation=op, status_code=status_code)

    def request(
        self,
        method: str,
        path: str,
        *,
        op: str,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        error_cls: type[RemoteError] = RemoteError,
    ) -> httpx.Response:
        started = time.perf_counter()
        try:
            response = self._client_or_raise().request(
                method, path, params=self._params(params), data=data, files=files
            )
            self._raise_for_status(response, op, error_cls)
        except httpx.TransportError as exc:
            self._log_failure(op, started, exc)
            raise error_cls(f"transport failure: {exc}", operation=op) from exc
        except (AuthError, RemoteError) as exc:
            self._log_failure(op, started, exc)
            raise
        logger.debug(
            "%s %s -> %s",
            method,
            path,
            response.status_code,
            extra={
                "op": op,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "status_code": response.status_code,
            },
        )
        return response

    def stream_to(self, path: str, sink: BinaryIO, *, op: str) -> int:
        started = time.perf_counter()
        written = 0
        try:
            with self._client_or_raise().stream("GET", path, params=self._params()) as response:
                self._raise_for_status(response, op, RemoteError)
                for chunk in response.iter_bytes():
                    sink.write(chunk)
                    written += len(chunk)
        except httpx.TransportError as exc:
            self._log_failure(op, started, exc)
            raise RemoteError(f"transport failure after {written} bytes: {exc}", operation=op) from exc
        except (AuthError, RemoteError) as exc:
            self._log_failure(op, started, exc)
            raise
        logger.debug("streamed %d bytes from %s", written, path, extra={"op": op})
        return written

    def _log_failure(self, op: str, started: float, exc: Exception) -> None:
        logger.error(
            "server request failed",
            extra={
                "op": op,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "status_code": getattr(exc, "status_code", None),
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
