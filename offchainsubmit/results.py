from __future__ import annotations

"""Result resolution and download."""

import logging
from contextlib import closing
from pathlib import Path
from typing import BinaryIO

from .errors import NotFoundError, RemoteError
from .models import ResultDescriptor
from .session import ServerSession
from .wire import ROOT_TAG, field_value

logger = logging.getLogger(__name__)


def resolve_result(session: ServerSession, address: str) -> ResultDescriptor:
    """Decode a result address and read the stored record's content type."""
    uid = session.codec.decode(address)
    record = session.get_by_uid(uid)
    if not (record.get(ROOT_TAG) or {}):
        raise NotFoundError("no stored result for address", operation="resolve_result", uid=uid)
    content_type = field_value(record, "type")
    if not content_type:
        raise RemoteError("result record has no content type", operation="resolve_result", uid=uid)
    return ResultDescriptor(uid=uid, address=address, content_type=str(content_type).lower())


def result_path(directory: str | Path, name: str, content_type: str) -> Path:
    """Destination `<name>.<content_type>`; the extension always comes from the type."""
    return Path(directory) / f"{name}.{content_type.lower()}"


def download_result(session: ServerSession, storage_uid: str, sink: BinaryIO) -> int:
    """Stream stored bytes into `sink`, closing it on every exit path."""
    with closing(sink):
        written = session.download_stream(storage_uid, sink)
    logger.debug("downloaded %s bytes for %s", written, storage_uid)
    return written
