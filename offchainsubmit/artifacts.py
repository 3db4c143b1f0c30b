from __future__ import annotations

"""Artifact registration: validate, describe, and upload blobs."""

import logging
import os

from .builder import DescriptorBuilder, new_uid
from .models import ArtifactMetadata
from .session import ServerSession

logger = logging.getLogger(__name__)


def read_artifact(path: str) -> tuple[bytes, int]:
    """Read an artifact's bytes and on-disk size."""
    with open(path, "rb") as fp:
        payload = fp.read()
    size = os.stat(path).st_size
    return payload, size


def register_artifact(
    session: ServerSession,
    payload: bytes,
    size: int,
    metadata: ArtifactMetadata,
) -> str:
    """Register `payload` on the server and return its identifier.

    Raises `ValidationError` before any network call when `size` disagrees
    with the payload or the metadata is incomplete. Transport failures during
    description or upload surface as `UploadError`.
    """
    fields = DescriptorBuilder.build_data_fields(new_uid(), payload, size, metadata)
    uid = session.register_data(payload, size, fields)
    logger.debug("artifact %s registered (md5=%s)", uid, fields["md5"])
    return uid
