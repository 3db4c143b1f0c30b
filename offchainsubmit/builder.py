from __future__ import annotations

"""Field builders translating typed models into server descriptions."""

import hashlib
import uuid
from collections.abc import Mapping
from typing import Any

from .errors import ValidationError
from .models import ApplicationDescriptor, ArtifactMetadata, WorkStatus


def new_uid() -> str:
    """Generate a client-side identifier for a new server record."""
    return str(uuid.uuid4())


def _merge_extra(fields: dict[str, Any], extra: Mapping[str, Any]) -> None:
    """Copy user-supplied keys without clobbering computed ones."""
    for key, value in extra.items():
        if key not in fields:
            fields[key] = value


class DescriptorBuilder:
    @staticmethod
    def validate_artifact(payload: bytes, size: int, metadata: ArtifactMetadata) -> None:
        if size < 0:
            raise ValidationError("artifact size cannot be negative")
        if size != len(payload):
            raise ValidationError(
                f"artifact size mismatch: declared {size}, payload has {len(payload)} bytes"
            )
        if metadata.is_binary and not (metadata.os and metadata.cpu):
            raise ValidationError("BINARY artifacts require both os and cpu metadata")

    @staticmethod
    def build_data_fields(
        uid: str, payload: bytes, size: int, metadata: ArtifactMetadata
    ) -> dict[str, Any]:
        DescriptorBuilder.validate_artifact(payload, size, metadata)
        fields: dict[str, Any] = {
            "uid": uid,
            "size": size,
            "md5": hashlib.md5(payload).hexdigest(),
        }
        if metadata.name:
            fields["name"] = metadata.name
        if metadata.type:
            fields["type"] = str(metadata.type).upper()
        if metadata.os:
            fields["os"] = str(metadata.os).upper()
        if metadata.cpu:
            fields["cpu"] = str(metadata.cpu).upper()
        _merge_extra(fields, metadata.extra)
        return fields

    @staticmethod
    def build_app_fields(uid: str, descriptor: ApplicationDescriptor) -> dict[str, Any]:
        fields: dict[str, Any] = {"uid": uid}
        fields.update(descriptor.to_fields())
        fields["uid"] = uid
        return fields

    @staticmethod
    def build_work_fields(
        uid: str, app_uid: str, parameters: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {"uid": uid, "appuid": app_uid}
        _merge_extra(fields, parameters or {})
        fields["status"] = WorkStatus.PENDING.value
        return fields
