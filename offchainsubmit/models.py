from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .errors import ValidationError


class WorkStatus(str, Enum):
    """Work statuses reported by the server."""

    NONE = "NONE"
    UNAVAILABLE = "UNAVAILABLE"
    SUBMITTED = "SUBMITTED"
    PENDING = "PENDING"
    WAITING = "WAITING"
    DATAREQUEST = "DATAREQUEST"
    RUNNING = "RUNNING"
    RESULTREQUEST = "RESULTREQUEST"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"
    ABORTED = "ABORTED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"
    LOST = "LOST"


FAILURE_STATUSES = frozenset(
    {
        WorkStatus.ERROR.value,
        WorkStatus.ABORTED.value,
        WorkStatus.CANCELLED.value,
        WorkStatus.FAILED.value,
        WorkStatus.LOST.value,
    }
)
TERMINAL_STATUSES = FAILURE_STATUSES | {WorkStatus.COMPLETED.value}


def is_terminal_status(status: str | None) -> bool:
    return bool(status) and str(status).upper() in TERMINAL_STATUSES


@dataclass
class ArtifactMetadata:
    """Metadata record sent alongside a registered blob."""

    type: str | None = None
    os: str | None = None
    cpu: str | None = None
    name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "ArtifactMetadata":
        values = dict(values or {})
        return cls(
            type=values.pop("type", None),
            os=values.pop("os", None),
            cpu=values.pop("cpu", None),
            name=values.pop("name", None),
            extra=values,
        )

    @property
    def is_binary(self) -> bool:
        return str(self.type or "").upper() == "BINARY"


@dataclass(frozen=True)
class BinaryReference:
    """Descriptor key and address pointing at an uploaded app binary."""

    field_name: str
    address: str


@dataclass
class ApplicationDescriptor:
    """Application record registered on the server.

    `name` holds the bound contract address; `binary` is only set when the
    application type needs an uploaded executable.
    """

    name: str
    metadata: dict[str, Any] = field(default_factory=dict)
    binary: BinaryReference | None = None

    def to_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = dict(self.metadata)
        if self.binary is not None:
            fields[self.binary.field_name] = self.binary.address
        fields["name"] = self.name
        return fields


@dataclass
class DeployRequest:
    """Typed input for an application deployment."""

    app_name: str
    app_metadata: dict[str, Any] = field(default_factory=dict)
    binary_path: str | None = None
    binary_metadata: ArtifactMetadata | None = None

    def __post_init__(self) -> None:
        if not self.app_name or not self.app_name.strip():
            raise ValidationError("app_name must be a non-empty string")

    @property
    def is_container_image(self) -> bool:
        return str(self.app_metadata.get("type", "")).upper() == "DOCKER"


@dataclass
class Work:
    """Snapshot of a unit of work as last reported by the server."""

    uid: str
    status: str
    app_uid: str | None = None
    result_uri: str | None = None
    record: dict[str, Any] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.status.upper() == WorkStatus.COMPLETED.value

    @property
    def is_failed(self) -> bool:
        return self.status.upper() in FAILURE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return is_terminal_status(self.status)


@dataclass(frozen=True)
class ResultDescriptor:
    """Stored result resolved from a result address."""

    uid: str
    address: str
    content_type: str
