from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from offchainsubmit.artifacts import read_artifact, register_artifact
from offchainsubmit.errors import ValidationError
from offchainsubmit.models import ArtifactMetadata


def test_register_artifact_sends_digest_size_and_metadata(fake_session) -> None:  # noqa: ANN001
    payload = b"\x7fELF binary"
    metadata = ArtifactMetadata(type="binary", os="linux", cpu="amd64", extra={"accessrights": "0x755"})

    uid = register_artifact(fake_session, payload, len(payload), metadata)

    [(sent_payload, size, fields)] = fake_session.calls_named("register_data")
    assert sent_payload == payload
    assert size == len(payload)
    assert fields["uid"] == uid
    assert fields["md5"] == hashlib.md5(payload).hexdigest()
    assert fields["type"] == "BINARY"
    assert fields["os"] == "LINUX"
    assert fields["cpu"] == "AMD64"
    assert fields["accessrights"] == "0x755"


def test_register_artifact_rejects_size_mismatch(fake_session) -> None:  # noqa: ANN001
    with pytest.raises(ValidationError, match="size mismatch"):
        register_artifact(fake_session, b"abc", 4, ArtifactMetadata(type="TEXT"))
    assert fake_session.calls == []


def test_register_artifact_requires_platform_for_binaries(fake_session) -> None:  # noqa: ANN001
    with pytest.raises(ValidationError, match="os and cpu"):
        register_artifact(fake_session, b"abc", 3, ArtifactMetadata(type="BINARY", os="LINUX"))
    assert fake_session.calls == []


def test_register_artifact_allows_untyped_data(fake_session) -> None:  # noqa: ANN001
    uid = register_artifact(fake_session, b"", 0, ArtifactMetadata())
    assert fake_session.blobs[uid] == b""


def test_read_artifact_returns_bytes_and_size(tmp_path: Path) -> None:
    path = tmp_path / "input.zip"
    path.write_bytes(b"0123456789")
    payload, size = read_artifact(str(path))
    assert payload == b"0123456789"
    assert size == 10


def test_read_artifact_missing_file_raises_oserror(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        read_artifact(str(tmp_path / "missing.bin"))
