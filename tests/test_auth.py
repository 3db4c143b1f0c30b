from __future__ import annotations

import json
from pathlib import Path

import pytest

from offchainsubmit.auth import Credential, load_credential
from offchainsubmit.errors import AuthError, NoCredentialError


def test_explicit_token_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    account = tmp_path / "account.json"
    account.write_text(json.dumps({"jwtoken": "from-file"}), encoding="utf-8")
    monkeypatch.setenv("OFFCHAINSUBMIT_JWTOKEN", "from-env")
    assert load_credential(jwtoken="explicit", account_path=str(account)).jwtoken == "explicit"


def test_env_token_precedes_account_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    account = tmp_path / "account.json"
    account.write_text(json.dumps({"jwtoken": "from-file"}), encoding="utf-8")
    monkeypatch.setenv("OFFCHAINSUBMIT_JWTOKEN", "from-env")
    assert load_credential(account_path=str(account)).jwtoken == "from-env"


def test_account_file_token(tmp_path: Path) -> None:
    account = tmp_path / "account.json"
    account.write_text(json.dumps({"jwtoken": "from-file"}), encoding="utf-8")
    assert load_credential(account_path=str(account)).jwtoken == "from-file"


def test_missing_credential_raises(tmp_path: Path) -> None:
    with pytest.raises(NoCredentialError) as excinfo:
        load_credential(account_path=str(tmp_path / "account.json"))
    assert isinstance(excinfo.value, AuthError)


def test_invalid_account_file_raises(tmp_path: Path) -> None:
    account = tmp_path / "account.json"
    account.write_text("not json", encoding="utf-8")
    with pytest.raises(NoCredentialError):
        load_credential(account_path=str(account))


def test_credential_repr_hides_token() -> None:
    credential = Credential("secret-token")
    assert "secret-token" not in repr(credential)


def test_empty_credential_rejected() -> None:
    with pytest.raises(NoCredentialError):
        Credential("  ")
