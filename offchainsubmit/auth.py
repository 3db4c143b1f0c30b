from __future__ import annotations

"""Credential discovery for server sessions.

The bearer token is resolved from explicit arguments, the environment, or a
local account file. It is only held in memory for one operation and is never
written back by this package.
"""

import json
import os
from dataclasses import dataclass, field

from .errors import NoCredentialError

DEFAULT_ACCOUNT_PATH = "account.json"
TOKEN_ENV_VAR = "OFFCHAINSUBMIT_JWTOKEN"


@dataclass(frozen=True)
class Credential:
    """Opaque bearer token exchanged for a server session."""

    jwtoken: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.jwtoken or not self.jwtoken.strip():
            raise NoCredentialError("credential token is empty")


def _read_account_file(path: str) -> dict[str, str]:
    """Read the account JSON file, returning an empty mapping when absent."""
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as fp:
        try:
            payload = json.load(fp)
        except json.JSONDecodeError as exc:
            raise NoCredentialError(f"account file {path} is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise NoCredentialError(f"account file {path} must contain a JSON object")
    return {str(key): str(value) for key, value in payload.items() if value is not None}


def load_credential(
    *,
    jwtoken: str | None = None,
    account_path: str = DEFAULT_ACCOUNT_PATH,
) -> Credential:
    """Resolve the session credential from args, env vars, and the account file."""
    resolved = jwtoken or os.environ.get(TOKEN_ENV_VAR)
    if not resolved:
        resolved = _read_account_file(account_path).get("jwtoken")
    if not resolved:
        raise NoCredentialError(
            f"no credential found; pass a token, set {TOKEN_ENV_VAR}, or create {account_path}"
        )
    return Credential(jwtoken=resolved)
