from __future__ import annotations

"""Configuration loading for chains, contract bindings, and the project file.

Every loader returns a plain value object. Nothing here is cached at module
level, so callers thread configuration explicitly into each operation.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any

from .errors import MissingBindingError, UnknownChainError, ValidationError
from .models import ArtifactMetadata

DEFAULT_CHAINS_PATH = "chains.json"
DEFAULT_PROJECT_PATH = "offchain.json"
DEFAULT_CONTRACTS_DIR = os.path.join("build", "contracts")
SERVER_ENV_VAR = "OFFCHAINSUBMIT_SERVER"


def _read_json(path: str) -> Any:
    """Load JSON from `path`, or None when the file does not exist."""
    if not path or not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as fp:
        try:
            return json.load(fp)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"{path} is not valid JSON: {exc}") from exc


@dataclass(frozen=True)
class ChainEndpoint:
    """Work server endpoint and network id resolved for one chain."""

    name: str
    server: str
    network_id: str
    address_scheme: str = "xw"


@dataclass
class ChainRegistry:
    """Chain table loaded from chains.json."""

    chains: dict[str, dict[str, Any]] = field(default_factory=dict)
    default: str | None = None

    @property
    def default_chain(self) -> str | None:
        if self.default:
            return self.default
        if len(self.chains) == 1:
            return next(iter(self.chains))
        return None

    def resolve(self, chain_name: str | None) -> ChainEndpoint:
        name = chain_name or self.default_chain
        if not name or name not in self.chains:
            raise UnknownChainError(f"unknown chain {name!r}; known chains: {sorted(self.chains)}")
        entry = self.chains[name]
        # Legacy behavior allows forcing the server via env.
        server = os.environ.get(SERVER_ENV_VAR) or entry.get("server")
        if not server:
            raise UnknownChainError(f"chain {name!r} has no server configured")
        return ChainEndpoint(
            name=name,
            server=str(server),
            network_id=str(entry.get("id", "")),
            address_scheme=str(entry.get("scheme", "xw")),
        )


def load_chain_registry(path: str = DEFAULT_CHAINS_PATH) -> ChainRegistry:
    """
    Parse the chain table from disk.

    Unknown keys are ignored; a missing file yields an empty registry that
    fails on the first `resolve`.
    """
    payload = _read_json(path)
    if payload is None:
        return ChainRegistry()
    if not isinstance(payload, dict):
        raise ValidationError(f"{path} must contain a JSON object")
    chains = payload.get("chains") or {}
    if not isinstance(chains, dict):
        raise ValidationError(f"{path}: 'chains' must be an object")
    return ChainRegistry(
        chains={str(name): dict(entry or {}) for name, entry in chains.items()},
        default=payload.get("default"),
    )


class ContractBindingStore:
    """Reads on-chain deployment records from a compiled contract descriptor."""

    def __init__(self, path: str) -> None:
        self.path = path

    def load_networks(self) -> dict[str, dict[str, Any]]:
        payload = _read_json(self.path)
        if not isinstance(payload, dict):
            return {}
        networks = payload.get("networks") or {}
        if not isinstance(networks, dict):
            return {}
        return {str(network_id): dict(entry or {}) for network_id, entry in networks.items()}

    def contract_address(self, network_id: str, chain_name: str | None = None) -> str:
        networks = self.load_networks()
        address = (networks.get(str(network_id)) or {}).get("address")
        if not address:
            label = chain_name or network_id
            raise MissingBindingError(
                f"missing dapp address for {label}; migrate the contract before deploying the app"
            )
        return str(address)


@dataclass
class ProjectConfig:
    """Project settings: app name plus app, data, and work descriptions."""

    name: str | None = None
    app: dict[str, Any] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict)
    work: dict[str, Any] = field(default_factory=dict)

    def data_metadata(self) -> ArtifactMetadata:
        return ArtifactMetadata.from_mapping(self.data)

    def contract_path(self, contracts_dir: str = DEFAULT_CONTRACTS_DIR, name: str | None = None) -> str:
        """Compiled contract descriptor for `name`, defaulting to the project name."""
        name = name or self.name
        if not name:
            raise ValidationError("project name is required to locate the contract descriptor")
        return os.path.join(contracts_dir, f"{name}.json")


def load_project_config(path: str = DEFAULT_PROJECT_PATH) -> ProjectConfig:
    """Parse the project file; a missing file yields defaults."""
    payload = _read_json(path)
    if payload is None:
        return ProjectConfig()
    if not isinstance(payload, dict):
        raise ValidationError(f"{path} must contain a JSON object")

    def _section(key: str) -> dict[str, Any]:
        value = payload.get(key) or {}
        if not isinstance(value, dict):
            raise ValidationError(f"{path}: '{key}' must be an object")
        return dict(value)

    return ProjectConfig(
        name=payload.get("name"),
        app=_section("app"),
        data=_section("data"),
        work=_section("work"),
    )
