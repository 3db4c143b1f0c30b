from __future__ import annotations

"""High-level client implementation.

`OffchainSubmitClient` exposes one method per top-level operation (deploy,
upload, submit, fetch result, version, generic invoke). Each method resolves
its configuration, opens a fresh authenticated session, runs the lifecycle
components, and closes the session again. No state is shared between calls.
"""

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterator, Sequence, Union

from .artifacts import read_artifact, register_artifact
from .auth import DEFAULT_ACCOUNT_PATH, Credential, load_credential
from .config import (
    DEFAULT_CHAINS_PATH,
    DEFAULT_CONTRACTS_DIR,
    DEFAULT_PROJECT_PATH,
    ChainEndpoint,
    ContractBindingStore,
    ProjectConfig,
    load_chain_registry,
    load_project_config,
)
from .deploy import deploy_application
from .errors import OffchainSubmitError, ValidationError
from .invoker import invoke_generic
from .models import FAILURE_STATUSES, DeployRequest, WorkStatus
from .results import download_result, resolve_result, result_path
from .session import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    ServerSession,
    establish_session,
)
from .work import await_completion, fetch_status, result_address, submit_work

logger = logging.getLogger(__name__)

SessionFactory = Callable[[ChainEndpoint, Credential], ServerSession]
SaveOption = Union[bool, str]


@dataclass
class DeployResult:
    """Outcome of a successful application deployment."""

    app_uid: str
    contract_address: str
    chain: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class UploadResult:
    """Identifier and shareable address of an uploaded data artifact."""

    data_uid: str
    data_uri: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SubmitResult:
    work_uid: str
    app_uid: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FetchResult:
    """Status of a work item and, when completed, its result location."""

    work_uid: str
    status: str
    result_uri: str | None = None
    content_type: str | None = None
    path: str | None = None
    bytes_written: int | None = None

    @property
    def completed(self) -> bool:
        return self.status == WorkStatus.COMPLETED.value

    @property
    def failed(self) -> bool:
        return self.status in FAILURE_STATUSES

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["completed"] = self.completed
        payload["failed"] = self.failed
        return payload


@contextmanager
def _operation(name: str) -> Iterator[None]:
    """Tag package failures raised inside the block with operation `name`."""
    try:
        yield
    except OffchainSubmitError as exc:
        if exc.operation is None:
            exc.operation = name
        logger.debug("%s failed: %s", name, exc)
        raise


class OffchainSubmitClient:
    """Client for the off-chain work server."""

    def __init__(
        self,
        *,
        chains_path: str = DEFAULT_CHAINS_PATH,
        project_path: str = DEFAULT_PROJECT_PATH,
        account_path: str = DEFAULT_ACCOUNT_PATH,
        contracts_dir: str = DEFAULT_CONTRACTS_DIR,
        workdir: str | None = None,
        jwtoken: str | None = None,
        server: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        session_factory: SessionFactory | None = None,
    ) -> None:
        """Initialize a client with optional config/auth overrides.

        Relative config paths resolve against `workdir` (default: the current
        directory at call time). `server` overrides the chain table's server
        for every chain. `session_factory` replaces `establish_session`, which
        is how tests inject fake servers.
        """
        self.chains_path = chains_path
        self.project_path = project_path
        self.account_path = account_path
        self.contracts_dir = contracts_dir
        self.workdir = workdir
        self.jwtoken = jwtoken
        self.server_override = server
        self.request_timeout = request_timeout
        self.poll_interval = poll_interval
        self.session_factory = session_factory

    def _workdir(self) -> str:
        return self.workdir or os.getcwd()

    def _path(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.join(self._workdir(), path)

    def _load_project(self) -> ProjectConfig:
        return load_project_config(self._path(self.project_path))

    def _resolve_chain(self, chain_name: str | None) -> ChainEndpoint:
        endpoint = load_chain_registry(self._path(self.chains_path)).resolve(chain_name)
        if self.server_override:
            endpoint = ChainEndpoint(
                name=endpoint.name,
                server=self.server_override,
                network_id=endpoint.network_id,
                address_scheme=endpoint.address_scheme,
            )
        logger.debug("chain %s -> server %s", endpoint.name, endpoint.server)
        return endpoint

    def _load_credential(self) -> Credential:
        return load_credential(jwtoken=self.jwtoken, account_path=self._path(self.account_path))

    def _open_session(self, endpoint: ChainEndpoint) -> ServerSession:
        """Open a fresh session; sessions are never reused across operations."""
        credential = self._load_credential()
        if self.session_factory is not None:
            return self.session_factory(endpoint, credential)
        return establish_session(
            endpoint.server,
            credential,
            timeout=self.request_timeout,
            address_scheme=endpoint.address_scheme,
            poll_interval=self.poll_interval,
        )

    def deploy_application(
        self, chain_name: str | None = None, app_name: str | None = None
    ) -> DeployResult:
        """Deploy the project's application bound to the chain's contract.

        The contract binding is checked before any session is opened, so a
        missing migration never reaches the server.
        """
        with _operation("deploy"):
            project = self._load_project()
            endpoint = self._resolve_chain(chain_name)
            name = app_name or project.name
            if not name:
                raise ValidationError("app name is required (pass app_name or set name in project file)")

            bindings = ContractBindingStore(self._path(project.contract_path(self.contracts_dir, name)))
            contract_address = bindings.contract_address(endpoint.network_id, endpoint.name)
            logger.debug("contract address for %s: %s", endpoint.name, contract_address)

            request = DeployRequest(
                app_name=name,
                app_metadata=dict(project.app),
                binary_path=os.path.join(self._workdir(), "apps", name),
                binary_metadata=project.data_metadata(),
            )
            with self._open_session(endpoint) as session:
                app_uid = deploy_application(session, request, contract_address)

        logger.info(
            "app %s deployed; only callable through %s dapp at %s",
            app_uid,
            endpoint.name,
            contract_address,
        )
        return DeployResult(app_uid=app_uid, contract_address=contract_address, chain=endpoint.name)

    def upload_data(self, chain_name: str | None, data_path: str) -> UploadResult:
        """Upload a local data file and return its identifier and address."""
        with _operation("upload"):
            project = self._load_project()
            endpoint = self._resolve_chain(chain_name)
            payload, size = read_artifact(self._path(data_path))
            with self._open_session(endpoint) as session:
                data_uid = register_artifact(session, payload, size, project.data_metadata())
                data_uri = session.codec.encode(data_uid)
        logger.info("data uploaded, available at %s", data_uri)
        return UploadResult(data_uid=data_uid, data_uri=data_uri)

    def submit_work(self, chain_name: str | None, app_uid: str) -> SubmitResult:
        """Submit work to a deployed app using the project's work parameters."""
        with _operation("submit"):
            project = self._load_project()
            endpoint = self._resolve_chain(chain_name)
            with self._open_session(endpoint) as session:
                work_uid = submit_work(session, app_uid, project.work)
        logger.info("work %s submitted to app %s", work_uid, app_uid)
        return SubmitResult(work_uid=work_uid, app_uid=app_uid)

    def fetch_result(
        self,
        work_uid: str,
        chain_name: str | None = None,
        *,
        save: SaveOption = False,
        watch: bool = False,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FetchResult:
        """Fetch a work result, optionally waiting for it and saving it.

        `save=False` only reports the result address; `save=True` writes
        `<work_uid>.<type>`; a string writes `<save>.<type>`. Work that is not
        COMPLETED (still running, or failed) is reported through `status`
        without downloading anything.
        """
        with _operation("result"):
            if not work_uid:
                raise ValidationError("work uid is required")
            endpoint = self._resolve_chain(chain_name)
            with self._open_session(endpoint) as session:
                if watch:
                    work = await_completion(session, work_uid, timeout=timeout, cancel_event=cancel_event)
                else:
                    work = fetch_status(session, work_uid)
                if not work.is_completed:
                    logger.info("work %s is %s", work_uid, work.status)
                    return FetchResult(work_uid=work_uid, status=work.status)

                fetched = FetchResult(
                    work_uid=work_uid, status=work.status, result_uri=result_address(work)
                )
                if save:
                    descriptor = resolve_result(session, fetched.result_uri)
                    file_name = work_uid if save is True else str(save)
                    path = result_path(self._workdir(), file_name, descriptor.content_type)
                    sink = open(path, "wb")
                    fetched.bytes_written = download_result(session, descriptor.uid, sink)
                    fetched.content_type = descriptor.content_type
                    fetched.path = str(path)
                    logger.info("saved result to file %s", path)
        return fetched

    def fetch_version(self, chain_name: str | None = None) -> str:
        """Return the server version string."""
        with _operation("version"):
            endpoint = self._resolve_chain(chain_name)
            with self._open_session(endpoint) as session:
                return session.version()

    def invoke_generic(
        self, chain_name: str | None, operation: str, args: Sequence[str] = ()
    ) -> Any:
        """Call any named session operation; see `invoker.invoke_generic`."""
        with _operation("api"):
            endpoint = self._resolve_chain(chain_name)
            logger.debug("calling %s(%s)", operation, ", ".join(args))
            with self._open_session(endpoint) as session:
                return invoke_generic(session, operation, list(args))
