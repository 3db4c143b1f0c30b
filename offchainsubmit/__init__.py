"""Client for an off-chain compute/work server."""

from .addressing import AddressCodec, XWAddressCodec, binary_field_name, make_address_codec
from .artifacts import read_artifact, register_artifact
from .auth import Credential, load_credential
from .client import (
    DeployResult,
    FetchResult,
    OffchainSubmitClient,
    SubmitResult,
    UploadResult,
)
from .config import (
    ChainEndpoint,
    ChainRegistry,
    ContractBindingStore,
    ProjectConfig,
    load_chain_registry,
    load_project_config,
)
from .deploy import deploy_application
from .errors import (
    AuthError,
    MalformedAddressError,
    MissingBindingError,
    NameCollisionError,
    NoCredentialError,
    NotCompletedError,
    NotFoundError,
    OffchainSubmitError,
    RemoteError,
    SubmissionError,
    UnknownChainError,
    UnsupportedPlatformError,
    UploadError,
    ValidationError,
    WaitCancelledError,
    WaitTimeoutError,
)
from .invoker import invoke_generic
from .models import (
    ApplicationDescriptor,
    ArtifactMetadata,
    BinaryReference,
    DeployRequest,
    ResultDescriptor,
    Work,
    WorkStatus,
)
from .results import download_result, resolve_result, result_path
from .session import ServerSession, establish_session
from .work import await_completion, fetch_status, result_address, submit_work

__all__ = [
    "AddressCodec",
    "XWAddressCodec",
    "binary_field_name",
    "make_address_codec",
    "read_artifact",
    "register_artifact",
    "Credential",
    "load_credential",
    "DeployResult",
    "FetchResult",
    "OffchainSubmitClient",
    "SubmitResult",
    "UploadResult",
    "ChainEndpoint",
    "ChainRegistry",
    "ContractBindingStore",
    "ProjectConfig",
    "load_chain_registry",
    "load_project_config",
    "deploy_application",
    "AuthError",
    "MalformedAddressError",
    "MissingBindingError",
    "NameCollisionError",
    "NoCredentialError",
    "NotCompletedError",
    "NotFoundError",
    "OffchainSubmitError",
    "RemoteError",
    "SubmissionError",
    "UnknownChainError",
    "UnsupportedPlatformError",
    "UploadError",
    "ValidationError",
    "WaitCancelledError",
    "WaitTimeoutError",
    "invoke_generic",
    "ApplicationDescriptor",
    "ArtifactMetadata",
    "BinaryReference",
    "DeployRequest",
    "ResultDescriptor",
    "Work",
    "WorkStatus",
    "download_result",
    "resolve_result",
    "result_path",
    "ServerSession",
    "establish_session",
    "await_completion",
    "fetch_status",
    "result_address",
    "submit_work",
]
