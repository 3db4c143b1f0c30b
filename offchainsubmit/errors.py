from __future__ import annotations

"""Error taxonomy shared by every offchainsubmit component.

All failures raised by this package derive from `OffchainSubmitError` and
carry optional `operation`/`uid` context so a caller can report what failed
without re-running anything.
"""


class OffchainSubmitError(RuntimeError):
    """Base class for failures raised by the off-chain submit client."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        uid: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.uid = uid

    def __str__(self) -> str:
        text = self.message
        if self.uid and self.uid not in text:
            text = f"{text} (uid={self.uid})"
        if self.operation:
            text = f"{self.operation}: {text}"
        return text


class AuthError(OffchainSubmitError):
    """Raised when the server rejects a credential or session exchange."""


class NoCredentialError(AuthError):
    """Raised when no credential can be found in the local store."""


class ValidationError(OffchainSubmitError, ValueError):
    """Raised for malformed local input (sizes, metadata, identifiers)."""


class UnsupportedPlatformError(ValidationError):
    """Raised when an (os, cpu) pair has no binary field on the server."""


class MalformedAddressError(ValidationError):
    """Raised when an address does not match the codec grammar."""


class RemoteError(OffchainSubmitError):
    """Raised when the server or transport reports a failure."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        uid: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, operation=operation, uid=uid)
        self.status_code = status_code


class UploadError(RemoteError):
    """Raised when registering or uploading an artifact fails in transit."""


class SubmissionError(RemoteError):
    """Raised when a work submission is rejected."""


class NotFoundError(RemoteError):
    """Raised when the server holds no record for an identifier."""


class NameCollisionError(OffchainSubmitError):
    """Raised when an application name already exists on the server.

    Deterministic: re-deploying with the same name collides again.
    """


class MissingBindingError(OffchainSubmitError):
    """Raised when no on-chain contract address is bound for the network."""


class UnknownChainError(OffchainSubmitError):
    """Raised when a chain name is absent from the chain registry."""


class NotCompletedError(OffchainSubmitError):
    """Raised when a result is requested from work that is not COMPLETED."""


class WaitTimeoutError(OffchainSubmitError, TimeoutError):
    """Raised when a blocking wait exceeds the caller-supplied timeout."""


class WaitCancelledError(OffchainSubmitError):
    """Raised when a blocking wait is cancelled through its event hook."""
