from __future__ import annotations

from typing import Any, Sequence

from .session import ServerSession


def invoke_generic(session: ServerSession, operation: str, args: Sequence[str]) -> Any:
    """Invoke a named session operation with positional string arguments.

    This is the unsafe escape hatch for server operations that have no typed
    wrapper. Neither the operation name nor the argument count or types are
    checked here. Whatever `RemoteError` the session raises for an unknown
    operation or bad arguments propagates unchanged, and the raw decoded
    result is returned as-is.
    """
    return session.call(operation, *args)
