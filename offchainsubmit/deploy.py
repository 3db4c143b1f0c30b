from __future__ import annotations

"""Application deployment bound to an on-chain contract address."""

import logging

from .addressing import binary_field_name
from .artifacts import read_artifact, register_artifact
from .builder import DescriptorBuilder, new_uid
from .errors import MissingBindingError, NameCollisionError, ValidationError
from .models import ApplicationDescriptor, BinaryReference, DeployRequest
from .session import ServerSession
from .wire import ROOT_TAG

logger = logging.getLogger(__name__)


def _upload_binary(session: ServerSession, request: DeployRequest) -> BinaryReference:
    """Upload the app executable and return the descriptor reference to it."""
    if not request.binary_path:
        raise ValidationError(f"app {request.app_name} needs a binary path")
    metadata = request.binary_metadata
    if metadata is None:
        raise ValidationError(f"app {request.app_name} needs binary metadata (os, cpu)")
    # Resolve before uploading so an unsupported platform never transfers bytes.
    field_name = binary_field_name(metadata.os, metadata.cpu)
    payload, size = read_artifact(request.binary_path)
    uid = register_artifact(session, payload, size, metadata)
    return BinaryReference(field_name=field_name, address=session.codec.encode(uid))


def deploy_application(
    session: ServerSession,
    request: DeployRequest,
    contract_address: str,
) -> str:
    """Register an application on the server and return its identifier.

    Container-image apps skip the binary upload entirely. The descriptor
    `name` is always the contract address, overriding any user-supplied name.
    A registration that does not yield an `app` record means the name already
    exists; that raises `NameCollisionError`, which must not be retried.
    """
    if not contract_address:
        raise MissingBindingError(
            f"no contract address bound for app {request.app_name}; migrate before deploying"
        )

    binary = None
    if request.is_container_image:
        logger.debug("app %s is a container image; skipping binary upload", request.app_name)
    else:
        binary = _upload_binary(session, request)

    descriptor = ApplicationDescriptor(
        name=contract_address,
        metadata=dict(request.app_metadata),
        binary=binary,
    )
    fields = DescriptorBuilder.build_app_fields(new_uid(), descriptor)
    logger.debug("app descriptor: %s", fields)
    app_uid = session.register_app(fields)

    record = session.get_by_uid(app_uid)
    if "app" not in (record.get(ROOT_TAG) or {}):
        raise NameCollisionError(
            f"app name {descriptor.name} already exists on the server; "
            "change the name before re-deploying",
            operation="deploy",
            uid=app_uid,
        )
    return app_uid
