"""One-time creation of the files container and its access policies.

Policies scope every operation to keys whose first path segment equals the
authenticated user id, matching the users/{user_id}/files/ key scheme.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from codepad.storage.errors import ContainerExistsError, ObjectStorageError
from codepad.storage.object_store import DEFAULT_FILE_SIZE_LIMIT, ObjectStore

logger = logging.getLogger(__name__)

OWNER_FOLDER_DEFINITION = "((storage.foldername(name))[1] = auth.uid()::text)"


@dataclass(frozen=True)
class AccessPolicy:
    """A row-level access policy on the files container."""

    name: str
    operation: str
    definition: str = OWNER_FOLDER_DEFINITION


DEFAULT_POLICIES: tuple[AccessPolicy, ...] = (
    AccessPolicy(name="User files access", operation="SELECT"),
    AccessPolicy(name="User files insert", operation="INSERT"),
    AccessPolicy(name="User files update", operation="UPDATE"),
    AccessPolicy(name="User files delete", operation="DELETE"),
)


class BootstrapStatus(str, Enum):
    """Outcome of create_storage_area."""

    CREATED = "created"
    ALREADY_EXISTED = "already_existed"


@dataclass
class BootstrapResult:
    """Result of provisioning the files container."""

    status: BootstrapStatus
    container: str
    policies_created: list[str] = field(default_factory=list)
    policies_failed: list[str] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.status is BootstrapStatus.CREATED


def create_storage_area(
    store: ObjectStore,
    *,
    file_size_limit: int = DEFAULT_FILE_SIZE_LIMIT,
    policies: tuple[AccessPolicy, ...] = DEFAULT_POLICIES,
) -> BootstrapResult:
    """Create the private files container and its owner-only policies.

    Safe to call repeatedly: if the container already exists, nothing else
    is touched and the result status is ALREADY_EXISTED. A policy that fails
    to apply is logged and reported in policies_failed; the remaining
    policies are still attempted.

    Args:
        store: Object store bound to the container to provision.
        file_size_limit: Per-object size cap in bytes.
        policies: Policies to create after the container.

    Returns:
        BootstrapResult describing what was done.

    Raises:
        StorageBackendError: If container creation fails for any reason other
            than the container already existing.
    """
    try:
        store.create_container(public=False, file_size_limit=file_size_limit)
    except ContainerExistsError:
        logger.info("Container %s already exists; skipping policy setup", store.container)
        return BootstrapResult(status=BootstrapStatus.ALREADY_EXISTED, container=store.container)

    result = BootstrapResult(status=BootstrapStatus.CREATED, container=store.container)
    for policy in policies:
        try:
            store.create_policy(
                policy.name,
                definition=policy.definition,
                operation=policy.operation,
            )
        except ObjectStorageError as e:
            logger.error("Failed to create policy %r: %s", policy.name, e)
            result.policies_failed.append(policy.name)
            continue
        result.policies_created.append(policy.name)

    logger.info(
        "Created container %s with %d policies (%d failed)",
        store.container,
        len(result.policies_created),
        len(result.policies_failed),
    )
    return result
