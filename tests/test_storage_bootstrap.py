"""Tests for create_storage_area."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from codepad.files.bootstrap import (
    DEFAULT_POLICIES,
    OWNER_FOLDER_DEFINITION,
    AccessPolicy,
    BootstrapStatus,
    create_storage_area,
)
from codepad.storage.errors import StorageBackendError
from codepad.storage.filesystem_store import FilesystemObjectStore


class PolicyRejectingStore(FilesystemObjectStore):
    """Filesystem store that refuses to create selected policies."""

    def __init__(self, base_dir: Path, rejected: set[str]) -> None:
        super().__init__(base_dir=base_dir)
        self.rejected = rejected

    def create_policy(self, name: str, *, definition: str, operation: str) -> None:
        if name in self.rejected:
            raise StorageBackendError(message="policy rejected", container=self.container)
        super().create_policy(name, definition=definition, operation=operation)


@pytest.fixture
def store(tmp_path: Path) -> FilesystemObjectStore:
    return FilesystemObjectStore(base_dir=tmp_path)


class TestCreateStorageArea:
    def test_first_call_creates_container_and_policies(
        self, store: FilesystemObjectStore
    ) -> None:
        result = create_storage_area(store)

        assert result.status is BootstrapStatus.CREATED
        assert result.created
        assert result.container == "code-editor"
        assert result.policies_created == [p.name for p in DEFAULT_POLICIES]
        assert result.policies_failed == []

    def test_policies_cover_every_operation(self, store: FilesystemObjectStore) -> None:
        create_storage_area(store)

        policies = store.list_policies()

        assert {p["operation"] for p in policies.values()} == {
            "SELECT",
            "INSERT",
            "UPDATE",
            "DELETE",
        }
        assert all(p["definition"] == OWNER_FOLDER_DEFINITION for p in policies.values())

    def test_second_call_reports_already_existed(self, store: FilesystemObjectStore) -> None:
        create_storage_area(store)

        result = create_storage_area(store)

        assert result.status is BootstrapStatus.ALREADY_EXISTED
        assert not result.created
        assert result.policies_created == []
        assert len(store.list_policies()) == len(DEFAULT_POLICIES)

    def test_size_limit_applied(self, store: FilesystemObjectStore) -> None:
        create_storage_area(store, file_size_limit=16)

        store.put("users/u1/files/ok", b"x" * 16)
        with pytest.raises(StorageBackendError):
            store.put("users/u1/files/big", b"x" * 17)

    def test_failing_policy_does_not_stop_the_rest(self, tmp_path: Path) -> None:
        store = PolicyRejectingStore(tmp_path, rejected={"User files insert"})

        result = create_storage_area(store)

        assert result.created
        assert result.policies_failed == ["User files insert"]
        assert result.policies_created == [
            "User files access",
            "User files update",
            "User files delete",
        ]

    def test_custom_policies(self, store: FilesystemObjectStore) -> None:
        result = create_storage_area(
            store, policies=(AccessPolicy(name="read all", operation="SELECT", definition="true"),)
        )

        assert result.policies_created == ["read all"]
        assert store.list_policies() == {"read all": {"definition": "true", "operation": "SELECT"}}

    def test_container_creation_failure_propagates(self) -> None:
        class FailingStore:
            container = "code-editor"

            def create_container(self, **kwargs: Any) -> None:
                raise StorageBackendError(message="forbidden", container=self.container)

        with pytest.raises(StorageBackendError, match="forbidden"):
            create_storage_area(FailingStore())  # type: ignore[arg-type]
