"""Backup and restore item actions built on filter sessions."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from resfilter.application.session import FilterSession
from resfilter.config import FilterConfig
from resfilter.domain.errors import MetadataAccessError
from resfilter.domain.models import Decision, NamespaceMapping, ResourceDescriptor
from resfilter.infrastructure.configmap_fetcher import (
    ConfigFetcher,
    InClusterConfigMapFetcher,
    KubectlConfigMapFetcher,
)
from resfilter.logger import get_logger

UnstructuredObject = dict[str, Any]


@dataclass(frozen=True)
class ResourceSelector:
    """Resources excluded from an action; empty selects everything."""

    excluded_resources: tuple[str, ...] = ()


@dataclass(frozen=True)
class OperationRef:
    """Identity of a backup or restore run."""

    name: str
    namespace: str

    @classmethod
    def from_object(cls, obj: UnstructuredObject) -> OperationRef:
        """Build reference from a Backup/Restore object."""
        metadata = obj.get("metadata") or {}
        name = metadata.get("name")
        if not isinstance(name, str) or not name:
            raise MetadataAccessError("operation object has no metadata.name")
        return cls(name=name, namespace=metadata.get("namespace") or "")


def split_api_version(api_version: str) -> tuple[str, str]:
    """Split `group/version` (or core `version`) into its parts."""
    group, sep, version = api_version.rpartition("/")
    return (group, version) if sep else ("", api_version)


def descriptor_from_object(obj: UnstructuredObject) -> ResourceDescriptor:
    """Extract filter identity from an unstructured Kubernetes object."""
    if not isinstance(obj, dict):
        raise MetadataAccessError(f"expected object mapping, got {type(obj).__name__}")
    metadata = obj.get("metadata")
    if not isinstance(metadata, dict):
        raise MetadataAccessError("error accessing metadata: missing metadata")
    name = metadata.get("name")
    if not isinstance(name, str) or not name:
        raise MetadataAccessError("error accessing metadata: missing name")
    namespace = metadata.get("namespace") or ""
    if not isinstance(namespace, str):
        raise MetadataAccessError("error accessing metadata: invalid namespace")

    api_version = obj.get("apiVersion")
    kind = obj.get("kind")
    if not isinstance(api_version, str) or not api_version:
        raise MetadataAccessError(f"{name}: missing apiVersion")
    if not isinstance(kind, str) or not kind:
        raise MetadataAccessError(f"{name}: missing kind")

    group, version = split_api_version(api_version)
    return ResourceDescriptor(
        group=group, version=version, kind=kind, name=name, namespace=namespace
    )


def configmap_name_for(operation_name: str, suffix: str) -> str:
    """Return filter ConfigMap name derived from an operation name."""
    return f"{operation_name}{suffix}"


def build_fetcher(config: FilterConfig) -> ConfigFetcher:
    """Create the configured ConfigMap fetcher backend."""
    if config.fetch_backend == "in-cluster":
        return InClusterConfigMapFetcher(config.in_cluster, data_key=config.data_key)
    return KubectlConfigMapFetcher(
        data_key=config.data_key,
        timeout_seconds=config.kubectl_timeout_seconds,
    )


class _FilterAction:
    """Shared session bookkeeping for backup and restore actions.

    Sessions live until `finish()` is called; the host must call it when an
    operation completes or the session map keeps growing.
    """

    def __init__(
        self,
        config: FilterConfig | None = None,
        *,
        fetcher_factory: Callable[[FilterConfig], ConfigFetcher] = build_fetcher,
    ) -> None:
        self.config = config or FilterConfig()
        self._fetcher_factory = fetcher_factory
        self._sessions: dict[OperationRef, FilterSession] = {}
        self._lock = threading.Lock()
        self._log = get_logger(type(self).__name__)

    def _suffix(self) -> str:
        raise NotImplementedError

    def config_name_for(self, operation: OperationRef) -> str:
        """Return ConfigMap name holding this operation's allow-list."""
        naming = self.config.naming
        if naming.use_well_known_name:
            return naming.well_known_name
        return configmap_name_for(operation.name, self._suffix())

    def session_for(self, operation: OperationRef) -> FilterSession:
        """Return the session of an operation, creating it on first use."""
        with self._lock:
            session = self._sessions.get(operation)
            if session is None:
                session = FilterSession(
                    self._fetcher_factory(self.config),
                    namespace=self.config.config_namespace,
                    config_name=self.config_name_for(operation),
                    fmt=self.config.format,
                )
                self._sessions[operation] = session
            return session

    def finish(self, operation: OperationRef) -> None:
        """Discard the session of a completed operation."""
        with self._lock:
            session = self._sessions.pop(operation, None)
        if session is not None:
            self._log.debug(
                "session discarded",
                operation=f"{operation.namespace}/{operation.name}",
                state=session.state.value,
            )

    def _decide(
        self,
        item: UnstructuredObject,
        operation: OperationRef,
        namespace_mapping: NamespaceMapping | None = None,
    ) -> UnstructuredObject | None:
        session = self.session_for(operation)
        session.ensure_loaded()
        candidate = descriptor_from_object(item)
        decision = session.decide(candidate, namespace_mapping)
        return item if decision is Decision.KEEP else None


class BackupFilterAction(_FilterAction):
    """Backup item action keeping only allow-listed resources."""

    def _suffix(self) -> str:
        return self.config.naming.backup_suffix

    def applies_to(self) -> ResourceSelector:
        """Select every resource."""
        return ResourceSelector()

    def execute(
        self, item: UnstructuredObject, backup: OperationRef | UnstructuredObject
    ) -> UnstructuredObject | None:
        """Return item to back it up, or None to exclude it."""
        if not isinstance(backup, OperationRef):
            backup = OperationRef.from_object(backup)
        return self._decide(item, backup)


class RestoreFilterAction(_FilterAction):
    """Restore item action skipping resources absent from the allow-list."""

    def _suffix(self) -> str:
        return self.config.naming.restore_suffix

    def applies_to(self) -> ResourceSelector:
        """Select every resource except namespaces."""
        return ResourceSelector(excluded_resources=("namespaces",))

    def execute(
        self,
        item: UnstructuredObject,
        restore: OperationRef | UnstructuredObject,
        namespace_mapping: NamespaceMapping | None = None,
    ) -> UnstructuredObject | None:
        """Return item to restore it, or None to skip it.

        When `namespace_mapping` is omitted and `restore` is a Restore
        object, its `spec.namespaceMapping` is used.
        """
        if not isinstance(restore, OperationRef):
            if namespace_mapping is None:
                namespace_mapping = (restore.get("spec") or {}).get("namespaceMapping")
            restore = OperationRef.from_object(restore)
        return self._decide(item, restore, namespace_mapping)
