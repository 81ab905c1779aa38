"""Per-operation filter session: load-once allow-list and decisions."""

from __future__ import annotations

import threading
from collections.abc import Callable

from resfilter.domain.allowlist_parser import parse_allowlist
from resfilter.domain.errors import ConfigNotFoundError
from resfilter.domain.matcher import match
from resfilter.domain.models import (
    AllowList,
    AllowListFormat,
    ConfigLoadState,
    Decision,
    NamespaceMapping,
    ResourceDescriptor,
)
from resfilter.domain.namespace_resolver import resolve_original_namespace
from resfilter.infrastructure.configmap_fetcher import ConfigFetcher
from resfilter.logger import get_logger

AllowListParser = Callable[[str, AllowListFormat], AllowList]


class FilterSession:
    """Allow-list state and decisions for one backup or restore operation.

    The ConfigMap is fetched on the first decision (or explicit
    `ensure_loaded`). A missing ConfigMap switches the session to fail-open
    and every candidate is kept. Any other load failure propagates and the
    session stays `NOT_ATTEMPTED`.
    """

    def __init__(
        self,
        fetcher: ConfigFetcher,
        *,
        namespace: str,
        config_name: str,
        fmt: AllowListFormat = AllowListFormat.AUTO,
        parser: AllowListParser = parse_allowlist,
    ) -> None:
        self._fetcher = fetcher
        self._parser = parser
        self.namespace = namespace
        self.config_name = config_name
        self.format = fmt
        self._state = ConfigLoadState.NOT_ATTEMPTED
        self._allow_list = AllowList.empty()
        self._lock = threading.Lock()
        self._log = get_logger(__name__, configmap=f"{namespace}/{config_name}")

    @property
    def state(self) -> ConfigLoadState:
        """Return current load state."""
        return self._state

    @property
    def allow_list(self) -> AllowList:
        """Return loaded allow-list (empty until loaded)."""
        return self._allow_list

    def is_fail_open(self) -> bool:
        """Return whether the ConfigMap was missing and all resources pass."""
        return self._state is ConfigLoadState.NOT_FOUND

    def ensure_loaded(self) -> ConfigLoadState:
        """Fetch and parse the allow-list once per session."""
        if self._state is not ConfigLoadState.NOT_ATTEMPTED:
            return self._state
        with self._lock:
            if self._state is not ConfigLoadState.NOT_ATTEMPTED:
                return self._state
            try:
                raw = self._fetcher.fetch(self.namespace, self.config_name)
            except ConfigNotFoundError:
                self._log.warning("filter configmap not found, keeping all resources")
                self._state = ConfigLoadState.NOT_FOUND
                return self._state
            allow_list = self._parser(raw, self.format)
            self._allow_list = allow_list
            self._state = ConfigLoadState.LOADED
            self._log.info(
                "filter configmap loaded",
                format=allow_list.format.value,
                entries=len(allow_list),
            )
            return self._state

    def decide(
        self,
        candidate: ResourceDescriptor,
        namespace_mapping: NamespaceMapping | None = None,
    ) -> Decision:
        """Return whether candidate is kept or skipped.

        On restore, pass the restore's namespace mapping so namespace rules
        are compared against the original (pre-remap) namespace.
        """
        if self.ensure_loaded() is ConfigLoadState.NOT_FOUND:
            return Decision.KEEP

        if namespace_mapping:
            original = resolve_original_namespace(candidate.namespace, namespace_mapping)
            if original != candidate.namespace:
                self._log.debug(
                    "resolved original namespace",
                    current=candidate.namespace,
                    original=original,
                )
                candidate = candidate.with_namespace(original)

        decision = match(self._allow_list, candidate, self._log)
        self._log.info(
            "resource included" if decision is Decision.KEEP else "resource skipped",
            resource=candidate.flat_key(),
            decision=decision.value,
        )
        return decision
