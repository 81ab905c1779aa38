"""Value objects shared by the parser, matcher and session."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class Decision(str, Enum):
    """Outcome of a filter decision."""

    KEEP = "keep"
    SKIP = "skip"


class ConfigLoadState(str, Enum):
    """Per-operation allow-list load state."""

    NOT_ATTEMPTED = "not_attempted"
    LOADED = "loaded"
    NOT_FOUND = "not_found"


class AllowListFormat(str, Enum):
    """Supported allow-list encodings."""

    AUTO = "auto"
    STRUCTURED = "structured"
    FLAT = "flat"


@dataclass(frozen=True)
class FilterRule:
    """Single allow-list entry; only name is mandatory."""

    name: str
    namespace: str = ""
    group: str = ""
    version: str = ""
    kind: str = ""

    @property
    def has_gvk(self) -> bool:
        """Return whether any group/version/kind criterion is set."""
        return bool(self.group or self.version or self.kind)

    @property
    def has_complete_gvk(self) -> bool:
        """Return whether all three group/version/kind criteria are set."""
        return bool(self.group and self.version and self.kind)


@dataclass(frozen=True)
class ResourceDescriptor:
    """Identity of a candidate resource."""

    group: str
    version: str
    kind: str
    name: str
    namespace: str = ""

    @property
    def is_cluster_scoped(self) -> bool:
        """Return whether the resource has no namespace."""
        return not self.namespace

    def flat_key(self) -> str:
        """Return the `group/version/kind/name[/namespace]` key."""
        key = f"{self.group}/{self.version}/{self.kind}/{self.name}"
        if self.namespace:
            key = f"{key}/{self.namespace}"
        return key

    def with_namespace(self, namespace: str) -> ResourceDescriptor:
        """Return a copy with namespace replaced."""
        return ResourceDescriptor(
            group=self.group,
            version=self.version,
            kind=self.kind,
            name=self.name,
            namespace=namespace,
        )


@dataclass(frozen=True)
class AllowList:
    """Parsed allow-list in one of the two encodings.

    Structured lists hold `rules` keyed by resource name; flat lists hold
    exact composite `keys`.
    """

    format: AllowListFormat
    rules: Mapping[str, FilterRule]
    keys: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> AllowList:
        """Return an empty structured allow-list."""
        return cls(format=AllowListFormat.STRUCTURED, rules={})

    def __len__(self) -> int:
        if self.format is AllowListFormat.FLAT:
            return len(self.keys)
        return len(self.rules)


NamespaceMapping = Mapping[str, str]


def rule_key(name: str) -> str:
    """Return the case-insensitive allow-list key for a resource name."""
    return name.strip().lower()
