"""Parse allow-list payloads stored in filter ConfigMaps.

Two encodings are accepted:

* structured: a JSON array of ``{group, version, kind, name, namespace}``
  objects where only ``name`` is required;
* flat: newline-separated ``group/version/kind/name[/namespace]`` keys.
"""

from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any

from resfilter.domain.errors import ParseError
from resfilter.domain.models import (
    AllowList,
    AllowListFormat,
    FilterRule,
    rule_key,
)

_RULE_FIELDS = ("group", "version", "kind", "name", "namespace")


def detect_format(raw: str) -> AllowListFormat:
    """Guess the encoding of a raw payload."""
    return (
        AllowListFormat.STRUCTURED
        if raw.lstrip().startswith("[")
        else AllowListFormat.FLAT
    )


def _rule_from_entry(index: int, entry: Any) -> FilterRule:
    if not isinstance(entry, dict):
        raise ParseError(f"entry {index}: expected object, got {type(entry).__name__}")

    values: dict[str, str] = {}
    for field in _RULE_FIELDS:
        value = entry.get(field)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ParseError(f"entry {index}: field '{field}' must be a string")
        values[field] = value.strip()

    if not values.get("name"):
        raise ParseError(f"entry {index}: 'name' is required")
    return FilterRule(**values)


def parse_structured(raw: str) -> AllowList:
    """Parse a JSON array payload into name-keyed rules.

    Rules are keyed by lower-cased name; later entries overwrite earlier
    ones whose names differ only by case.
    """
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"invalid allow-list JSON: {exc}") from exc
    if not isinstance(document, list):
        raise ParseError("allow-list JSON must be an array of objects")

    rules: dict[str, FilterRule] = {}
    for index, entry in enumerate(document):
        rule = _rule_from_entry(index, entry)
        rules[rule_key(rule.name)] = rule
    return AllowList(format=AllowListFormat.STRUCTURED, rules=MappingProxyType(rules))


def parse_flat(raw: str) -> AllowList:
    """Parse newline-delimited composite keys into a membership set."""
    keys = frozenset(line.strip() for line in raw.splitlines() if line.strip())
    return AllowList(format=AllowListFormat.FLAT, rules=MappingProxyType({}), keys=keys)


def parse_allowlist(
    raw: str, fmt: AllowListFormat = AllowListFormat.AUTO
) -> AllowList:
    """Parse a raw payload using the requested or detected encoding."""
    if fmt is AllowListFormat.AUTO:
        fmt = detect_format(raw)
    if fmt is AllowListFormat.STRUCTURED:
        return parse_structured(raw)
    return parse_flat(raw)
