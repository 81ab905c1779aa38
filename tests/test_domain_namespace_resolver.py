"""Tests for restore namespace resolution."""

from __future__ import annotations

from resfilter.domain.namespace_resolver import (
    ambiguous_destinations,
    resolve_original_namespace,
)


def test_remapped_namespace_resolves_to_original() -> None:
    assert resolve_original_namespace("ns-a-restored", {"ns-a": "ns-a-restored"}) == "ns-a"


def test_empty_or_missing_mapping_is_identity() -> None:
    assert resolve_original_namespace("ns-a", {}) == "ns-a"
    assert resolve_original_namespace("ns-a", None) == "ns-a"


def test_unmapped_namespace_unchanged() -> None:
    assert resolve_original_namespace("other", {"ns-a": "ns-b"}) == "other"


def test_original_key_is_not_a_destination() -> None:
    assert resolve_original_namespace("ns-a", {"ns-a": "ns-b"}) == "ns-a"


def test_cluster_scoped_resource_unchanged() -> None:
    assert resolve_original_namespace("", {"ns-a": "ns-b"}) == ""


def test_ambiguous_mapping_first_pair_wins() -> None:
    mapping = {"ns-a": "shared", "ns-b": "shared", "ns-c": "ns-d"}
    assert resolve_original_namespace("shared", mapping) == "ns-a"
    assert ambiguous_destinations(mapping) == {"shared": ["ns-a", "ns-b"]}


def test_no_ambiguity_in_well_formed_mapping() -> None:
    assert ambiguous_destinations({"a": "b", "c": "d"}) == {}
    assert ambiguous_destinations(None) == {}
