"""Tests for allow-list parsing."""

from __future__ import annotations

import pytest

from resfilter.domain.allowlist_parser import (
    detect_format,
    parse_allowlist,
    parse_flat,
    parse_structured,
)
from resfilter.domain.errors import ParseError
from resfilter.domain.models import AllowListFormat, FilterRule


def test_structured_entries_keyed_by_name() -> None:
    allow_list = parse_structured(
        """
        [
          {"group":"apps","version":"v1","kind":"Deployment","name":"web","namespace":"prod"},
          {"name":"shared-secret"}
        ]
        """
    )
    assert allow_list.format is AllowListFormat.STRUCTURED
    assert len(allow_list) == 2
    assert allow_list.rules["web"] == FilterRule(
        name="web", namespace="prod", group="apps", version="v1", kind="Deployment"
    )
    assert allow_list.rules["shared-secret"] == FilterRule(name="shared-secret")


def test_duplicate_names_last_entry_wins() -> None:
    allow_list = parse_structured(
        '[{"name":"x","namespace":"a"},{"name":"x","namespace":"b"}]'
    )
    assert len(allow_list) == 1
    assert allow_list.rules["x"].namespace == "b"


def test_case_variant_names_overwrite() -> None:
    allow_list = parse_structured(
        '[{"name":"Web","namespace":"a"},{"name":"web","namespace":"b"}]'
    )
    assert len(allow_list) == 1
    assert allow_list.rules["web"] == FilterRule(name="web", namespace="b")


def test_null_optional_fields_are_empty() -> None:
    allow_list = parse_structured('[{"name":"cm1","namespace":null,"kind":null}]')
    assert allow_list.rules["cm1"] == FilterRule(name="cm1")


def test_rules_are_read_only() -> None:
    allow_list = parse_structured('[{"name":"cm1"}]')
    with pytest.raises(TypeError):
        allow_list.rules["cm2"] = FilterRule(name="cm2")  # type: ignore[index]


@pytest.mark.parametrize(
    "raw",
    [
        '[{"name":"web"',
        '{"name":"web"}',
        '["web"]',
        '[{"namespace":"prod"}]',
        '[{"name":""}]',
        '[{"name":"web","namespace":3}]',
    ],
)
def test_structured_malformed_payload_raises(raw: str) -> None:
    with pytest.raises(ParseError):
        parse_structured(raw)


def test_flat_lines_become_keys() -> None:
    allow_list = parse_flat(
        "apps/v1/Deployment/web/prod\n\n/v1/ConfigMap/cm1/ns1\n"
        "rbac.authorization.k8s.io/v1/ClusterRole/viewer\n"
    )
    assert allow_list.format is AllowListFormat.FLAT
    assert allow_list.keys == frozenset(
        {
            "apps/v1/Deployment/web/prod",
            "/v1/ConfigMap/cm1/ns1",
            "rbac.authorization.k8s.io/v1/ClusterRole/viewer",
        }
    )


def test_detect_format() -> None:
    assert detect_format('  \n[{"name":"a"}]') is AllowListFormat.STRUCTURED
    assert detect_format("apps/v1/Deployment/web") is AllowListFormat.FLAT
    assert detect_format("") is AllowListFormat.FLAT


def test_parse_allowlist_dispatch() -> None:
    assert parse_allowlist('[{"name":"a"}]').format is AllowListFormat.STRUCTURED
    assert parse_allowlist("apps/v1/Deployment/web").format is AllowListFormat.FLAT
    with pytest.raises(ParseError):
        parse_allowlist("apps/v1/Deployment/web", AllowListFormat.STRUCTURED)


def test_empty_payload_is_empty_allow_list() -> None:
    assert len(parse_allowlist("")) == 0
