"""Tests for allow-list matching."""

from __future__ import annotations

import pytest

from resfilter.domain.allowlist_parser import parse_flat, parse_structured
from resfilter.domain.matcher import is_rule_match, match
from resfilter.domain.models import Decision, FilterRule, ResourceDescriptor


def _candidate(
    name: str = "web",
    namespace: str = "prod",
    group: str = "apps",
    version: str = "v1",
    kind: str = "Deployment",
) -> ResourceDescriptor:
    return ResourceDescriptor(
        group=group, version=version, kind=kind, name=name, namespace=namespace
    )


@pytest.mark.parametrize(
    ("group", "version", "kind"),
    [("apps", "v1", "Deployment"), ("", "v1", "ConfigMap"), ("batch", "v1", "Job")],
)
def test_namespace_rule_ignores_gvk(group: str, version: str, kind: str) -> None:
    rule = FilterRule(name="web", namespace="prod")
    assert is_rule_match(rule, _candidate(group=group, version=version, kind=kind))
    assert not is_rule_match(
        rule, _candidate(namespace="dev", group=group, version=version, kind=kind)
    )


def test_name_only_rule_ignores_namespace_and_gvk() -> None:
    rule = FilterRule(name="shared-secret")
    assert is_rule_match(rule, _candidate(name="shared-secret", namespace="a"))
    assert is_rule_match(
        rule,
        _candidate(name="shared-secret", namespace="", group="", kind="Secret"),
    )


@pytest.mark.parametrize(
    "candidate",
    [
        _candidate(group="extensions"),
        _candidate(version="v1beta1"),
        _candidate(kind="StatefulSet"),
    ],
)
def test_any_gvk_mismatch_skips(candidate: ResourceDescriptor) -> None:
    rule = FilterRule(
        name="web", namespace="prod", group="apps", version="v1", kind="Deployment"
    )
    assert not is_rule_match(rule, candidate)
    assert is_rule_match(rule, _candidate())


@pytest.mark.parametrize(
    "rule",
    [
        FilterRule(name="web", version="v1"),
        FilterRule(name="web", group="apps", kind="Deployment"),
        FilterRule(name="web", kind="Deployment"),
    ],
)
def test_partial_gvk_rule_never_matches(rule: FilterRule) -> None:
    assert not is_rule_match(rule, _candidate())


def test_core_group_alias() -> None:
    rule = FilterRule(name="cm1", group="core", version="v1", kind="ConfigMap")
    assert is_rule_match(rule, _candidate(name="cm1", group="", kind="ConfigMap"))
    assert not is_rule_match(rule, _candidate(name="cm1", group="apps", kind="ConfigMap"))


def test_comparisons_are_case_insensitive() -> None:
    rule = FilterRule(
        name="Web", namespace="PROD", group="Apps", version="V1", kind="deployment"
    )
    assert is_rule_match(rule, _candidate())
    assert is_rule_match(FilterRule(name="web"), _candidate(name="WEB"))


def test_match_structured_lookup_is_case_insensitive() -> None:
    allow_list = parse_structured('[{"name":"Web"}]')
    assert match(allow_list, _candidate(name="web")) is Decision.KEEP
    assert match(allow_list, _candidate(name="api")) is Decision.SKIP


def test_case_variant_rules_resolve_consistently() -> None:
    allow_list = parse_structured(
        '[{"name":"Web","namespace":"a"},{"name":"web","namespace":"b"}]'
    )
    for name in ("web", "WEB", "Web"):
        assert match(allow_list, _candidate(name=name, namespace="b")) is Decision.KEEP
        assert match(allow_list, _candidate(name=name, namespace="a")) is Decision.SKIP


def test_end_to_end_configmap_rules() -> None:
    allow_list = parse_structured('[{"name":"cm1","namespace":"ns1"}]')

    def cm(name: str, namespace: str) -> ResourceDescriptor:
        return ResourceDescriptor(
            group="", version="v1", kind="ConfigMap", name=name, namespace=namespace
        )

    assert match(allow_list, cm("cm1", "ns1")) is Decision.KEEP
    assert match(allow_list, cm("cm1", "ns2")) is Decision.SKIP
    assert match(allow_list, cm("cm2", "ns1")) is Decision.SKIP


def test_flat_mode_exact_key() -> None:
    allow_list = parse_flat("apps/v1/Deployment/web/prod\nrbac/v1/ClusterRole/viewer")
    assert match(allow_list, _candidate()) is Decision.KEEP
    assert match(allow_list, _candidate(namespace="dev")) is Decision.SKIP
    assert match(allow_list, _candidate(name="Web")) is Decision.SKIP
    cluster_role = ResourceDescriptor(
        group="rbac", version="v1", kind="ClusterRole", name="viewer"
    )
    assert match(allow_list, cluster_role) is Decision.KEEP
