"""Allow-list matching rules."""

from __future__ import annotations

from structlog.typing import FilteringBoundLogger

from resfilter.domain.models import (
    AllowList,
    AllowListFormat,
    Decision,
    FilterRule,
    ResourceDescriptor,
    rule_key,
)
from resfilter.logger import get_logger

# Rules may spell the empty core API group as "core".
CORE_GROUP_ALIASES: frozenset[str] = frozenset({"", "core"})


def _norm(value: str) -> str:
    return value.strip().lower()


def _group_equal(rule_group: str, candidate_group: str) -> bool:
    rule_group, candidate_group = _norm(rule_group), _norm(candidate_group)
    if rule_group in CORE_GROUP_ALIASES and candidate_group in CORE_GROUP_ALIASES:
        return True
    return rule_group == candidate_group


def is_rule_match(
    rule: FilterRule,
    candidate: ResourceDescriptor,
    log: FilteringBoundLogger | None = None,
) -> bool:
    """Return whether candidate satisfies every criterion set on rule.

    Name is mandatory. A non-empty namespace must match exactly. When any of
    group/version/kind is set, all three must be set on the rule and all
    three must match. Comparisons are case-insensitive.
    """
    log = log or get_logger(__name__)

    if _norm(rule.name) != _norm(candidate.name):
        log.debug("name mismatch", rule=rule.name, candidate=candidate.name)
        return False

    if rule.namespace and _norm(rule.namespace) != _norm(candidate.namespace):
        log.debug(
            "namespace mismatch",
            rule=rule.namespace,
            candidate=candidate.namespace,
        )
        return False

    if rule.has_gvk:
        if not rule.has_complete_gvk:
            log.debug(
                "incomplete group/version/kind on rule",
                rule=f"{rule.group}/{rule.version}/{rule.kind}",
            )
            return False
        if not (
            _group_equal(rule.group, candidate.group)
            and _norm(rule.version) == _norm(candidate.version)
            and _norm(rule.kind) == _norm(candidate.kind)
        ):
            log.debug(
                "group/version/kind mismatch",
                rule=f"{rule.group}/{rule.version}/{rule.kind}",
                candidate=f"{candidate.group}/{candidate.version}/{candidate.kind}",
            )
            return False

    return True


def match_structured(
    allow_list: AllowList,
    candidate: ResourceDescriptor,
    log: FilteringBoundLogger | None = None,
) -> Decision:
    """Decide using name-keyed rules."""
    rule = allow_list.rules.get(rule_key(candidate.name))
    if rule is None:
        return Decision.SKIP
    return Decision.KEEP if is_rule_match(rule, candidate, log) else Decision.SKIP


def match_flat(allow_list: AllowList, candidate: ResourceDescriptor) -> Decision:
    """Decide by exact composite-key membership."""
    return Decision.KEEP if candidate.flat_key() in allow_list.keys else Decision.SKIP


def match(
    allow_list: AllowList,
    candidate: ResourceDescriptor,
    log: FilteringBoundLogger | None = None,
) -> Decision:
    """Decide using the matching mode of the allow-list encoding."""
    if allow_list.format is AllowListFormat.FLAT:
        return match_flat(allow_list, candidate)
    return match_structured(allow_list, candidate, log)
