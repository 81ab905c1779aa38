"""Recover original namespaces from a restore namespace mapping."""

from __future__ import annotations

from collections import defaultdict

from resfilter.domain.models import NamespaceMapping
from resfilter.logger import get_logger


def ambiguous_destinations(mapping: NamespaceMapping | None) -> dict[str, list[str]]:
    """Return destinations targeted by more than one original namespace."""
    originals_by_destination: dict[str, list[str]] = defaultdict(list)
    for original, destination in (mapping or {}).items():
        originals_by_destination[destination].append(original)
    return {
        destination: originals
        for destination, originals in originals_by_destination.items()
        if len(originals) > 1
    }


def resolve_original_namespace(
    current_namespace: str,
    mapping: NamespaceMapping | None,
) -> str:
    """Return the pre-remap namespace of a restored resource.

    Parameters
    ----------
    current_namespace : str
        Namespace the resource is being restored into.
    mapping : NamespaceMapping | None
        Original -> destination namespace pairs of the restore.

    Returns
    -------
    str
        Original namespace when some pair targets `current_namespace`,
        otherwise `current_namespace` unchanged. The first matching pair in
        mapping order wins.
    """
    if not mapping or not current_namespace:
        return current_namespace

    matches = [
        original
        for original, destination in mapping.items()
        if destination == current_namespace
    ]
    if not matches:
        return current_namespace
    if len(matches) > 1:
        get_logger(__name__).warning(
            "ambiguous namespace mapping",
            destination=current_namespace,
            originals=matches,
            chosen=matches[0],
        )
    return matches[0]
