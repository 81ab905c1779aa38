"""Application facade exports for stable filter API."""

from resfilter.application.plugins import (
    BackupFilterAction,
    OperationRef,
    ResourceSelector,
    RestoreFilterAction,
    build_fetcher,
    configmap_name_for,
    descriptor_from_object,
)
from resfilter.application.session import FilterSession

__all__ = [
    "BackupFilterAction",
    "FilterSession",
    "OperationRef",
    "ResourceSelector",
    "RestoreFilterAction",
    "build_fetcher",
    "configmap_name_for",
    "descriptor_from_object",
]
