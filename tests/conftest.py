"""Shared fixtures for resource filter tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from resfilter.domain.errors import ConfigNotFoundError


class FakeFetcher:
    """In-memory ConfigMap store counting lookups."""

    def __init__(
        self,
        payload: str | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.payload = payload
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def fetch(self, namespace: str, name: str) -> str:
        self.calls.append((namespace, name))
        if self.error is not None:
            raise self.error
        if self.payload is None:
            raise ConfigNotFoundError(namespace, name)
        return self.payload


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
