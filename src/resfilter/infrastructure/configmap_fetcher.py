"""Fetch filter ConfigMap payloads from the cluster."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import httpx

from resfilter.config import InClusterConfig
from resfilter.domain.errors import ConfigNotFoundError, ParseError, TransportError
from resfilter.infrastructure.kubectl_client import KubectlError, kubectl_json
from resfilter.logger import get_logger

DEFAULT_DATA_KEY = "resources"


class ConfigFetcher(Protocol):
    """Single-lookup source of raw allow-list text."""

    def fetch(self, namespace: str, name: str) -> str:
        """Return raw payload or raise ConfigNotFoundError/TransportError."""
        ...


def extract_payload(
    configmap: dict[str, Any], namespace: str, name: str, data_key: str
) -> str:
    """Return the allow-list text stored under `data_key`."""
    data = configmap.get("data") or {}
    if not isinstance(data, dict) or data_key not in data:
        raise ParseError(f"configmap {namespace}/{name} has no '{data_key}' key")
    payload = data[data_key]
    if not isinstance(payload, str):
        raise ParseError(f"configmap {namespace}/{name} key '{data_key}' is not text")
    return payload


@dataclass
class KubectlConfigMapFetcher:
    """Read ConfigMaps through the local kubectl context."""

    data_key: str = DEFAULT_DATA_KEY
    timeout_seconds: float | None = 30.0

    def fetch(self, namespace: str, name: str) -> str:
        """Return the payload of ConfigMap `namespace/name`."""
        get_logger(__name__).debug("fetching configmap", namespace=namespace, name=name)
        try:
            configmap = kubectl_json(
                ["get", "configmap", name, "-n", namespace],
                timeout=self.timeout_seconds,
            )
        except KubectlError as exc:
            if exc.is_not_found:
                raise ConfigNotFoundError(namespace, name) from exc
            raise TransportError(f"error getting configmap: {exc}") from exc
        return extract_payload(configmap, namespace, name, self.data_key)


class InClusterConfigMapFetcher:
    """Read ConfigMaps from the API server with the pod service account."""

    def __init__(
        self,
        config: InClusterConfig,
        *,
        data_key: str = DEFAULT_DATA_KEY,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create fetcher.

        Parameters
        ----------
        config : InClusterConfig
            API server location, credential paths and timeout.
        data_key : str
            ConfigMap data key holding the allow-list.
        transport : httpx.BaseTransport | None
            Optional transport override.
        """
        self.config = config
        self.data_key = data_key
        self._transport = transport

    def _token(self) -> str:
        try:
            return Path(self.config.token_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise TransportError(
                f"error reading service account token: {exc}"
            ) from exc

    def _verify(self) -> str | bool:
        if self._transport is not None:
            return True
        ca_path = Path(self.config.ca_path)
        return str(ca_path) if ca_path.exists() else True

    def fetch(self, namespace: str, name: str) -> str:
        """Return the payload of ConfigMap `namespace/name`."""
        if not self.config.base_url:
            raise TransportError(
                "in-cluster config unavailable: KUBERNETES_SERVICE_HOST not set"
            )
        path = f"/api/v1/namespaces/{namespace}/configmaps/{name}"
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._token()}",
        }
        get_logger(__name__).debug("fetching configmap", namespace=namespace, name=name)
        try:
            with httpx.Client(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                verify=self._verify(),
                transport=self._transport,
            ) as client:
                response = client.get(path, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"error getting configmap: {exc}") from exc

        if response.status_code == 404:
            raise ConfigNotFoundError(namespace, name)
        if response.status_code >= 400:
            body = response.text[:200]
            raise TransportError(
                f"API server error {response.status_code} for {path}: {body}"
            )
        try:
            configmap = response.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON in API response for {path}") from exc
        if not isinstance(configmap, dict):
            raise TransportError(f"Unexpected response shape for {path}")
        return extract_payload(configmap, namespace, name, self.data_key)
