"""Application configuration and environment loading."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from resfilter.domain.models import AllowListFormat

SERVICE_ACCOUNT_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")

FETCH_BACKENDS: frozenset[str] = frozenset({"kubectl", "in-cluster"})


@dataclass(frozen=True)
class InClusterConfig:
    """API server access from inside a pod."""

    host: str | None = None
    port: str = "443"
    token_path: Path = SERVICE_ACCOUNT_DIR / "token"
    ca_path: Path = SERVICE_ACCOUNT_DIR / "ca.crt"
    timeout_seconds: float = 30.0

    @property
    def base_url(self) -> str | None:
        """Return API server base URL."""
        if not self.host:
            return None
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"https://{host}:{self.port}"


@dataclass(frozen=True)
class NamingConfig:
    """How filter ConfigMap names are derived."""

    namespace: str = "velero"
    backup_suffix: str = "-b-r-f"
    restore_suffix: str = "-r-r-f"
    well_known_name: str = "resource-filter"
    use_well_known_name: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging options."""

    level: str = "INFO"
    json_output: bool = True


@dataclass(frozen=True)
class FilterConfig:
    """Top-level resource filter configuration."""

    naming: NamingConfig = field(default_factory=NamingConfig)
    data_key: str = "resources"
    format: AllowListFormat = AllowListFormat.AUTO
    fetch_backend: str = "kubectl"
    kubectl_timeout_seconds: float = 30.0
    in_cluster: InClusterConfig = field(default_factory=InClusterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_namespace(self) -> str:
        """Return namespace holding filter ConfigMaps."""
        return self.naming.namespace

    @property
    def has_in_cluster(self) -> bool:
        """Return whether in-cluster API access is configured."""
        return bool(self.in_cluster.host)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_format(name: str) -> AllowListFormat:
    raw = (os.getenv(name) or AllowListFormat.AUTO.value).strip().lower()
    try:
        return AllowListFormat(raw)
    except ValueError as exc:
        choices = ", ".join(f.value for f in AllowListFormat)
        raise ValueError(f"{name} must be one of: {choices}") from exc


def load_config(env_path: Path = Path(".env")) -> FilterConfig:
    """Load config from environment and optional .env file."""
    load_dotenv(env_path, override=False)

    backend = (os.getenv("FILTER_FETCH_BACKEND") or "kubectl").strip().lower()
    if backend not in FETCH_BACKENDS:
        raise ValueError(
            f"FILTER_FETCH_BACKEND must be one of: {', '.join(sorted(FETCH_BACKENDS))}"
        )

    defaults = NamingConfig()
    token_path = os.getenv("FILTER_SA_TOKEN_PATH")
    ca_path = os.getenv("FILTER_SA_CA_PATH")
    return FilterConfig(
        naming=NamingConfig(
            namespace=os.getenv("FILTER_CONFIG_NAMESPACE") or defaults.namespace,
            backup_suffix=os.getenv("FILTER_BACKUP_SUFFIX") or defaults.backup_suffix,
            restore_suffix=os.getenv("FILTER_RESTORE_SUFFIX")
            or defaults.restore_suffix,
            well_known_name=os.getenv("FILTER_WELL_KNOWN_NAME")
            or defaults.well_known_name,
            use_well_known_name=_env_bool("FILTER_USE_WELL_KNOWN_NAME", False),
        ),
        data_key=os.getenv("FILTER_DATA_KEY") or "resources",
        format=_env_format("FILTER_FORMAT"),
        fetch_backend=backend,
        kubectl_timeout_seconds=_env_float("FILTER_KUBECTL_TIMEOUT_SECONDS", 30.0),
        in_cluster=InClusterConfig(
            host=os.getenv("KUBERNETES_SERVICE_HOST"),
            port=os.getenv("KUBERNETES_SERVICE_PORT") or "443",
            token_path=Path(token_path) if token_path else SERVICE_ACCOUNT_DIR / "token",
            ca_path=Path(ca_path) if ca_path else SERVICE_ACCOUNT_DIR / "ca.crt",
            timeout_seconds=_env_float("FILTER_API_TIMEOUT_SECONDS", 30.0),
        ),
        logging=LoggingConfig(
            level=(os.getenv("FILTER_LOG_LEVEL") or "INFO").upper(),
            json_output=_env_bool("FILTER_LOG_JSON", True),
        ),
    )
