"""Error taxonomy for allow-list loading and filtering."""


class FilterError(RuntimeError):
    """Base class for resource filter failures."""


class ConfigNotFoundError(FilterError):
    """Raised when the filter ConfigMap does not exist."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(f"configmap {namespace}/{name} not found")
        self.namespace = namespace
        self.name = name


class TransportError(FilterError):
    """Raised when the configuration store cannot be reached or queried."""


class ParseError(FilterError):
    """Raised when the allow-list payload cannot be parsed."""


class MetadataAccessError(FilterError):
    """Raised when a candidate object cannot be introspected."""
