"""Project-wide custom exception types."""


class ProviderError(RuntimeError):
    """Raised when an external sentiment provider fails or returns garbage."""


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider is asked to score text without credentials."""


class DataSourceError(RuntimeError):
    """Raised when the response store cannot serve a metrics request."""


class EmptyScopeError(DataSourceError):
    """Raised when a metrics scope resolves to zero surveys."""
