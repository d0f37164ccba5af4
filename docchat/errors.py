"""Exceptions shared across layers."""


class ConfigurationError(Exception):
    """Raised when required settings (API keys, backend credentials) are missing."""

    pass
