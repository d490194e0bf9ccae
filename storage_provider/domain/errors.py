from __future__ import annotations


class StorageProviderError(Exception):
    """Base class for errors raised by the storage provider itself."""


class ConfigurationError(StorageProviderError):
    """Raised when the merged configuration cannot drive a request."""


class CredentialsUnavailableError(StorageProviderError):
    """Raised before any transport call when no credentials could be resolved."""

    def __init__(self, message: str = "No credentials") -> None:
        super().__init__(message)
