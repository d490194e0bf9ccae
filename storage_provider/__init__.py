"""Access-scoped object storage over S3-compatible backends."""

from storage_provider.common.config import CustomPrefix, Settings, StorageConfig, get_settings
from storage_provider.common.events import EventHub, LifecycleEvent, get_hub
from storage_provider.domain import (
    AccessLevel,
    ConfigurationError,
    CredentialsUnavailableError,
    ObjectDescriptor,
    PutResult,
    StorageProviderError,
)
from storage_provider.infra.storage.client import Credentials, SignedUrlError, StorageError
from storage_provider.services import StorageService

__all__ = [
    "AccessLevel",
    "ConfigurationError",
    "Credentials",
    "CredentialsUnavailableError",
    "CustomPrefix",
    "EventHub",
    "LifecycleEvent",
    "ObjectDescriptor",
    "PutResult",
    "Settings",
    "SignedUrlError",
    "StorageConfig",
    "StorageError",
    "StorageProviderError",
    "StorageService",
    "get_hub",
    "get_settings",
]
