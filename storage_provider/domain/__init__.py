"""
Domain layer: access-scoped key prefixes, request parameter assembly and
result models. Everything here is pure and free of I/O.
"""

from .access import AccessLevel, prefix_for, resolve_prefix
from .errors import ConfigurationError, CredentialsUnavailableError, StorageProviderError
from .models import ObjectDescriptor, PutResult
from .params import Operation, assemble

__all__ = [
    "AccessLevel",
    "ConfigurationError",
    "CredentialsUnavailableError",
    "ObjectDescriptor",
    "Operation",
    "PutResult",
    "StorageProviderError",
    "assemble",
    "prefix_for",
    "resolve_prefix",
]
