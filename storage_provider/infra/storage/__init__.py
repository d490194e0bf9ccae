"""Object storage collaborators.

Protocols for the transport, uploader and credential provider used by the
storage service, plus their boto3 implementations.
"""

from .client import (
    CredentialProvider,
    Credentials,
    ManagedUploader,
    SignedUrlError,
    StorageError,
    StorageTransport,
)

__all__ = [
    "CredentialProvider",
    "Credentials",
    "ManagedUploader",
    "SignedUrlError",
    "StorageError",
    "StorageTransport",
]
