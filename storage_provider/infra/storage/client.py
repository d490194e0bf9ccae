"""Storage collaborator protocols and data types.

This module defines the contracts the storage service expects from its
collaborators: a credential provider, an object transport, and a managed
uploader. The boto3-backed implementations live in ``s3_client`` and
``storage_provider.infra.credentials``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Protocol

if TYPE_CHECKING:
    from storage_provider.common.config import StorageConfig


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class SignedUrlError(StorageError):
    """Raised when a presigned URL cannot be produced."""


@dataclass(frozen=True, slots=True)
class Credentials:
    """Credentials resolved for signing storage requests."""

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None
    identity_id: str | None = None
    expiration: datetime | None = None


ProgressCallback = Callable[[dict[str, Any]], None]


class CredentialProvider(Protocol):
    """Source of credentials for storage requests."""

    async def get(self) -> Credentials | None:
        """Resolve the current credentials.

        Returns:
            Credentials, or None when nothing is configured.

        Raises:
            Exception: Any provider failure. Callers treat it as "no credentials".
        """
        ...

    def shear(self, credentials: Credentials) -> Credentials:
        """Strip credentials down to the fields needed for signing."""
        ...


class StorageTransport(Protocol):
    """Protocol for the object storage client used by the storage service.

    Params are the whitelisted dictionaries produced by
    ``storage_provider.domain.params``. Errors from the backend propagate
    unchanged.
    """

    async def get_object(self, params: dict[str, Any]) -> dict[str, Any]:
        """Fetch an object, returning the raw response including ``Body``."""
        ...

    async def delete_object(self, params: dict[str, Any]) -> dict[str, Any]:
        """Delete an object, returning the raw response."""
        ...

    async def list_objects(self, params: dict[str, Any]) -> dict[str, Any]:
        """List objects under a prefix, returning the raw response."""
        ...

    async def presign_get_object(
        self, params: dict[str, Any], *, expires_in: int
    ) -> str:
        """Generate a presigned GET URL.

        Raises:
            SignedUrlError: If URL generation fails or yields an empty URL.
        """
        ...


class ManagedUploader(Protocol):
    """A single upload prepared with its parameters and progress sink."""

    async def upload(self) -> dict[str, Any]:
        """Transfer the body, returning the backend response."""
        ...


TransportFactory = Callable[["StorageConfig"], StorageTransport]
UploaderFactory = Callable[
    [dict[str, Any], "StorageConfig", ProgressCallback], ManagedUploader
]
