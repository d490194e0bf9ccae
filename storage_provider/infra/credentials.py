from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from storage_provider.infra.storage.client import (
    CredentialProvider,
    Credentials,
    StorageError,
)

if TYPE_CHECKING:
    from storage_provider.common.config import Settings


def shear_credentials(credentials: Credentials) -> Credentials:
    """Keep only what request signing and prefix resolution need."""
    return Credentials(
        access_key_id=credentials.access_key_id,
        secret_access_key=credentials.secret_access_key,
        session_token=credentials.session_token,
        identity_id=credentials.identity_id,
    )


class StaticCredentialProvider:
    """Serves a fixed key pair, typically read from settings."""

    def __init__(
        self,
        *,
        access_key_id: str | None,
        secret_access_key: str | None,
        session_token: str | None = None,
        identity_id: str | None = None,
    ) -> None:
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._session_token = session_token
        self._identity_id = identity_id

    async def get(self) -> Credentials | None:
        if not self._access_key_id or not self._secret_access_key:
            return None
        return Credentials(
            access_key_id=self._access_key_id,
            secret_access_key=self._secret_access_key,
            session_token=self._session_token,
            identity_id=self._identity_id,
        )

    def shear(self, credentials: Credentials) -> Credentials:
        return shear_credentials(credentials)


class SessionCredentialProvider:
    """Resolves credentials through the boto3 default credential chain.

    The chain (environment, shared config, instance metadata, ...) may block
    on I/O, so resolution runs in the default executor.
    """

    def __init__(self, *, session: Any = None, identity_id: str | None = None) -> None:
        self._session = session or self._build_session()
        self._identity_id = identity_id

    @staticmethod
    def _build_session() -> Any:
        try:
            import boto3
        except ImportError as exc:
            raise StorageError(
                "boto3 is required for session credentials. "
                "Install with: pip install boto3"
            ) from exc
        return boto3.session.Session()

    def _resolve(self) -> Credentials | None:
        resolved = self._session.get_credentials()
        if resolved is None:
            return None
        frozen = resolved.get_frozen_credentials()
        if not frozen.access_key or not frozen.secret_key:
            return None
        return Credentials(
            access_key_id=frozen.access_key,
            secret_access_key=frozen.secret_key,
            session_token=frozen.token,
            identity_id=self._identity_id,
        )

    async def get(self) -> Credentials | None:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._resolve)

    def shear(self, credentials: Credentials) -> Credentials:
        return shear_credentials(credentials)


def build_credential_provider(settings: "Settings") -> CredentialProvider:
    if settings.has_static_credentials:
        return StaticCredentialProvider(
            access_key_id=settings.S3_ACCESS_KEY_ID,
            secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            session_token=settings.S3_SESSION_TOKEN,
            identity_id=settings.STORAGE_IDENTITY_ID,
        )
    return SessionCredentialProvider(identity_id=settings.STORAGE_IDENTITY_ID)
