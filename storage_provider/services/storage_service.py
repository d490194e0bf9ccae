"""Storage service for access-scoped object operations.

This module provides the facade callers use to get, put, remove and list
objects. Each call resolves credentials, merges per-call options onto the
configured snapshot, computes the access prefix, assembles whitelisted
request parameters and hands them to the transport. The outcome is recorded
as a metric and, when tracking is enabled, announced on the event hub.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from storage_provider.common.config import (
    DEFAULT_PRESIGN_EXPIRES_SECONDS,
    Settings,
    StorageConfig,
    get_settings,
    parse_storage_config,
)
from storage_provider.common.events import EventHub, dispatch_storage_event, get_hub
from storage_provider.domain.access import prefix_for
from storage_provider.domain.errors import CredentialsUnavailableError
from storage_provider.domain.models import ObjectDescriptor, PutResult
from storage_provider.domain.params import Operation, assemble
from storage_provider.infra.credentials import build_credential_provider
from storage_provider.infra.observability.metrics import (
    STORAGE_DOWNLOAD_BYTES,
    record_operation,
)
from storage_provider.infra.storage.client import (
    CredentialProvider,
    TransportFactory,
    UploaderFactory,
)
from storage_provider.infra.storage.s3_client import build_transport, build_uploader
from storage_provider.services.credentials import CredentialGate

logger = logging.getLogger("storage")


def _response_size(response: Mapping[str, Any]) -> int | None:
    length = response.get("ContentLength")
    if length is not None:
        return int(length)
    body = response.get("Body")
    if isinstance(body, (bytes, bytearray)):
        return len(body)
    return None


class StorageService:
    """Object storage facade over an S3-compatible backend.

    Collaborators are injected so tests can substitute in-memory fakes; use
    :meth:`from_settings` to wire the boto3 implementations.
    """

    CATEGORY = "Storage"
    PROVIDER_NAME = "AWSS3"

    def __init__(
        self,
        config: StorageConfig | Mapping[str, Any] | None = None,
        *,
        credential_provider: CredentialProvider,
        transport_factory: TransportFactory = build_transport,
        uploader_factory: UploaderFactory = build_uploader,
        hub: EventHub | None = None,
        enable_metrics: bool = True,
    ) -> None:
        if isinstance(config, StorageConfig):
            self._config = config
        elif config:
            self._config = StorageConfig().merge(parse_storage_config(config))
        else:
            self._config = StorageConfig()
        self._gate = CredentialGate(credential_provider)
        self._transport_factory = transport_factory
        self._uploader_factory = uploader_factory
        self._hub = hub or get_hub()
        self._enable_metrics = enable_metrics
        logger.debug("storage_options bucket=%s", self._config.bucket)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        hub: EventHub | None = None,
    ) -> "StorageService":
        settings = settings or get_settings()
        return cls(
            settings.to_storage_config(),
            credential_provider=build_credential_provider(settings),
            hub=hub,
            enable_metrics=settings.ENABLE_METRICS,
        )

    @property
    def config(self) -> StorageConfig:
        return self._config

    def get_category(self) -> str:
        return self.CATEGORY

    def get_provider_name(self) -> str:
        return self.PROVIDER_NAME

    def configure(self, config: Mapping[str, Any] | None = None) -> StorageConfig:
        """Merge ``config`` onto the current snapshot and return the result.

        Accepts plain options, a ``{"Storage": {...}}`` section or a
        mobile-hub style mapping. ``None`` returns the current snapshot.
        """
        logger.debug("configure_storage")
        if not config:
            return self._config
        self._config = self._config.merge(parse_storage_config(config))
        if not self._config.bucket:
            logger.debug("storage_bucket_not_configured")
        return self._config

    async def _resolve_config(
        self,
        config: Mapping[str, Any] | None,
        options: Mapping[str, Any],
    ) -> StorageConfig:
        ok, base = await self._gate.ensure(self._config)
        if not ok:
            raise CredentialsUnavailableError()
        self._config = self._config.with_credentials(base.credentials)
        return base.merge(config).merge(options)

    def _finish(
        self,
        opt: StorageConfig,
        *,
        method: str,
        event: str,
        result: str,
        started: float,
        message: str,
        metrics: dict[str, Any] | None = None,
    ) -> None:
        if self._enable_metrics:
            record_operation(method, result, time.perf_counter() - started)
        dispatch_storage_event(
            self._hub,
            opt.track,
            event,
            {"method": method, "result": result},
            metrics,
            message,
        )

    async def get(
        self,
        key: str,
        config: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> str | dict[str, Any]:
        """Return a presigned URL for ``key``, or the object itself with ``download=True``.

        Args:
            key: Object key relative to the access prefix.
            config: Per-call options, e.g. ``{"level": "private", "download": True}``.
            **options: Same as ``config``, merged after it.

        Returns:
            The presigned URL string, or the raw transport response when downloading.

        Raises:
            CredentialsUnavailableError: If no credentials could be resolved.
            ConfigurationError: If no bucket or identity is available.
            SignedUrlError: If the presigned URL cannot be generated.
        """
        opt = await self._resolve_config(config, options)
        final_key = prefix_for(opt) + key
        params = assemble(Operation.GET, opt, final_key)
        logger.debug("get key=%s final_key=%s", key, final_key)
        started = time.perf_counter()

        if opt.download is True:
            try:
                transport = self._transport_factory(opt)
                response = await transport.get_object(params)
            except Exception as exc:
                logger.warning(
                    "download_error key=%s error=%s",
                    key,
                    exc,
                    extra={"extra": {"key": key, "error": str(exc)}},
                )
                self._finish(
                    opt,
                    method="get",
                    event="download",
                    result="failed",
                    started=started,
                    message=f"Download failed with {exc}",
                )
                raise
            size = _response_size(response)
            if self._enable_metrics and size:
                STORAGE_DOWNLOAD_BYTES.inc(size)
            self._finish(
                opt,
                method="get",
                event="download",
                result="success",
                started=started,
                metrics={"fileSize": size},
                message=f"Download success for {key}",
            )
            return response

        expires_in = int(
            opt.expires or opt.presign_expires or DEFAULT_PRESIGN_EXPIRES_SECONDS
        )
        try:
            transport = self._transport_factory(opt)
            url = await transport.presign_get_object(params, expires_in=expires_in)
        except Exception as exc:
            logger.warning(
                "get_signed_url_error key=%s error=%s",
                key,
                exc,
                extra={"extra": {"key": key, "error": str(exc)}},
            )
            self._finish(
                opt,
                method="get",
                event="getSignedUrl",
                result="failed",
                started=started,
                message=f"Could not get a signed URL for {key}",
            )
            raise
        self._finish(
            opt,
            method="get",
            event="getSignedUrl",
            result="success",
            started=started,
            message=f"Signed URL: {url}",
        )
        return url

    async def put(
        self,
        key: str,
        body: Any,
        config: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> PutResult:
        """Upload ``body`` under ``key`` through the managed uploader.

        ``progress_callback`` in the options receives ``{"loaded", "total", "key"}``
        updates while the transfer runs.
        """
        opt = await self._resolve_config(config, options)
        final_key = prefix_for(opt) + key
        params = assemble(Operation.PUT, opt, final_key, body)
        logger.debug("put key=%s final_key=%s", key, final_key)

        def on_progress(progress: dict[str, Any]) -> None:
            callback = opt.progress_callback
            if callback is None:
                return
            if callable(callback):
                callback(progress)
            else:
                logger.warning(
                    "progress_callback should be a function, not a %s",
                    type(callback).__name__,
                )

        started = time.perf_counter()
        try:
            uploader = self._uploader_factory(params, opt, on_progress)
            response = await uploader.upload()
        except Exception as exc:
            logger.warning(
                "upload_error key=%s error=%s",
                key,
                exc,
                extra={"extra": {"key": key, "error": str(exc)}},
            )
            self._finish(
                opt,
                method="put",
                event="upload",
                result="failed",
                started=started,
                message=f"Error uploading {key}",
            )
            raise
        logger.debug("upload_result key=%s response=%s", key, response)
        self._finish(
            opt,
            method="put",
            event="upload",
            result="success",
            started=started,
            message=f"Upload success for {key}",
        )
        return PutResult(key=key)

    async def remove(
        self,
        key: str,
        config: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> dict[str, Any]:
        """Delete ``key`` and return the raw transport response."""
        opt = await self._resolve_config(config, options)
        final_key = prefix_for(opt) + key
        params = assemble(Operation.REMOVE, opt, final_key)
        logger.debug("remove key=%s final_key=%s", key, final_key)
        started = time.perf_counter()
        try:
            transport = self._transport_factory(opt)
            response = await transport.delete_object(params)
        except Exception as exc:
            logger.warning(
                "delete_error key=%s error=%s",
                key,
                exc,
                extra={"extra": {"key": key, "error": str(exc)}},
            )
            self._finish(
                opt,
                method="remove",
                event="delete",
                result="failed",
                started=started,
                message=f"Deletion of {key} failed with {exc}",
            )
            raise
        self._finish(
            opt,
            method="remove",
            event="delete",
            result="success",
            started=started,
            message=f"Deleted {key} successfully",
        )
        return response

    async def list(
        self,
        path: str,
        config: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> list[ObjectDescriptor]:
        """List objects under ``path``; returned keys are relative to the access prefix."""
        opt = await self._resolve_config(config, options)
        prefix = prefix_for(opt)
        final_path = prefix + path
        params = assemble(Operation.LIST, opt, final_path)
        logger.debug("list path=%s final_path=%s", path, final_path)
        started = time.perf_counter()
        try:
            transport = self._transport_factory(opt)
            response = await transport.list_objects(params)
        except Exception as exc:
            logger.warning(
                "list_error path=%s error=%s",
                path,
                exc,
                extra={"extra": {"path": path, "error": str(exc)}},
            )
            self._finish(
                opt,
                method="list",
                event="list",
                result="failed",
                started=started,
                message=f"Listing items failed: {exc}",
            )
            raise

        contents = (response or {}).get("Contents") or []
        items = [ObjectDescriptor.from_listing(item, prefix) for item in contents]
        self._finish(
            opt,
            method="list",
            event="list",
            result="success",
            started=started,
            message=f"{len(items)} items returned from list operation",
        )
        return items
