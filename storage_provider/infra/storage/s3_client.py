"""S3-compatible storage transport implementation.

This module provides the boto3-backed transport, managed uploader and the
factories the storage service uses to build them per call. boto3 is
synchronous, so every call is pushed onto the event loop's default executor.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import asyncio
import io
import threading
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from storage_provider.common.config import LOCAL_TESTING_ENDPOINT
from storage_provider.infra.storage.client import (
    ProgressCallback,
    SignedUrlError,
    StorageError,
)

if TYPE_CHECKING:
    from storage_provider.common.config import StorageConfig

T = TypeVar("T")

USER_AGENT_EXTRA = "storage-provider"

# Keys the managed uploader passes positionally rather than as ExtraArgs.
_UPLOAD_POSITIONAL_KEYS = frozenset({"Bucket", "Key", "Body"})


async def _run_in_executor(func: Callable[..., T], **kwargs: Any) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, **kwargs))


def build_s3_client(config: "StorageConfig") -> Any:
    """Create a boto3 S3 client for the region and credentials in ``config``."""
    try:
        import boto3
        from botocore.config import Config
    except ImportError as exc:
        raise StorageError(
            "boto3 and botocore are required for the S3 storage backend. "
            "Install with: pip install boto3"
        ) from exc

    kwargs: dict[str, Any] = {"region_name": config.region}
    credentials = config.credentials
    if credentials is not None:
        kwargs.update(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
        )

    if config.dangerously_connect_to_http_endpoint_for_testing:
        kwargs.update(endpoint_url=LOCAL_TESTING_ENDPOINT, use_ssl=False)
        botocore_config = Config(
            s3={"addressing_style": "path"},
            user_agent_extra=USER_AGENT_EXTRA,
        )
    else:
        botocore_config = Config(user_agent_extra=USER_AGENT_EXTRA)

    return boto3.client("s3", config=botocore_config, **kwargs)


class S3StorageTransport:
    """S3-compatible object transport.

    Errors raised by botocore propagate unchanged; only presigning wraps its
    failures in :class:`SignedUrlError`.
    """

    def __init__(self, config: "StorageConfig") -> None:
        self._client = self._build_client(config)

    @staticmethod
    def _build_client(config: "StorageConfig") -> Any:
        return build_s3_client(config)

    async def get_object(self, params: dict[str, Any]) -> dict[str, Any]:
        return await _run_in_executor(self._client.get_object, **params)

    async def delete_object(self, params: dict[str, Any]) -> dict[str, Any]:
        return await _run_in_executor(self._client.delete_object, **params)

    async def list_objects(self, params: dict[str, Any]) -> dict[str, Any]:
        return await _run_in_executor(self._client.list_objects, **params)

    async def presign_get_object(
        self, params: dict[str, Any], *, expires_in: int
    ) -> str:
        # The expiry travels as ExpiresIn; GetObject itself has no Expires field.
        request_params = {k: v for k, v in params.items() if k != "Expires"}
        try:
            url = await _run_in_executor(
                self._client.generate_presigned_url,
                ClientMethod="get_object",
                Params=request_params,
                ExpiresIn=int(expires_in),
            )
        except Exception as exc:
            raise SignedUrlError(f"Failed to generate download URL: {exc}") from exc

        if not url:
            raise SignedUrlError("Generated presigned URL is empty")

        return str(url)


def _as_fileobj(body: Any) -> Any:
    if isinstance(body, str):
        return io.BytesIO(body.encode("utf-8"))
    if isinstance(body, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(body))
    if hasattr(body, "read"):
        return body
    raise TypeError(f"Unsupported upload body type: {type(body).__name__}")


def _body_size(fileobj: Any) -> int | None:
    try:
        position = fileobj.tell()
        fileobj.seek(0, io.SEEK_END)
        size = fileobj.tell()
        fileobj.seek(position)
    except (AttributeError, OSError, ValueError):
        return None
    return size - position


class S3ManagedUpload:
    """Managed (multipart when large) upload through boto3's transfer manager.

    Progress callbacks arrive from transfer worker threads and report the
    cumulative byte count as ``{"loaded", "total", "key"}``.
    """

    def __init__(
        self,
        params: dict[str, Any],
        config: "StorageConfig",
        on_progress: ProgressCallback,
    ) -> None:
        self._params = params
        self._on_progress = on_progress
        self._client = self._build_client(config)
        self._lock = threading.Lock()
        self._loaded = 0

    @staticmethod
    def _build_client(config: "StorageConfig") -> Any:
        return build_s3_client(config)

    def _progress(self, total: int | None, chunk: int) -> None:
        with self._lock:
            self._loaded += chunk
            loaded = self._loaded
        self._on_progress({"loaded": loaded, "total": total, "key": self._params["Key"]})

    async def upload(self) -> dict[str, Any]:
        fileobj = _as_fileobj(self._params["Body"])
        total = _body_size(fileobj)
        extra_args = {
            k: v for k, v in self._params.items() if k not in _UPLOAD_POSITIONAL_KEYS
        }
        await _run_in_executor(
            self._client.upload_fileobj,
            Fileobj=fileobj,
            Bucket=self._params["Bucket"],
            Key=self._params["Key"],
            ExtraArgs=extra_args or None,
            Callback=partial(self._progress, total),
        )
        return {"Bucket": self._params["Bucket"], "Key": self._params["Key"]}


def build_transport(config: "StorageConfig") -> S3StorageTransport:
    return S3StorageTransport(config)


def build_uploader(
    params: dict[str, Any],
    config: "StorageConfig",
    on_progress: ProgressCallback,
) -> S3ManagedUpload:
    return S3ManagedUpload(params, config, on_progress)
