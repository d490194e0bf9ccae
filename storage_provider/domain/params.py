"""Request parameter assembly for the storage transport.

Each operation has a params dataclass whose fields carry the S3 parameter
name in their metadata. ``to_params()`` serializes only the fields that hold
a value, so optional parameters are omitted rather than sent as ``None`` or
``""``. Only fields declared here can ever reach the transport.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from storage_provider.common.config import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_PRESIGN_EXPIRES_SECONDS,
    StorageConfig,
)
from storage_provider.domain.errors import ConfigurationError


class Operation(str, Enum):
    GET = "get"
    PUT = "put"
    REMOVE = "remove"
    LIST = "list"


def _param(name: str, *, required: bool = False) -> Any:
    return field(default=None, metadata={"param": name, "required": required})


def _present(value: Any) -> bool:
    # Falsy options (None, "", 0, {}) count as unset.
    return bool(value)


class _Params:
    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if f.metadata["required"] or _present(value):
                params[f.metadata["param"]] = value
        return params


@dataclass(frozen=True)
class GetObjectParams(_Params):
    bucket: str = _param("Bucket", required=True)
    key: str = _param("Key", required=True)
    response_cache_control: str | None = _param("ResponseCacheControl")
    response_content_disposition: str | None = _param("ResponseContentDisposition")
    response_content_encoding: str | None = _param("ResponseContentEncoding")
    response_content_language: str | None = _param("ResponseContentLanguage")
    response_content_type: str | None = _param("ResponseContentType")
    sse_customer_algorithm: str | None = _param("SSECustomerAlgorithm")
    sse_customer_key: str | None = _param("SSECustomerKey")
    sse_customer_key_md5: str | None = _param("SSECustomerKeyMD5")
    expires: int | None = _param("Expires")


@dataclass(frozen=True)
class PutObjectParams(_Params):
    bucket: str = _param("Bucket", required=True)
    key: str = _param("Key", required=True)
    body: Any = _param("Body", required=True)
    content_type: str = _param("ContentType", required=True)
    cache_control: str | None = _param("CacheControl")
    content_disposition: str | None = _param("ContentDisposition")
    expires: Any = _param("Expires")
    metadata: dict[str, str] | None = _param("Metadata")
    tagging: str | None = _param("Tagging")
    sse_customer_algorithm: str | None = _param("SSECustomerAlgorithm")
    sse_customer_key: str | None = _param("SSECustomerKey")
    sse_customer_key_md5: str | None = _param("SSECustomerKeyMD5")
    sse_kms_key_id: str | None = _param("SSEKMSKeyId")
    acl: str | None = _param("ACL")


@dataclass(frozen=True)
class DeleteObjectParams(_Params):
    bucket: str = _param("Bucket", required=True)
    key: str = _param("Key", required=True)


@dataclass(frozen=True)
class ListObjectsParams(_Params):
    bucket: str = _param("Bucket", required=True)
    prefix: str = _param("Prefix", required=True)
    max_keys: int | None = _param("MaxKeys")


RequestParams = Union[
    GetObjectParams, PutObjectParams, DeleteObjectParams, ListObjectsParams
]


def _require_bucket(config: StorageConfig) -> str:
    if not config.bucket:
        raise ConfigurationError("No bucket configured for storage")
    return config.bucket


def build_get_params(config: StorageConfig, key: str) -> GetObjectParams:
    expires = None
    if config.download is not True:
        expires = (
            config.expires or config.presign_expires or DEFAULT_PRESIGN_EXPIRES_SECONDS
        )
    return GetObjectParams(
        bucket=_require_bucket(config),
        key=key,
        response_cache_control=config.cache_control,
        response_content_disposition=config.content_disposition,
        response_content_encoding=config.content_encoding,
        response_content_language=config.content_language,
        response_content_type=config.content_type,
        sse_customer_algorithm=config.sse_customer_algorithm,
        sse_customer_key=config.sse_customer_key,
        sse_customer_key_md5=config.sse_customer_key_md5,
        expires=expires,
    )


def build_put_params(config: StorageConfig, key: str, body: Any) -> PutObjectParams:
    encryption: dict[str, Any] = {}
    # Sending ServerSideEncryption itself breaks customer-provided keys, so the
    # flag only gates the SSE-C/KMS fields and is never forwarded.
    if config.server_side_encryption:
        encryption = {
            "sse_customer_algorithm": config.sse_customer_algorithm,
            "sse_customer_key": config.sse_customer_key,
            "sse_customer_key_md5": config.sse_customer_key_md5,
            "sse_kms_key_id": config.sse_kms_key_id,
        }
    return PutObjectParams(
        bucket=_require_bucket(config),
        key=key,
        body=body,
        content_type=config.content_type or DEFAULT_CONTENT_TYPE,
        cache_control=config.cache_control,
        content_disposition=config.content_disposition,
        expires=config.expires,
        metadata=config.metadata,
        tagging=config.tagging,
        acl=config.acl,
        **encryption,
    )


def build_delete_params(config: StorageConfig, key: str) -> DeleteObjectParams:
    return DeleteObjectParams(bucket=_require_bucket(config), key=key)


def build_list_params(config: StorageConfig, prefix: str) -> ListObjectsParams:
    return ListObjectsParams(
        bucket=_require_bucket(config),
        prefix=prefix,
        max_keys=config.max_keys,
    )


def assemble(
    operation: Operation | str,
    config: StorageConfig,
    key: str,
    body: Any = None,
) -> dict[str, Any]:
    """Build the whitelisted transport parameters for ``operation``.

    ``key`` is the full storage key (prefix included) for get/put/remove and
    the full listing prefix for list.
    """
    op = Operation(operation)
    if op is Operation.GET:
        built: RequestParams = build_get_params(config, key)
    elif op is Operation.PUT:
        built = build_put_params(config, key, body)
    elif op is Operation.REMOVE:
        built = build_delete_params(config, key)
    else:
        built = build_list_params(config, key)
    return built.to_params()
