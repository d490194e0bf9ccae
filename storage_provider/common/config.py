from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Mapping

if TYPE_CHECKING:
    from storage_provider.infra.storage.client import Credentials

ENV_FILE = Path(".env")

DEFAULT_PRESIGN_EXPIRES_SECONDS = 900
DEFAULT_CONTENT_TYPE = "binary/octet-stream"
LOCAL_TESTING_ENDPOINT = "http://localhost:20005"

logger = logging.getLogger("storage")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_int(value: str | None, default: int | None) -> int | None:
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass(frozen=True, slots=True)
class CustomPrefix:
    """Per-level prefix overrides. ``None`` means "use the default"."""

    public: str | None = None
    protected: str | None = None
    private: str | None = None

    @classmethod
    def coerce(cls, value: Any) -> "CustomPrefix":
        if value is None:
            return cls()
        if isinstance(value, CustomPrefix):
            return value
        if isinstance(value, Mapping):
            return cls(
                public=value.get("public"),
                protected=value.get("protected"),
                private=value.get("private"),
            )
        raise TypeError(f"custom_prefix must be a mapping, not {type(value).__name__}")


# Option names accepted in the camelCase shape used by web/mobile storage configs.
_OPTION_ALIASES: dict[str, str] = {
    "identityId": "identity_id",
    "customPrefix": "custom_prefix",
    "contentType": "content_type",
    "cacheControl": "cache_control",
    "contentDisposition": "content_disposition",
    "contentEncoding": "content_encoding",
    "contentLanguage": "content_language",
    "serverSideEncryption": "server_side_encryption",
    "SSECustomerAlgorithm": "sse_customer_algorithm",
    "SSECustomerKey": "sse_customer_key",
    "SSECustomerKeyMD5": "sse_customer_key_md5",
    "SSEKMSKeyId": "sse_kms_key_id",
    "progressCallback": "progress_callback",
    "maxKeys": "max_keys",
    "presignExpires": "presign_expires",
    "dangerouslyConnectToHttpEndpointForTesting": (
        "dangerously_connect_to_http_endpoint_for_testing"
    ),
}


@dataclass(frozen=True)
class StorageConfig:
    """Immutable snapshot of storage options.

    A facade holds one base snapshot; every call merges its overrides onto it
    with :meth:`merge` and works on the result. Nothing here is mutated in
    place, so reconfiguration never leaks into calls already in flight.
    """

    bucket: str | None = None
    region: str | None = None
    level: str | None = None
    identity_id: str | None = None
    custom_prefix: CustomPrefix = field(default_factory=CustomPrefix)
    download: bool = False
    content_type: str | None = None
    cache_control: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    content_language: str | None = None
    expires: Any = None
    presign_expires: int | None = None
    metadata: dict[str, str] | None = None
    tagging: str | None = None
    acl: str | None = None
    server_side_encryption: str | None = None
    sse_customer_algorithm: str | None = None
    sse_customer_key: str | None = None
    sse_customer_key_md5: str | None = None
    sse_kms_key_id: str | None = None
    track: bool = False
    progress_callback: Callable[[dict[str, Any]], Any] | None = None
    max_keys: int | None = None
    credentials: "Credentials | None" = None
    dangerously_connect_to_http_endpoint_for_testing: bool = False

    @classmethod
    def option_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in dataclasses.fields(cls))

    def merge(self, overrides: Mapping[str, Any] | None = None) -> "StorageConfig":
        """Return a new snapshot with ``overrides`` shallow-merged on top.

        Keys may use snake_case or the camelCase aliases. Unknown keys are
        dropped so arbitrary options can never become request parameters.
        """
        if not overrides:
            return self
        names = self.option_names()
        changes: dict[str, Any] = {}
        for raw_key, value in overrides.items():
            name = _OPTION_ALIASES.get(raw_key, raw_key)
            if name not in names:
                logger.debug("storage_option_ignored option=%s", raw_key)
                continue
            if name == "custom_prefix":
                value = CustomPrefix.coerce(value)
            changes[name] = value
        if not changes:
            return self
        return dataclasses.replace(self, **changes)

    def with_credentials(self, credentials: "Credentials") -> "StorageConfig":
        return dataclasses.replace(self, credentials=credentials)


def parse_storage_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Extract storage options from a plain, sectioned or mobile-hub config.

    Supports ``{"Storage": {...}}`` sections as well as the flat
    ``aws_user_files_s3_bucket`` / ``aws_user_files_s3_bucket_region`` keys
    emitted by mobile-hub style exports.
    """
    if "Storage" in config and isinstance(config["Storage"], Mapping):
        options = dict(config["Storage"])
    else:
        options = {
            key: value
            for key, value in config.items()
            if not key.startswith("aws_user_files_")
        }
    bucket = config.get("aws_user_files_s3_bucket")
    if bucket:
        options.setdefault("bucket", bucket)
        region = config.get("aws_user_files_s3_bucket_region")
        if region:
            options.setdefault("region", region)
    return options


@dataclass
class Settings:
    STORAGE_BUCKET: str | None = None
    STORAGE_REGION: str | None = None
    STORAGE_LEVEL: str = "public"
    STORAGE_TRACK: bool = False
    STORAGE_PRESIGN_EXPIRES_SECONDS: int = DEFAULT_PRESIGN_EXPIRES_SECONDS
    STORAGE_MAX_KEYS: int | None = None
    STORAGE_LOCAL_TESTING: bool = False
    STORAGE_IDENTITY_ID: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_SESSION_TOKEN: str | None = None
    ENABLE_METRICS: bool = True

    def __post_init__(self) -> None:
        if self.STORAGE_PRESIGN_EXPIRES_SECONDS <= 0:
            raise ValueError("STORAGE_PRESIGN_EXPIRES_SECONDS must be positive.")
        if self.STORAGE_MAX_KEYS is not None and self.STORAGE_MAX_KEYS <= 0:
            raise ValueError("STORAGE_MAX_KEYS must be positive when set.")

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.S3_ACCESS_KEY_ID and self.S3_SECRET_ACCESS_KEY)

    def to_storage_config(self) -> StorageConfig:
        return StorageConfig(
            bucket=self.STORAGE_BUCKET,
            region=self.STORAGE_REGION,
            level=self.STORAGE_LEVEL,
            identity_id=self.STORAGE_IDENTITY_ID,
            track=self.STORAGE_TRACK,
            presign_expires=self.STORAGE_PRESIGN_EXPIRES_SECONDS,
            max_keys=self.STORAGE_MAX_KEYS,
            dangerously_connect_to_http_endpoint_for_testing=self.STORAGE_LOCAL_TESTING,
        )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            STORAGE_BUCKET=os.environ.get("STORAGE_BUCKET"),
            STORAGE_REGION=os.environ.get("STORAGE_REGION"),
            STORAGE_LEVEL=os.environ.get("STORAGE_LEVEL", cls.STORAGE_LEVEL),
            STORAGE_TRACK=_as_bool(os.environ.get("STORAGE_TRACK"), cls.STORAGE_TRACK),
            STORAGE_PRESIGN_EXPIRES_SECONDS=_as_int(
                os.environ.get("STORAGE_PRESIGN_EXPIRES_SECONDS"),
                cls.STORAGE_PRESIGN_EXPIRES_SECONDS,
            ),
            STORAGE_MAX_KEYS=_as_int(os.environ.get("STORAGE_MAX_KEYS"), None),
            STORAGE_LOCAL_TESTING=_as_bool(
                os.environ.get("STORAGE_LOCAL_TESTING"), cls.STORAGE_LOCAL_TESTING
            ),
            STORAGE_IDENTITY_ID=os.environ.get("STORAGE_IDENTITY_ID"),
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_SESSION_TOKEN=os.environ.get("S3_SESSION_TOKEN"),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
