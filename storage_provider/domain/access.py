from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from storage_provider.common.config import CustomPrefix
from storage_provider.domain.errors import ConfigurationError

if TYPE_CHECKING:
    from storage_provider.common.config import StorageConfig


class AccessLevel(str, Enum):
    PRIVATE = "private"
    PROTECTED = "protected"
    PUBLIC = "public"

    @classmethod
    def coerce(cls, value: "str | AccessLevel | None") -> "AccessLevel":
        """Map a configured level onto the enum; unknown or absent is public."""
        if isinstance(value, AccessLevel):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.PUBLIC


def resolve_prefix(
    level: "str | AccessLevel | None",
    identity_id: str | None,
    custom_prefix: CustomPrefix | None = None,
) -> str:
    """Compute the storage key prefix for an access level.

    ``private`` and ``protected`` are scoped to ``identity_id`` and always end
    with ``/``. Everything else maps to the public prefix. An override set to
    the empty string is honoured; only ``None`` falls back to the default.

    Raises:
        ConfigurationError: If a scoped level is requested without an identity.
    """
    custom = custom_prefix or CustomPrefix()
    access = AccessLevel.coerce(level)

    if access is AccessLevel.PUBLIC:
        return custom.public if custom.public is not None else "public/"

    if not identity_id:
        raise ConfigurationError(
            f"identity_id is required for {access.value} access"
        )
    if access is AccessLevel.PRIVATE:
        base = custom.private if custom.private is not None else "private/"
    else:
        base = custom.protected if custom.protected is not None else "protected/"
    return f"{base}{identity_id}/"


def prefix_for(config: "StorageConfig") -> str:
    """Resolve the prefix for a merged config, falling back to the credential identity."""
    identity_id = config.identity_id
    if not identity_id and config.credentials is not None:
        identity_id = config.credentials.identity_id
    return resolve_prefix(config.level, identity_id, config.custom_prefix)
