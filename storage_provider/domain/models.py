from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class ObjectDescriptor:
    """A listed object, keyed relative to the resolved access prefix."""

    key: str
    etag: str | None
    last_modified: datetime | None
    size: int | None

    @classmethod
    def from_listing(cls, item: Mapping[str, Any], prefix: str) -> "ObjectDescriptor":
        full_key = str(item.get("Key", ""))
        key = full_key[len(prefix):] if full_key.startswith(prefix) else full_key
        size = item.get("Size")
        return cls(
            key=key,
            etag=item.get("ETag"),
            last_modified=item.get("LastModified"),
            size=int(size) if size is not None else None,
        )


@dataclass(frozen=True, slots=True)
class PutResult:
    """Result of a successful upload: the caller's key, without prefix."""

    key: str
