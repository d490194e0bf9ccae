from __future__ import annotations

import dataclasses
import logging

from storage_provider.common.config import StorageConfig
from storage_provider.common.logging import mask_sensitive
from storage_provider.infra.storage.client import CredentialProvider

logger = logging.getLogger("storage")


class CredentialGate:
    """Resolves credentials ahead of every storage operation.

    The gate never raises: a missing credential or a provider failure both
    collapse to ``False`` and leave the config untouched.
    """

    def __init__(self, provider: CredentialProvider) -> None:
        self._provider = provider

    async def ensure(self, config: StorageConfig) -> tuple[bool, StorageConfig]:
        try:
            credentials = await self._provider.get()
            if not credentials:
                return False, config
            sheared = self._provider.shear(credentials)
        except Exception as exc:
            logger.warning(
                "ensure_credentials_error error=%s",
                exc,
                extra={"extra": {"error": str(exc)}},
            )
            return False, config

        logger.debug(
            "set_credentials_for_storage",
            extra={"extra": {"credentials": mask_sensitive(dataclasses.asdict(sheared))}},
        )
        return True, config.with_credentials(sheared)
