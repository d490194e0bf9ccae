from __future__ import annotations

import pytest

from storage_provider.common.config import get_settings
from storage_provider.common.events import STORAGE_CHANNEL, EventHub, HubMessage
from storage_provider.services.storage_service import StorageService
from tests.services.mock_storage import (
    MockCredentialProvider,
    MockTransport,
    MockUploaderFactory,
)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def hub():
    return EventHub()


@pytest.fixture()
def events(hub):
    received: list[HubMessage] = []
    hub.listen(STORAGE_CHANNEL, received.append)
    return received


@pytest.fixture()
def credential_provider():
    return MockCredentialProvider()


@pytest.fixture()
def transport():
    return MockTransport()


@pytest.fixture()
def uploader_factory(transport):
    # Uploads land in the same object map the transport reads from.
    return MockUploaderFactory(objects=transport.objects)


@pytest.fixture()
def storage(credential_provider, transport, uploader_factory, hub):
    return StorageService(
        {"bucket": "test-bucket", "region": "us-east-1", "track": True},
        credential_provider=credential_provider,
        transport_factory=transport.factory,
        uploader_factory=uploader_factory,
        hub=hub,
        enable_metrics=False,
    )
