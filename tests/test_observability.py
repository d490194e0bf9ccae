from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from storage_provider.infra.observability.metrics import record_operation
from storage_provider.services.storage_service import StorageService


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_record_operation_counts_and_times():
    before = _sample("storage_operations_total", {"method": "list", "result": "success"})

    record_operation("list", "success", 0.01)

    after = _sample("storage_operations_total", {"method": "list", "result": "success"})
    assert after == before + 1
    assert _sample("storage_operation_duration_seconds_count", {"method": "list"}) >= 1


@pytest.mark.asyncio
async def test_service_records_failed_operations(credential_provider, transport, hub):
    service = StorageService(
        {"bucket": "test-bucket"},
        credential_provider=credential_provider,
        transport_factory=transport.factory,
        hub=hub,
    )
    transport.error = RuntimeError("boom")
    before = _sample("storage_operations_total", {"method": "remove", "result": "failed"})

    with pytest.raises(RuntimeError):
        await service.remove("a.txt")

    assert _sample("storage_operations_total", {"method": "remove", "result": "failed"}) == before + 1


@pytest.mark.asyncio
async def test_download_bytes_counted(credential_provider, transport, hub):
    service = StorageService(
        {"bucket": "test-bucket"},
        credential_provider=credential_provider,
        transport_factory=transport.factory,
        hub=hub,
    )
    transport.objects["test-bucket/public/a.bin"] = b"12345678"
    before = _sample("storage_download_bytes_total")

    await service.get("a.bin", download=True)

    assert _sample("storage_download_bytes_total") == before + 8
