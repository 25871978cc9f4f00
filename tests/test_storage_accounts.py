import asyncio
from types import SimpleNamespace

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError, ServiceRequestError

from core.errors import Cancelled, InvalidArgument, NotFound, UpstreamError
from core.models import ENCRYPTION_OFF, ENCRYPTION_ON
from core.storage_accounts import StorageEncryptionInspector, blob_encryption_enabled
from tests.conftest import FakeManagementFactory, storage_account


@pytest.mark.parametrize("account, expected", [
    (storage_account(True), True),
    (storage_account(False), False),
    (storage_account(None), False),
    (storage_account("missing"), False),
    (SimpleNamespace(encryption=SimpleNamespace(services=None)), False),
    (SimpleNamespace(encryption=None), False),
    (SimpleNamespace(), False),
    (None, False),
])
def test_only_an_explicit_true_flag_counts(account, expected) -> None:
    assert blob_encryption_enabled(account) is expected


async def test_check_reports_turned_on(management_factory) -> None:
    inspector = StorageEncryptionInspector(management_factory)

    result = await inspector.check("sub-1", "rg-prod", "acct")

    assert result == ENCRYPTION_ON == "Encryption BLOB: Turned On"
    assert management_factory.subscriptions == ["sub-1"]
    assert management_factory.storage_accounts.calls == [("rg-prod", "acct")]
    assert management_factory.clients[0].closed


@pytest.mark.parametrize("enabled", [False, None, "missing"])
async def test_check_reports_turned_off(enabled) -> None:
    inspector = StorageEncryptionInspector(FakeManagementFactory(storage_account(enabled)))

    assert await inspector.check("sub-1", "rg", "acct") == ENCRYPTION_OFF == "Encryption BLOB: Turned Off"


async def test_unknown_account_is_not_found() -> None:
    factory = FakeManagementFactory(error=ResourceNotFoundError(
        "The Resource 'Microsoft.Storage/storageAccounts/nope' was not found."))

    with pytest.raises(NotFound, match="nope"):
        await StorageEncryptionInspector(factory).check("sub-1", "rg", "nope")

    assert factory.clients[0].closed


async def test_platform_failure_is_upstream_error() -> None:
    error = HttpResponseError(message="AuthorizationFailed")
    error.status_code = 403

    with pytest.raises(UpstreamError):
        await StorageEncryptionInspector(FakeManagementFactory(error=error)).check("sub-1", "rg", "acct")


async def test_blank_identifiers_are_invalid(management_factory) -> None:
    with pytest.raises(InvalidArgument, match="resource_group"):
        await StorageEncryptionInspector(management_factory).check("sub-1", " ", "acct")

    assert management_factory.subscriptions == []


async def test_transport_failure_is_upstream_error_without_status() -> None:
    factory = FakeManagementFactory(error=ServiceRequestError("dns"))

    with pytest.raises(UpstreamError) as excinfo:
        await StorageEncryptionInspector(factory).check("sub-1", "rg", "acct")

    assert excinfo.value.status is None
    assert factory.clients[0].closed


async def test_cancelling_lookup_raises_cancelled_and_closes_client() -> None:
    factory = FakeManagementFactory(storage_account(True), hang=True)
    task = asyncio.create_task(StorageEncryptionInspector(factory).check("sub-1", "rg", "acct"))
    await factory.storage_accounts.started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError) as excinfo:
        await task

    assert isinstance(excinfo.value, Cancelled)
    assert factory.clients[0].closed
