import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest
from azure.monitor.query import LogsQueryStatus

from core.blobs import BlobTextFetcher
from core.completion import CompletionGateway
from core.log_analytics import LogAnalyticsQuerier
from core.storage_accounts import StorageEncryptionInspector
from tools.toolkit import AuditToolkit


def messages_response(text="ok", status=200):
    return httpx.Response(status, json={
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
    })


class RecordingTransport:
    """Collects every request and answers with a canned response."""

    def __init__(self, response=None):
        self.requests = []
        self.response = response or messages_response()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def last_body(self):
        return json.loads(self.requests[-1].content)


class FakeDownloader:
    def __init__(self, data: bytes):
        self._data = data

    async def readall(self) -> bytes:
        return self._data


async def hang_until_cancelled(started):
    started.set()
    await asyncio.Event().wait()
    raise AssertionError("unreachable")


class FakeBlobClient:
    def __init__(self, data=None, error=None, started=None):
        self._data = data
        self._error = error
        self._started = started

    async def download_blob(self):
        if self._started is not None:
            await hang_until_cancelled(self._started)
        if self._error is not None:
            raise self._error
        return FakeDownloader(self._data)


class FakeBlobService:
    def __init__(self, blobs=None, error=None, hang=False):
        self.blobs = blobs or {}
        self.error = error
        self.hang = hang
        self.started = asyncio.Event()
        self.requested = []

    def get_blob_client(self, container, blob):
        self.requested.append((container, blob))
        started = self.started if self.hang else None
        return FakeBlobClient(self.blobs.get((container, blob), b""), self.error, started)


def logs_table(columns, rows):
    return SimpleNamespace(name="PrimaryResult", columns=list(columns), rows=[list(r) for r in rows])


class FakeLogsClient:
    def __init__(self, tables=(), status=LogsQueryStatus.SUCCESS, error=None, hang=False):
        self.tables = list(tables)
        self.status = status
        self.error = error
        self.hang = hang
        self.started = asyncio.Event()
        self.calls = []

    async def query_workspace(self, workspace_id, query, *, timespan):
        self.calls.append((workspace_id, query, timespan))
        if self.hang:
            await hang_until_cancelled(self.started)
        if self.error is not None:
            raise self.error
        if self.status == LogsQueryStatus.PARTIAL:
            return SimpleNamespace(status=self.status, partial_data=self.tables,
                                   partial_error="query timed out")
        return SimpleNamespace(status=self.status, tables=self.tables)


def storage_account(enabled):
    blob = None if enabled == "missing" else SimpleNamespace(enabled=enabled)
    return SimpleNamespace(
        name="acct",
        encryption=SimpleNamespace(services=SimpleNamespace(blob=blob)),
    )


class FakeStorageAccounts:
    def __init__(self, account=None, error=None, hang=False):
        self.account = account
        self.error = error
        self.hang = hang
        self.started = asyncio.Event()
        self.calls = []

    async def get_properties(self, resource_group, account_name):
        self.calls.append((resource_group, account_name))
        if self.hang:
            await hang_until_cancelled(self.started)
        if self.error is not None:
            raise self.error
        return self.account


class FakeManagementClient:
    def __init__(self, storage_accounts):
        self.storage_accounts = storage_accounts
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True


class FakeManagementFactory:
    def __init__(self, account=None, error=None, hang=False):
        self.storage_accounts = FakeStorageAccounts(account, error, hang)
        self.subscriptions = []
        self.clients = []

    def __call__(self, subscription_id):
        self.subscriptions.append(subscription_id)
        client = FakeManagementClient(self.storage_accounts)
        self.clients.append(client)
        return client


class HangingTransport:
    """Never answers; used to cancel a request mid-flight."""

    def __init__(self):
        self.started = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await hang_until_cancelled(self.started)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
async def http_client(transport):
    async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
        yield client


@pytest.fixture
def gateway(http_client):
    return CompletionGateway(http_client, api_key="test-key", model="claude-test")


@pytest.fixture
def blob_service():
    return FakeBlobService({("docs", "policy.md"): "Zażółć policy".encode("utf-8")})


@pytest.fixture
def logs_client():
    return FakeLogsClient([logs_table(["Name", "Note"], [["x", "a,b"]])])


@pytest.fixture
def management_factory():
    return FakeManagementFactory(storage_account(True))


@pytest.fixture
def toolkit(gateway, blob_service, logs_client, management_factory):
    return AuditToolkit(
        completion=gateway,
        blobs=BlobTextFetcher(blob_service),
        logs=LogAnalyticsQuerier(logs_client),
        storage=StorageEncryptionInspector(management_factory),
    )
