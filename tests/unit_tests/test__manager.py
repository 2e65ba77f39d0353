import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from botocore.exceptions import ClientError

from file_manager_api.manager import (
    IDLE,
    IN_FLIGHT,
    Failed,
    FileManager,
    FileManagerClient,
    FileManagerClientError,
    OperationCategory,
    UploadSource,
    format_size,
)
from file_manager_api.schemas import FileRecord
from tests.consts import TEST_BUCKET_NAME

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


class FakeClient:
    """Stands in for `FileManagerClient`; each call can be held open or made to fail."""

    def __init__(self):
        self.calls = []
        self.gate = None
        self.fail = set()
        self.files = []

    async def _call(self, name, *args):
        self.calls.append((name, *args))
        if self.gate is not None:
            await self.gate.wait()
        if name in self.fail:
            raise FileManagerClientError(500, f"{name} failed")

    async def list_files(self):
        await self._call("list")
        return list(self.files)

    async def upload_file(self, filename, content, content_type=None):
        await self._call("upload", filename)

    async def delete_file(self, name):
        await self._call("delete", name)


def record(name: str) -> FileRecord:
    return FileRecord(
        name=name,
        size=2048,
        last_modified=datetime(2024, 5, 1, tzinfo=timezone.utc),
        url=f"https://files.example.com/{name}",
    )


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def manager(fake_client):
    return FileManager(fake_client)


def test_format_size():
    assert format_size(20480) == "20.0 KB"
    assert format_size(1536) == "1.5 KB"


def test_initial_state(manager):
    assert all(manager.state(category) == IDLE for category in OperationCategory)
    assert manager.error is None
    assert manager.files == []


async def test_refresh__success(manager, fake_client):
    fake_client.files = [record("1-cat.png")]

    assert await manager.refresh() is True

    assert [f.name for f in manager.files] == ["1-cat.png"]
    assert manager.state(OperationCategory.LIST) == IDLE
    assert manager.error is None


async def test_refresh__failure_keeps_previous_files(manager, fake_client):
    fake_client.files = [record("1-cat.png")]
    await manager.refresh()
    fake_client.fail.add("list")

    assert await manager.refresh() is False

    assert manager.state(OperationCategory.LIST) == Failed("Failed to fetch files")
    assert manager.error == "Failed to fetch files"
    assert [f.name for f in manager.files] == ["1-cat.png"]


async def test_refresh__failed_first_listing_is_not_empty(manager, fake_client):
    fake_client.fail.add("list")

    assert await manager.refresh() is False

    assert manager.files == []
    assert not manager.is_empty


async def test_refresh__in_flight_while_waiting(manager, fake_client):
    fake_client.gate = asyncio.Event()

    task = asyncio.create_task(manager.refresh())
    await asyncio.sleep(0)
    assert manager.state(OperationCategory.LIST) == IN_FLIGHT
    assert not manager.is_empty

    fake_client.gate.set()
    await task
    assert manager.state(OperationCategory.LIST) == IDLE
    assert manager.is_empty


async def test_upload__refreshes_afterwards(manager, fake_client):
    assert await manager.upload("cat.png", PNG, "image/png") is True

    assert fake_client.calls == [("upload", "cat.png"), ("list",)]
    assert manager.state(OperationCategory.UPLOAD) == IDLE


async def test_upload__dropped_non_image_is_ignored(manager, fake_client):
    assert await manager.upload("notes.txt", b"hi", "text/plain", source=UploadSource.DROP) is False

    assert fake_client.calls == []
    assert manager.state(OperationCategory.UPLOAD) == IDLE


async def test_upload__browsed_non_image_is_sent(manager, fake_client):
    assert await manager.upload("notes.txt", b"hi", "text/plain", source=UploadSource.BROWSE) is True

    assert fake_client.calls[0] == ("upload", "notes.txt")


async def test_upload__dropped_image_is_sent(manager, fake_client):
    assert await manager.upload("cat.png", PNG, "image/png", source=UploadSource.DROP) is True

    assert fake_client.calls[0] == ("upload", "cat.png")


async def test_upload__failure_still_refreshes(manager, fake_client):
    fake_client.fail.add("upload")

    assert await manager.upload("cat.png", PNG, "image/png") is False

    assert fake_client.calls == [("upload", "cat.png"), ("list",)]
    assert manager.state(OperationCategory.UPLOAD) == Failed("Failed to upload file")
    assert manager.state(OperationCategory.LIST) == IDLE
    assert manager.error == "Failed to upload file"


async def test_upload__second_upload_refused_while_in_flight(manager, fake_client):
    fake_client.gate = asyncio.Event()

    first = asyncio.create_task(manager.upload("a.png", PNG, "image/png"))
    await asyncio.sleep(0)
    assert manager.state(OperationCategory.UPLOAD) == IN_FLIGHT

    assert await manager.upload("b.png", PNG, "image/png") is False

    fake_client.gate.set()
    assert await first is True
    assert [call for call in fake_client.calls if call[0] == "upload"] == [("upload", "a.png")]


async def test_delete__global_lock(manager, fake_client):
    fake_client.gate = asyncio.Event()

    first = asyncio.create_task(manager.delete("1-a.png"))
    await asyncio.sleep(0)
    assert manager.state(OperationCategory.DELETE) == IN_FLIGHT

    # a different key is refused too: the lock is not per key
    assert await manager.delete("2-b.png") is False

    fake_client.gate.set()
    assert await first is True
    assert manager.state(OperationCategory.DELETE) == IDLE
    assert [call for call in fake_client.calls if call[0] == "delete"] == [("delete", "1-a.png")]


async def test_delete__failure_sets_banner(manager, fake_client):
    fake_client.fail.add("delete")

    assert await manager.delete("1-a.png") is False

    assert manager.state(OperationCategory.DELETE) == Failed("Failed to delete file")
    assert manager.error == "Failed to delete file"
    assert fake_client.calls[-1] == ("list",)


async def test_error_cleared_by_next_action(manager, fake_client):
    fake_client.fail.add("delete")
    await manager.delete("1-a.png")
    fake_client.fail.clear()

    assert await manager.delete("1-a.png") is True

    assert manager.error is None
    assert manager.state(OperationCategory.DELETE) == IDLE



# --- malformed responses ---


def malformed_manager(routes: dict) -> FileManager:
    """A manager whose API answers each path with a canned response."""
    requests = []

    def respond(request: httpx.Request) -> httpx.Response:
        requests.append(request.url.path)
        return routes[request.url.path]()

    http = httpx.AsyncClient(transport=httpx.MockTransport(respond), base_url="http://testserver")
    manager = FileManager(FileManagerClient(http))
    manager.requests = requests
    return manager


async def test_delete__non_object_error_body_releases_lock():
    manager = malformed_manager({
        "/v1/files/delete": lambda: httpx.Response(500, json=["boom"]),
        "/v1/files/list": lambda: httpx.Response(200, text="<html>"),
    })

    assert await manager.delete("1-cat.png") is False
    assert manager.state(OperationCategory.DELETE) == Failed("Failed to delete file")
    assert manager.state(OperationCategory.LIST) == Failed("Failed to fetch files")

    assert await manager.delete("1-cat.png") is False
    assert manager.requests.count("/v1/files/delete") == 2


async def test_upload__non_json_listing_releases_lock():
    manager = malformed_manager({
        "/v1/files/upload": lambda: httpx.Response(200, json={"success": True}),
        "/v1/files/list": lambda: httpx.Response(200, text="<html>"),
    })

    assert await manager.upload("cat.png", PNG, "image/png") is True
    assert manager.state(OperationCategory.UPLOAD) == IDLE
    assert manager.state(OperationCategory.LIST) == Failed("Failed to fetch files")

    assert await manager.upload("dog.png", PNG, "image/png") is True
    assert manager.requests.count("/v1/files/upload") == 2


async def test_refresh__listing_with_wrong_shape_fails():
    manager = malformed_manager({
        "/v1/files/list": lambda: httpx.Response(200, json={"files": [{"name": "1-cat.png"}]}),
    })

    assert await manager.refresh() is False
    assert manager.state(OperationCategory.LIST) == Failed("Failed to fetch files")
    assert manager.error == "Failed to fetch files"


# --- against the real app and a moto bucket ---


async def test_file_manager__upload_list_delete(file_manager, mocked_aws):
    assert await file_manager.refresh() is True
    assert file_manager.is_empty

    assert await file_manager.upload("cat.png", PNG, "image/png", source=UploadSource.DROP) is True
    assert len(file_manager.files) == 1
    name = file_manager.files[0].name
    assert name.endswith("-cat.png")
    assert file_manager.files[0].size == len(PNG)

    assert await file_manager.delete(name) is True
    assert file_manager.files == []
    assert file_manager.error is None


async def test_file_manager__server_error_sets_banner(file_manager, app, monkeypatch):
    def denied(*args, **kwargs):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")

    monkeypatch.setattr(app.state.s3_client, "put_object", denied)

    assert await file_manager.upload("cat.png", PNG, "image/png") is False
    assert file_manager.error == "Failed to upload file"
    assert file_manager.state(OperationCategory.LIST) == IDLE


async def test_file_manager__missing_bucket(file_manager, mocked_aws):
    mocked_aws.delete_bucket(Bucket=TEST_BUCKET_NAME)

    assert await file_manager.refresh() is False
    assert file_manager.error == "Failed to fetch files"
