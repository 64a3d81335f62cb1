"""Unit tests for project acquisition and the runtime handle."""

import io

import httpx
import pytest

from packager.errors import FetchError, RuntimeLoadError
from packager.packaging.acquisition import (
    RuntimeHandle,
    load_project_by_id,
    load_project_from_file,
)
from packager.runtime.provider import Asset, AssetType
from tests.conftest import FakeRuntime, FakeStorage, make_transport

PROJECT_HOST = "http://projects.test/"


@pytest.fixture
def handle():
    return RuntimeHandle(
        asset_host="http://assets.test/",
        runtime_factory=FakeRuntime,
        storage_factory=FakeStorage,
    )


class TestRuntimeHandle:
    def test_runtime_constructed_lazily(self, handle):
        assert handle.runtime is None
        assert handle.storage is None

    def test_constructs_once_and_reuses(self, handle):
        first = handle.ensure_runtime()
        second = handle.ensure_runtime()

        assert first is second
        assert handle.storage is first.storage

    def test_clears_on_every_call(self, handle):
        runtime = handle.ensure_runtime()
        handle.ensure_runtime()
        handle.ensure_runtime()

        assert runtime.clear_calls == 3
        assert handle.storage.resets == 3

    def test_registers_authoring_asset_store(self, handle):
        handle.ensure_runtime()

        [(asset_types, url_fn)] = handle.storage.stores
        assert asset_types == [AssetType.IMAGE_VECTOR, AssetType.IMAGE_BITMAP, AssetType.SOUND]
        asset = Asset("abc123", "svg", AssetType.IMAGE_VECTOR)
        assert url_fn(asset) == "http://assets.test/internalapi/asset/abc123.svg/get/"


class TestLoadProjectById:
    @pytest.mark.asyncio
    async def test_fetches_and_loads(self, handle, project_json_bytes):
        calls: list = []
        transport = make_transport({"/10128407": (200, project_json_bytes)}, calls)

        await load_project_by_id(handle, "10128407", project_host=PROJECT_HOST, transport=transport)

        assert calls == ["http://projects.test/10128407"]
        assert handle.runtime.loaded == [project_json_bytes]

    @pytest.mark.asyncio
    async def test_http_error_raises_fetch_error(self, handle):
        transport = make_transport({"/1": (503, "unavailable")})

        with pytest.raises(FetchError) as exc_info:
            await load_project_by_id(handle, "1", project_host=PROJECT_HOST, transport=transport)

        assert exc_info.value.status_code == 503
        assert exc_info.value.url == "http://projects.test/1"

    @pytest.mark.asyncio
    async def test_transport_error_raises_fetch_error(self, handle):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        transport = make_transport({"/1": refuse})

        with pytest.raises(FetchError):
            await load_project_by_id(handle, "1", project_host=PROJECT_HOST, transport=transport)

    @pytest.mark.asyncio
    async def test_fetch_failure_does_not_touch_runtime(self, handle):
        transport = make_transport({})

        with pytest.raises(FetchError):
            await load_project_by_id(handle, "404", project_host=PROJECT_HOST, transport=transport)

        assert handle.runtime is None

    @pytest.mark.asyncio
    async def test_parse_error_propagates(self, handle):
        transport = make_transport({"/bad": (200, b"garbage")})

        with pytest.raises(RuntimeLoadError):
            await load_project_by_id(handle, "bad", project_host=PROJECT_HOST, transport=transport)


class TestLoadProjectFromFile:
    @pytest.mark.asyncio
    async def test_loads_bytes(self, handle, sb3_bytes):
        await load_project_from_file(handle, sb3_bytes)
        assert handle.runtime.loaded == [sb3_bytes]

    @pytest.mark.asyncio
    async def test_loads_file_object(self, handle, sb3_bytes):
        await load_project_from_file(handle, io.BytesIO(sb3_bytes))
        assert handle.runtime.loaded == [sb3_bytes]

    @pytest.mark.asyncio
    async def test_previous_project_is_cleared(self, handle, sb3_bytes):
        await load_project_from_file(handle, b"first project")
        runtime = handle.runtime

        await load_project_from_file(handle, sb3_bytes)

        assert runtime.clear_calls == 2
        assert await runtime.save_project_sb3() == sb3_bytes

    @pytest.mark.asyncio
    async def test_malformed_content_raises(self, handle):
        with pytest.raises(RuntimeLoadError):
            await load_project_from_file(handle, b"garbage")
