"""Shared test fixtures for the packager test suite.

Remote endpoints are replaced with httpx.MockTransport; no real network
calls are made. sb3 archives are built in memory with zipfile.
"""

import io
import json
import logging
import struct
import zipfile
from typing import Callable, Optional, Union

import httpx
import pytest

from packager.core.logging import _HANDLER_NAME
from packager.errors import RuntimeLoadError

SCAFFOLDING_JS = "window.Scaffolding = {};"
ADDONS_JS = "window.ScaffoldingAddons = {run() {}};"

PROJECT_JSON = {
    "targets": [
        {
            "isStage": True,
            "name": "Stage",
            "costumes": [
                {"assetId": "cd21514d0531fdffb22204e0ec5ed84a", "dataFormat": "svg",
                 "md5ext": "cd21514d0531fdffb22204e0ec5ed84a.svg"},
            ],
            "sounds": [],
        },
        {
            "isStage": False,
            "name": "Sprite1",
            "costumes": [
                {"assetId": "bcf454acf82e4504149f7ffe07081dbc", "dataFormat": "png",
                 "md5ext": "bcf454acf82e4504149f7ffe07081dbc.png"},
            ],
            "sounds": [
                {"assetId": "83a9787d4cb6f3b7632b4ddfebf74367", "dataFormat": "wav",
                 "md5ext": "83a9787d4cb6f3b7632b4ddfebf74367.wav"},
            ],
        },
    ],
    "meta": {"semver": "3.0.0"},
}


def build_zip(entries: dict[str, bytes]) -> bytes:
    """Build an in-memory ZIP with the given name -> content entries."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def build_corrupt_zip(name: str, content: bytes) -> bytes:
    """A ZIP whose directory is intact but whose deflate stream is not.

    The first compressed byte becomes 0xFF, a reserved deflate block type.
    """
    data = bytearray(build_zip({name: content}))
    # Local file header: 30 fixed bytes, then the name and extra field
    name_len, extra_len = struct.unpack_from("<HH", data, 26)
    data[30 + name_len + extra_len] = 0xFF
    return bytes(data)


def read_zip(data: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


class FakeStorage:
    """AssetStorage stand-in that records registered stores."""

    def __init__(self) -> None:
        self.stores: list = []
        self.on_progress = None
        self.resets = 0

    def add_web_store(self, asset_types, url_fn) -> None:
        self.stores.append((list(asset_types), url_fn))

    def reset_progress(self) -> None:
        self.resets += 1

    async def load(self, asset) -> bytes:
        return f"asset:{asset.md5ext}".encode()


class FakeRuntime:
    """ProjectRuntime stand-in: stores whatever it is given as the sb3."""

    def __init__(self) -> None:
        self.storage = None
        self.project: Optional[bytes] = None
        self.clear_calls = 0
        self.loaded: list = []

    def clear(self) -> None:
        self.clear_calls += 1
        self.project = None

    def attach_storage(self, storage) -> None:
        self.storage = storage

    async def load_project(self, data) -> None:
        self.loaded.append(data)
        if data == b"garbage":
            raise RuntimeLoadError("Project is not valid JSON")
        self.project = data if isinstance(data, bytes) else data.encode()

    async def save_project_sb3(self) -> bytes:
        if self.project is None:
            raise RuntimeLoadError("No project loaded")
        return self.project


Route = Union[tuple[int, Union[str, bytes]], Callable[[httpx.Request], httpx.Response]]


def make_transport(routes: dict[str, Route], calls: Optional[list] = None) -> httpx.MockTransport:
    """MockTransport serving `routes` keyed by URL path; unknown paths 404.

    A route is either (status, body) or a handler returning a Response.
    Handlers may be async.
    """

    async def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            result = route(request)
            if hasattr(result, "__await__"):
                result = await result
            return result
        status_code, body = route
        if isinstance(body, bytes):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, text=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def project_json_bytes() -> bytes:
    return json.dumps(PROJECT_JSON).encode("utf-8")


@pytest.fixture
def sb3_bytes(project_json_bytes) -> bytes:
    """A minimal sb3: project.json plus one bitmap asset."""
    return build_zip({
        "project.json": project_json_bytes,
        "a.png": b"\x89PNG fake image bytes",
    })


@pytest.fixture
def resource_routes() -> dict:
    return {
        "/scaffolding.js": (200, SCAFFOLDING_JS),
        "/addons.js": (200, ADDONS_JS),
    }


def capture_packager_log() -> io.StringIO:
    """Point the configured stdlib log handler at a buffer and return it."""
    stream = io.StringIO()
    for handler in logging.getLogger().handlers:
        if handler.get_name() == _HANDLER_NAME:
            handler.setStream(stream)
    return stream


def json_log_lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.startswith("{")]
