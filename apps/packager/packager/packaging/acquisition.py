"""Project acquisition — gets a project into the shared runtime.

Two entry points:
    load_project_by_id(handle, project_id)  — fetch from the project host
    load_project_from_file(handle, blob)    — local sb3 bytes or file object

Both go through RuntimeHandle.ensure_runtime(), which builds the runtime
and its authoring-time storage on first use and clears previously loaded
project state on every call.
"""

import logging
from typing import BinaryIO, Callable, Optional, Union

import httpx

from packager.errors import FetchError
from packager.runtime.provider import AssetStorage, AssetType, ProjectRuntime
from packager.runtime.sb3 import Sb3Runtime
from packager.runtime.storage import WebAssetStorage, scratch_asset_url

logger = logging.getLogger(__name__)

# Timeout for project fetches
PROJECT_TIMEOUT = 30

DEFAULT_PROJECT_HOST = "https://projects.scratch.mit.edu/"
DEFAULT_ASSET_HOST = "https://assets.scratch.mit.edu/"

_WEB_ASSET_TYPES = [AssetType.IMAGE_VECTOR, AssetType.IMAGE_BITMAP, AssetType.SOUND]


class RuntimeHandle:
    """Single-owner handle around the runtime and its storage.

    Building either is deferred until the first acquisition and done at
    most once. Callers must not run acquisitions or package() calls on the
    same handle concurrently.
    """

    def __init__(
        self,
        asset_host: str = DEFAULT_ASSET_HOST,
        runtime_factory: Callable[[], ProjectRuntime] = Sb3Runtime,
        storage_factory: Callable[[], AssetStorage] = WebAssetStorage,
    ):
        self.asset_host = asset_host
        self._runtime_factory = runtime_factory
        self._storage_factory = storage_factory
        self._runtime: Optional[ProjectRuntime] = None
        self._storage: Optional[AssetStorage] = None

    @property
    def runtime(self) -> Optional[ProjectRuntime]:
        return self._runtime

    @property
    def storage(self) -> Optional[AssetStorage]:
        return self._storage

    def ensure_runtime(self) -> ProjectRuntime:
        """Return the runtime, constructing it on first use, always cleared."""
        if self._runtime is None:
            runtime = self._runtime_factory()
            storage = self._storage_factory()
            storage.add_web_store(_WEB_ASSET_TYPES, scratch_asset_url(self.asset_host))
            runtime.attach_storage(storage)
            self._runtime = runtime
            self._storage = storage
            logger.debug("Constructed runtime %s", type(runtime).__name__)

        self._runtime.clear()
        self._storage.reset_progress()
        return self._runtime


async def load_project_by_id(
    handle: RuntimeHandle,
    project_id: str,
    project_host: str = DEFAULT_PROJECT_HOST,
    timeout: float = PROJECT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Fetch a project from the project host and load it into the runtime.

    Raises:
        FetchError: On transport failure or a non-2xx response.
        RuntimeLoadError: If the runtime cannot parse the project.
    """
    url = f"{project_host.rstrip('/')}/{project_id}"

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url)
    except httpx.HTTPError as exc:
        raise FetchError(url, f"Project request failed ({exc})") from exc

    if not response.is_success:
        raise FetchError(
            url,
            f"Project request returned {response.status_code}",
            status_code=response.status_code,
        )

    logger.info("Fetched project %s (%d bytes)", project_id, len(response.content))

    runtime = handle.ensure_runtime()
    await runtime.load_project(response.content)


async def load_project_from_file(
    handle: RuntimeHandle,
    blob: Union[bytes, BinaryIO],
) -> None:
    """Load a local project (sb3 bytes or a binary file object) into the runtime.

    Raises:
        RuntimeLoadError: If the runtime cannot parse the project.
    """
    data = blob if isinstance(blob, bytes) else blob.read()

    runtime = handle.ensure_runtime()
    await runtime.load_project(data)
    logger.info("Loaded project from file (%d bytes)", len(data))
