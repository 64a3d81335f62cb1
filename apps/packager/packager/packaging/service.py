"""Packaging service — the configuration holder and package() entry point.

A Packager owns one RuntimeHandle and one ResourceLoader for its lifetime.
Configuration is mutable between calls; each package() call snapshots it.
Acquisition and packaging share the runtime, so they are serialized with
an asyncio.Lock.
"""

import asyncio
import dataclasses
import functools
import uuid
from typing import Awaitable, BinaryIO, Callable, Optional, Union

import httpx
import structlog

from packager.core.config import Settings
from packager.core.logging import reset_packaging_id, set_packaging_id
from packager.errors import RuntimeLoadError
from packager.packaging.acquisition import (
    DEFAULT_PROJECT_HOST,
    PROJECT_TIMEOUT,
    RuntimeHandle,
    load_project_by_id,
    load_project_from_file,
)
from packager.packaging.assembler import assemble
from packager.packaging.document import generate_document
from packager.packaging.resources import ResourceLoader
from packager.packaging.types import GeneratedArtifact, OutputTarget, PackagingConfig
from packager.runtime.storage import WebAssetStorage

log = structlog.get_logger(__name__)


async def package(
    handle: RuntimeHandle,
    config: PackagingConfig,
    script: str,
    target: OutputTarget,
) -> GeneratedArtifact:
    """Serialize the loaded project, render the document and assemble the artifact.

    Raises:
        RuntimeLoadError: If no project has been acquired on `handle`.
        ArchiveError: If the runtime's serialized project is not a valid archive.
    """
    runtime = handle.runtime
    if runtime is None:
        raise RuntimeLoadError("No project loaded")

    serialized = await runtime.save_project_sb3()
    document = generate_document(config, script, target, serialized)
    return assemble(target, document, serialized)


class Packager:
    """Long-lived packaging service.

    Typical use:
        packager = Packager.from_settings(get_settings())
        await packager.load_resources()
        await packager.load_project_by_id("10128407")
        artifact = await packager.package(OutputTarget.ZIP)
    """

    def __init__(
        self,
        loader: ResourceLoader,
        handle: Optional[RuntimeHandle] = None,
        config: Optional[PackagingConfig] = None,
        project_host: str = DEFAULT_PROJECT_HOST,
        timeout: float = PROJECT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.loader = loader
        self.handle = handle or RuntimeHandle()
        self.config = config or PackagingConfig()
        self.project_host = project_host
        self._timeout = timeout
        self._transport = transport
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "Packager":
        """Wire a Packager from settings; `transport` is shared by every client."""
        loader = ResourceLoader(
            base_url=settings.resource_base_url,
            names=tuple(settings.resource_names),
            timeout=settings.http_timeout,
            transport=transport,
        )
        handle = RuntimeHandle(
            asset_host=settings.asset_host,
            storage_factory=functools.partial(
                WebAssetStorage, timeout=settings.http_timeout, transport=transport,
            ),
        )
        return cls(
            loader=loader,
            handle=handle,
            config=PackagingConfig.from_settings(settings),
            project_host=settings.project_host,
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def load_resources(self) -> str:
        return await self.loader.load_resources()

    async def load_project_by_id(self, project_id: str) -> None:
        async with self._lock:
            await self._fetch_project(project_id)

    async def load_project_from_file(self, blob: Union[bytes, BinaryIO]) -> None:
        async with self._lock:
            await load_project_from_file(self.handle, blob)

    async def package(
        self,
        target: OutputTarget,
        config: Optional[PackagingConfig] = None,
    ) -> GeneratedArtifact:
        """Package the currently loaded project.

        `config` overrides the service configuration for this call only.
        Bootstrap resources are loaded first if they have not been yet.
        """
        return await self._package(target, config)

    async def package_project_by_id(
        self,
        project_id: str,
        target: OutputTarget,
        config: Optional[PackagingConfig] = None,
    ) -> GeneratedArtifact:
        """Acquire and package in one step, holding the lock across both."""
        return await self._package(
            target, config, acquire=lambda: self._fetch_project(project_id),
        )

    async def package_project_from_file(
        self,
        blob: Union[bytes, BinaryIO],
        target: OutputTarget,
        config: Optional[PackagingConfig] = None,
    ) -> GeneratedArtifact:
        return await self._package(
            target, config, acquire=lambda: load_project_from_file(self.handle, blob),
        )

    async def _fetch_project(self, project_id: str) -> None:
        await load_project_by_id(
            self.handle,
            project_id,
            project_host=self.project_host,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _package(
        self,
        target: OutputTarget,
        config: Optional[PackagingConfig],
        acquire: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> GeneratedArtifact:
        script = await self.load_resources()
        snapshot = dataclasses.replace(config or self.config)

        token = set_packaging_id(uuid.uuid4().hex[:12])
        try:
            async with self._lock:
                if acquire is not None:
                    await acquire()
                artifact = await package(self.handle, snapshot, script, target)

            log.info(
                "packaged",
                filename=artifact.filename,
                size=len(artifact.contents),
                target=target.value,
            )
            return artifact
        finally:
            reset_packaging_id(token)
