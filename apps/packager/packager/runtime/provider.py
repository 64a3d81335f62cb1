"""Runtime and storage protocols.

The packaging pipeline never executes a project; it only needs a runtime
that can load project bytes and save them back out as an sb3 archive, and
a storage layer that resolves asset references while loading. Both are
expressed as protocols (structural subtyping) so the default sb3 runtime
can be swapped for another implementation without subclassing.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Union, runtime_checkable


class AssetType(str, Enum):
    IMAGE_VECTOR = "ImageVector"
    IMAGE_BITMAP = "ImageBitmap"
    SOUND = "Sound"


@dataclass(frozen=True)
class Asset:
    """Reference to a single project asset (costume or sound file)."""

    asset_id: str
    data_format: str
    asset_type: AssetType

    @property
    def md5ext(self) -> str:
        return f"{self.asset_id}.{self.data_format}"


UrlTemplate = Callable[[Asset], str]
ProgressCallback = Callable[[int, int], None]


@runtime_checkable
class AssetStorage(Protocol):
    """Protocol for asset storage implementations.

    `on_progress` is invoked with (total, loaded) after each asset fetch.
    """

    on_progress: Optional[ProgressCallback]

    def add_web_store(self, asset_types: list[AssetType], url_fn: UrlTemplate) -> None:
        """Resolve assets of the given types with `url_fn`."""
        ...  # noqa: PLR6301

    def reset_progress(self) -> None:
        """Zero the (total, loaded) counters before a new project load."""
        ...  # noqa: PLR6301

    async def load(self, asset: Asset) -> bytes:
        """Fetch the raw bytes of an asset.

        Raises:
            FetchError: When no store serves the asset or the fetch fails.
        """
        ...  # noqa: PLR6301


@runtime_checkable
class ProjectRuntime(Protocol):
    """Protocol for the virtual-machine runtime as seen by the packager.

    Playback-only controls (turbo mode, interpolation, frame rate, runtime
    limits, high quality render) are applied inside the generated document
    and are not part of the authoring-time contract.
    """

    def clear(self) -> None:
        """Drop any loaded project state."""
        ...  # noqa: PLR6301

    def attach_storage(self, storage: AssetStorage) -> None:
        ...  # noqa: PLR6301

    async def load_project(self, data: Union[bytes, str]) -> None:
        """Load project bytes (sb3 archive) or project.json text.

        Raises:
            RuntimeLoadError: On malformed project content.
        """
        ...  # noqa: PLR6301

    async def save_project_sb3(self) -> bytes:
        """Serialize the loaded project as an sb3 (ZIP) archive."""
        ...  # noqa: PLR6301
