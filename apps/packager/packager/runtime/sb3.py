"""Default sb3 runtime — loads and re-serializes projects without executing them.

Accepts the two forms a project arrives in:
  - an sb3 archive (ZIP with project.json plus asset files), e.g. a local upload
  - raw project.json text, as served by the project host; the costumes and
    sounds it references are then downloaded through the attached storage

save_project_sb3() writes project.json first, followed by every asset in
the order it was first referenced, with fixed timestamps so identical
projects serialize to identical bytes.
"""

import asyncio
import io
import json
import logging
import zipfile
from typing import Optional, Union

from packager.errors import ARCHIVE_READ_ERRORS, RuntimeLoadError
from packager.runtime.provider import Asset, AssetStorage, AssetType

logger = logging.getLogger(__name__)

PROJECT_ENTRY = "project.json"

_VECTOR_FORMATS = {"svg"}

# ZIP timestamps are pinned so serialization is reproducible
_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class Sb3Runtime:
    """ProjectRuntime implementation for sb3 projects."""

    def __init__(self) -> None:
        self.storage: Optional[AssetStorage] = None
        self._entries: dict[str, bytes] = {}

    @property
    def has_project(self) -> bool:
        return PROJECT_ENTRY in self._entries

    def clear(self) -> None:
        self._entries = {}

    def attach_storage(self, storage: AssetStorage) -> None:
        self.storage = storage

    async def load_project(self, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")

        if zipfile.is_zipfile(io.BytesIO(data)):
            self._entries = _read_sb3(data)
        else:
            self._entries = await self._load_project_json(data)

        logger.info(
            "Loaded project with %d assets", len(self._entries) - 1,
        )

    async def save_project_sb3(self) -> bytes:
        if not self.has_project:
            raise RuntimeLoadError("No project loaded")

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, content in self._entries.items():
                info = zipfile.ZipInfo(name, date_time=_FIXED_DATE_TIME)
                info.compress_type = zipfile.ZIP_DEFLATED
                archive.writestr(info, content)
        return buffer.getvalue()

    async def _load_project_json(self, data: bytes) -> dict[str, bytes]:
        project = _parse_project_json(data)
        assets = collect_assets(project)

        entries = {PROJECT_ENTRY: data}
        if not assets:
            return entries

        if self.storage is None:
            raise RuntimeLoadError("Project references assets but no storage is attached")

        # Every fetch settles before a failure is re-raised, so no request
        # outlives this load
        contents = await asyncio.gather(
            *(self.storage.load(a) for a in assets),
            return_exceptions=True,
        )
        for content in contents:
            if isinstance(content, BaseException):
                raise content
        for asset, content in zip(assets, contents):
            entries[asset.md5ext] = content
        return entries


def collect_assets(project: dict) -> list[Asset]:
    """Return every costume and sound referenced by a project, deduplicated.

    Order follows first appearance across targets, costumes before sounds.
    """
    seen: set[str] = set()
    assets: list[Asset] = []

    for target in project.get("targets", []):
        if not isinstance(target, dict):
            raise RuntimeLoadError("Project target is not an object")
        for costume in _entry_list(target, "costumes"):
            asset_type = (
                AssetType.IMAGE_VECTOR
                if costume.get("dataFormat") in _VECTOR_FORMATS
                else AssetType.IMAGE_BITMAP
            )
            _add_asset(costume, asset_type, seen, assets)
        for sound in _entry_list(target, "sounds"):
            _add_asset(sound, AssetType.SOUND, seen, assets)

    return assets


def _entry_list(target: dict, key: str) -> list[dict]:
    entries = target.get(key, [])
    if not isinstance(entries, list):
        raise RuntimeLoadError(f"Target {key} is not a list")
    for entry in entries:
        if not isinstance(entry, dict):
            raise RuntimeLoadError(f"Target {key} entry is not an object")
    return entries


def _add_asset(entry: dict, asset_type: AssetType, seen: set[str], assets: list[Asset]) -> None:
    try:
        asset = Asset(
            asset_id=entry["assetId"],
            data_format=entry["dataFormat"],
            asset_type=asset_type,
        )
    except KeyError as exc:
        raise RuntimeLoadError(f"Asset entry missing {exc.args[0]}") from exc

    if asset.md5ext not in seen:
        seen.add(asset.md5ext)
        assets.append(asset)


def _parse_project_json(data: bytes) -> dict:
    try:
        project = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RuntimeLoadError(f"Project is not valid JSON: {exc}") from exc

    if not isinstance(project, dict) or not isinstance(project.get("targets"), list):
        raise RuntimeLoadError("Project JSON has no targets list")
    return project


def _read_sb3(data: bytes) -> dict[str, bytes]:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            names = [info.filename for info in archive.infolist() if not info.is_dir()]
            if PROJECT_ENTRY not in names:
                raise RuntimeLoadError(f"Archive has no {PROJECT_ENTRY}")
            entries = {PROJECT_ENTRY: archive.read(PROJECT_ENTRY)}
            for name in names:
                if name != PROJECT_ENTRY:
                    entries[name] = archive.read(name)
    except ARCHIVE_READ_ERRORS as exc:
        raise RuntimeLoadError(f"Corrupt sb3 archive: {exc}") from exc

    _parse_project_json(entries[PROJECT_ENTRY])
    return entries
