"""Runtime collaborators for the packaging pipeline.

Public API:
    ProjectRuntime, AssetStorage  — protocols the packager depends on
    Sb3Runtime                    — default runtime for sb3 projects
    WebAssetStorage               — HTTP-backed asset storage
"""

from packager.runtime.provider import Asset, AssetStorage, AssetType, ProjectRuntime
from packager.runtime.sb3 import Sb3Runtime
from packager.runtime.storage import WebAssetStorage

__all__ = [
    "Asset",
    "AssetStorage",
    "AssetType",
    "ProjectRuntime",
    "Sb3Runtime",
    "WebAssetStorage",
]
