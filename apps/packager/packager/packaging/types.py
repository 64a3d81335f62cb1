"""Types for the packaging module.

PackagingConfig carries the runtime options embedded into the generated
document. OutputTarget selects between the two artifact strategies and
GeneratedArtifact is what package() hands back to the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from packager.core.config import Settings


class OutputTarget(str, Enum):
    """Artifact strategy.

    HTML inlines the serialized project as a data URL in a single file.
    ZIP externalizes the project and its assets under assets/.
    """

    HTML = "html"
    ZIP = "zip"


@dataclass
class PackagingConfig:
    """Runtime options forwarded verbatim to the packaged document.

    Nothing here is validated: a negative frame rate or a zero-sized
    stage is embedded as-is and left to the playback runtime to handle.
    """

    turbo_mode: bool = False
    interpolation: bool = False
    frame_rate: float = 30
    high_quality_rendering: bool = False
    max_clones: int = 300
    fencing_enabled: bool = True
    resource_limits_enabled: bool = True
    stage_width: int = 480
    stage_height: int = 360
    autoplay: bool = False

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PackagingConfig":
        return cls(
            frame_rate=settings.default_frame_rate,
            stage_width=settings.default_stage_width,
            stage_height=settings.default_stage_height,
        )

    def to_dict(self) -> dict:
        """Return the camelCase mapping read by the playback bootstrap."""
        return {
            "turboMode": self.turbo_mode,
            "interpolation": self.interpolation,
            "frameRate": self.frame_rate,
            "highQualityRendering": self.high_quality_rendering,
            "maxClones": self.max_clones,
            "fencingEnabled": self.fencing_enabled,
            "resourceLimitsEnabled": self.resource_limits_enabled,
            "stageWidth": self.stage_width,
            "stageHeight": self.stage_height,
            "autoplay": self.autoplay,
        }


@dataclass
class GeneratedArtifact:
    """Terminal output of package(); ownership passes to the caller."""

    contents: bytes
    filename: str
    media_type: str = "application/octet-stream"
