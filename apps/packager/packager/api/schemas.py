"""Pydantic schemas for the packaging endpoints.

POST /package          -> PackageRequest -> artifact bytes
POST /package/upload   -> raw sb3 body   -> artifact bytes
GET  /package/options  -> PackagingOptions (service defaults)
"""

import dataclasses
from typing import Optional

from pydantic import BaseModel, Field

from packager.packaging.types import OutputTarget, PackagingConfig


class PackagingOptions(BaseModel):
    """Packaging options; only provided fields override the service defaults.

    No range checks are applied: values are forwarded to the packaged
    runtime as-is.
    """

    turbo_mode: Optional[bool] = None
    interpolation: Optional[bool] = None
    frame_rate: Optional[float] = None
    high_quality_rendering: Optional[bool] = None
    max_clones: Optional[int] = None
    fencing_enabled: Optional[bool] = None
    resource_limits_enabled: Optional[bool] = None
    stage_width: Optional[int] = None
    stage_height: Optional[int] = None
    autoplay: Optional[bool] = None

    @classmethod
    def from_config(cls, config: PackagingConfig) -> "PackagingOptions":
        return cls(**{
            name: getattr(config, name) for name in cls.model_fields
        })

    def apply_to(self, config: PackagingConfig) -> PackagingConfig:
        """Return a copy of `config` with the provided fields replaced."""
        overrides = self.model_dump(exclude_none=True)
        return dataclasses.replace(config, **overrides)


class PackageRequest(BaseModel):
    """Package a project hosted on the project server."""

    project_id: str = Field(min_length=1, description="Identifier on the project host")
    target: OutputTarget = OutputTarget.HTML
    options: PackagingOptions = Field(default_factory=PackagingOptions)
