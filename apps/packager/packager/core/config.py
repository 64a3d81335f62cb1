from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _normalise_base_url(url: str) -> str:
    """Ensure a base URL ends with a slash.

    Resource names are joined onto the base with httpx URL resolution,
    which drops the last path segment when the trailing slash is missing
    (``https://cdn.example/packager`` + ``addons.js`` would resolve to
    ``https://cdn.example/addons.js``).
    """
    if url and not url.endswith("/"):
        return url + "/"
    return url


class Settings(BaseSettings):
    """Packager settings loaded from environment variables.

    Every field can be overridden with a ``PACKAGER_`` prefixed variable,
    e.g. ``PACKAGER_PROJECT_HOST=https://mirror.example``.

    Hosts
    ─────
    • project_host       — serves raw project.json text at ``/<id>``
    • asset_host         — serves assets at ``/internalapi/asset/<md5ext>/get/``
    • resource_base_url  — serves the built bootstrap bundles
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PACKAGER_",
        case_sensitive=False,
    )

    # Authoring-time remote endpoints
    project_host: str = "https://projects.scratch.mit.edu/"
    asset_host: str = "https://assets.scratch.mit.edu/"

    # Bootstrap bundles, concatenated in this order into every document.
    resource_base_url: str = "http://localhost:8080/"
    resource_names: list[str] = ["scaffolding.js", "addons.js"]

    @field_validator("project_host", "asset_host", "resource_base_url", mode="before")
    @classmethod
    def normalise_base_url(cls, v: str) -> str:
        return _normalise_base_url(v)

    # Timeout (seconds) for every outbound request
    http_timeout: float = 30.0

    # Packaging defaults — used when a request omits an option.
    default_frame_rate: float = 30
    default_stage_width: int = 480
    default_stage_height: int = 360

    # App
    debug: bool = True


def get_settings() -> Settings:
    return Settings()
