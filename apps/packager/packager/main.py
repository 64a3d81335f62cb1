from fastapi import FastAPI

from packager.api.router import router as package_router
from packager.core.config import Settings, get_settings
from packager.core.logging import configure_structlog
from packager.packaging.service import Packager


def create_app(settings: Settings | None = None, packager: Packager | None = None) -> FastAPI:
    settings = settings or get_settings()

    _app = FastAPI(
        title="Project Packager",
        description="Packages sb3 projects into standalone HTML files or ZIP archives",
        version="0.1.0",
    )

    # ---------------------------------------------------------------------------
    # Logging — configure structlog before any routers log anything
    # ---------------------------------------------------------------------------
    configure_structlog(debug=settings.debug)

    # ---------------------------------------------------------------------------
    # Packaging service — one shared instance; it owns the runtime handle
    # ---------------------------------------------------------------------------
    _app.state.packager = packager or Packager.from_settings(settings)

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------
    _app.include_router(package_router)

    @_app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return _app


app = create_app()
