"""Packaging endpoints.

Routes:
  GET  /package/options  — service default options
  POST /package          — package a project from the project host
  POST /package/upload   — package an sb3 sent as the raw request body

Artifacts are returned directly as attachments. One Packager is shared by
the app (app.state.packager); it serializes packaging internally.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response

from packager.api.schemas import PackageRequest, PackagingOptions
from packager.errors import (
    ArchiveError,
    FetchError,
    PackagerError,
    ResourceLoadError,
    RuntimeLoadError,
)
from packager.packaging.service import Packager
from packager.packaging.types import GeneratedArtifact, OutputTarget

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/package", tags=["package"])

_ERROR_STATUS: dict[type, int] = {
    ResourceLoadError: status.HTTP_503_SERVICE_UNAVAILABLE,
    FetchError: status.HTTP_502_BAD_GATEWAY,
    RuntimeLoadError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ArchiveError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def get_packager(request: Request) -> Packager:
    return request.app.state.packager


def _artifact_response(artifact: GeneratedArtifact) -> Response:
    return Response(
        content=artifact.contents,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


def _http_error(exc: PackagerError) -> HTTPException:
    code = _ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning("Packaging failed (%s): %s", type(exc).__name__, exc)
    return HTTPException(status_code=code, detail=str(exc))


@router.get("/options", response_model=PackagingOptions)
async def get_default_options(
    packager: Packager = Depends(get_packager),
) -> PackagingOptions:
    """Return the options applied when a request leaves them unset."""
    return PackagingOptions.from_config(packager.config)


@router.post("")
async def package_by_id(
    body: PackageRequest,
    packager: Packager = Depends(get_packager),
) -> Response:
    """Fetch a project by ID from the project host and package it."""
    config = body.options.apply_to(packager.config)
    try:
        artifact = await packager.package_project_by_id(body.project_id, body.target, config)
    except PackagerError as exc:
        raise _http_error(exc) from exc

    return _artifact_response(artifact)


@router.post("/upload")
async def package_upload(
    request: Request,
    target: OutputTarget = Query(default=OutputTarget.HTML),
    autoplay: bool | None = Query(default=None),
    packager: Packager = Depends(get_packager),
) -> Response:
    """Package an sb3 archive sent as the raw request body."""
    data = await request.body()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must contain an sb3 project",
        )

    config = PackagingOptions(autoplay=autoplay).apply_to(packager.config)
    try:
        artifact = await packager.package_project_from_file(data, target, config)
    except PackagerError as exc:
        raise _http_error(exc) from exc

    return _artifact_response(artifact)
