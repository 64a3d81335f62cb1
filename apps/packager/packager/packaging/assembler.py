"""Artifact assembler — turns a document and a serialized project into output.

HTML output is the document alone. ZIP output rewrites the sb3 container:
every entry moves under assets/ with its bytes untouched, and the document
is added as the top-level index.html.
"""

import io
import logging
import zipfile

from packager.errors import ARCHIVE_READ_ERRORS, ArchiveError
from packager.packaging.document import ARCHIVE_ASSET_DIR
from packager.packaging.types import GeneratedArtifact, OutputTarget

logger = logging.getLogger(__name__)

HTML_FILENAME = "project.html"
ZIP_FILENAME = "project.zip"
INDEX_ENTRY = "index.html"


def assemble(target: OutputTarget, document: str, project: bytes) -> GeneratedArtifact:
    """Build the final artifact for an output target.

    Raises:
        ArchiveError: For ZIP output, if `project` is not a valid ZIP archive.
    """
    if target == OutputTarget.ZIP:
        return GeneratedArtifact(
            contents=_build_archive(document, project),
            filename=ZIP_FILENAME,
            media_type="application/zip",
        )
    return GeneratedArtifact(
        contents=document.encode("utf-8"),
        filename=HTML_FILENAME,
        media_type="text/html",
    )


def _build_archive(document: str, project: bytes) -> bytes:
    """Re-home every project entry under assets/ and add index.html."""
    buffer = io.BytesIO()

    try:
        with zipfile.ZipFile(io.BytesIO(project)) as source, \
                zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as output:
            entries = source.infolist()
            for info in entries:
                renamed = zipfile.ZipInfo(
                    f"{ARCHIVE_ASSET_DIR}/{info.filename}",
                    date_time=info.date_time,
                )
                renamed.external_attr = info.external_attr
                renamed.compress_type = zipfile.ZIP_DEFLATED
                output.writestr(renamed, source.read(info))

            index = zipfile.ZipInfo(INDEX_ENTRY, date_time=(1980, 1, 1, 0, 0, 0))
            index.compress_type = zipfile.ZIP_DEFLATED
            output.writestr(index, document.encode("utf-8"))
    except ARCHIVE_READ_ERRORS as exc:
        raise ArchiveError(f"Serialized project is not a valid archive: {exc}") from exc

    logger.info("Assembled archive with %d project entries", len(entries))
    return buffer.getvalue()
