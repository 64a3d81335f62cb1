"""Packaging module for turning a loaded project into a distributable artifact.

Public API:
    Packager(loader, handle, config)                   -> service object
    package(handle, config, script, target)            -> GeneratedArtifact
    generate_document(config, script, target, project) -> str
    assemble(target, document, project)                -> GeneratedArtifact
"""

from packager.packaging.assembler import assemble
from packager.packaging.document import generate_document
from packager.packaging.service import Packager, package
from packager.packaging.types import GeneratedArtifact, OutputTarget, PackagingConfig

__all__ = [
    "GeneratedArtifact",
    "OutputTarget",
    "Packager",
    "PackagingConfig",
    "assemble",
    "generate_document",
    "package",
]
