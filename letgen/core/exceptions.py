# letgen/core/exceptions.py
"""
All exceptions for letgen code generation.

Hierarchy:
    LetgenError
    ├── SchemaLoadError - Schema missing or unparsable (schema-scoped)
    ├── GenerationError - Engine rejected a document (document-scoped)
    ├── ArtifactWriteError - Generated output could not be written (document-scoped)
    ├── ManifestCorruptionError - Manifest unreadable (recovered, never fatal)
    ├── EngineLoadError - Engine plugin could not be resolved
    └── CodegenRunError - Opt-in "any failure is fatal" for a finished run

Every error carries the path it is about. The message is kept verbatim:
generation engines produce multi-line diagnostics that must not be
truncated or reformatted.
"""

from __future__ import annotations

from typing import List, Optional


class LetgenError(Exception):
    """Base error for letgen."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


# =============================================================================
# Schema Errors
# =============================================================================


class SchemaLoadError(LetgenError):
    """Schema file missing or unparsable. Fatal to every document bound to it."""

    pass


# =============================================================================
# Document Errors
# =============================================================================


class GenerationError(LetgenError):
    """The generation engine rejected a document."""

    pass


class ArtifactWriteError(LetgenError):
    """Writing a generated artifact failed."""

    pass


# =============================================================================
# Cache Errors
# =============================================================================


class ManifestCorruptionError(LetgenError):
    """The manifest file exists but cannot be parsed."""

    pass


# =============================================================================
# Setup Errors
# =============================================================================


class EngineLoadError(LetgenError):
    """No usable generation engine could be created from the config."""

    pass


# =============================================================================
# Run Errors
# =============================================================================


class CodegenRunError(LetgenError):
    """
    Raised on request when a run had failures.

    Runs never raise this on their own; callers opt in with
    CodegenSummary.raise_for_errors().
    """

    def __init__(self, errors: List[LetgenError]):
        self.errors = errors
        details = "\n".join(str(e) for e in errors)
        super().__init__(f"{len(errors)} document(s) failed:\n{details}")


__all__ = [
    "LetgenError",
    "SchemaLoadError",
    "GenerationError",
    "ArtifactWriteError",
    "ManifestCorruptionError",
    "EngineLoadError",
    "CodegenRunError",
]
