# letgen/codegen/manifest/schema.py
"""
Manifest schema for incremental code generation.

Defines the Pydantic models for .letgen/manifest.json.

Key concepts:
- The manifest records the last SUCCESSFUL generation of every document
- An entry is only written after its artifacts are durably on disk
- Paths are project-relative POSIX strings so a project can move
- `skip` is a per-run flag and is never persisted
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CodegenContext(BaseModel):
    """
    One document's last successful generation.

    Stored under documents.<rel_path>
    """

    model_config = ConfigDict(extra="forbid")

    rel_path: str = Field(..., description="Document path relative to the project root")
    schema_name: str = Field(..., description="Schema binding the document belongs to")
    schema_fingerprint: str = Field(..., description="Fingerprint of the bound schema")
    fingerprint: str = Field(..., description="Document fingerprint (sha256 hex)")
    module_path: str = Field(..., description="Generated module, project-relative")
    declaration_path: str = Field(..., description="Generated declaration, project-relative")
    generated_at: datetime = Field(default_factory=_utcnow, description="Generation time")
    skip: bool = Field(default=False, exclude=True, description="Reused prior output this run")

    @property
    def identifier(self) -> str:
        """Identifier downstream code uses to reference the generated module."""
        return f"V{self.fingerprint}"

    def artifact_paths(self) -> List[str]:
        return [self.module_path, self.declaration_path]


class SchemaEntry(BaseModel):
    """
    Per-schema tracking entry.

    Stored under schemas.<binding name>
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Schema binding name")
    fingerprint: str = Field(..., description="Combined schema fingerprint")
    files: List[str] = Field(default_factory=list, description="Schema files, project-relative")
    declaration_path: str = Field(..., description="Generated schema declaration")
    generated_at: datetime = Field(default_factory=_utcnow, description="Generation time")


class Manifest(BaseModel):
    """Root model for .letgen/manifest.json."""

    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1, description="Manifest format version")
    updated_at: datetime = Field(default_factory=_utcnow, description="Last commit time")
    documents: Dict[str, CodegenContext] = Field(
        default_factory=dict, description="Entries keyed by document rel_path"
    )
    schemas: Dict[str, SchemaEntry] = Field(
        default_factory=dict, description="Schema entries keyed by binding name"
    )

    def get(self, rel_path: str) -> CodegenContext | None:
        """Get a document entry if it exists."""
        return self.documents.get(rel_path)

    def get_schema(self, name: str) -> SchemaEntry | None:
        """Get a schema entry if it exists."""
        return self.schemas.get(name)

    def known_paths(self) -> set[str]:
        """All document paths with an entry."""
        return set(self.documents)


MANIFEST_SCHEMA_VERSION = 1


__all__ = [
    "CodegenContext",
    "SchemaEntry",
    "Manifest",
    "MANIFEST_SCHEMA_VERSION",
]
