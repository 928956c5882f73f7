# letgen/codegen/manifest/__init__.py
"""
Manifest management for incremental code generation.

This package handles the .letgen/manifest.json file that tracks:
- The fingerprint each document was last generated from
- Where its generated module and declaration live
- The fingerprint and declaration of every schema

Key exports:
- ManifestStore: Load the manifest, commit entries
- Manifest: Root Pydantic model
- CodegenContext: Per-document entry
- SchemaEntry: Per-schema entry
"""

from .manager import ManifestStore
from .schema import CodegenContext, Manifest, SchemaEntry

__all__ = [
    # Store
    "ManifestStore",
    # Schema
    "Manifest",
    "CodegenContext",
    "SchemaEntry",
]
