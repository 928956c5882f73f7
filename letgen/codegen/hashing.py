# letgen/codegen/hashing.py
"""
Content hashing for incremental code generation.

Provides SHA-256 based identity for documents and schemas.
This is the single source of truth for "did anything change?" decisions.

Design:
- A document fingerprint covers document content + schema fingerprint +
  effective generation options (canonical JSON)
- The document path is NOT part of the fingerprint
- Same inputs = same fingerprint, always (no time or path dependence)
- The fingerprint is also used as a generated identifier suffix, so a
  cryptographic hash is required, not just a fast one
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Mapping, Tuple


def compute_schema_hash(files: Iterable[Tuple[str, str]]) -> str:
    """
    Compute the combined fingerprint of a schema.

    Args:
        files: (relative path, content) pairs of every schema file

    Returns:
        SHA-256 hash as hex string with "sha256:" prefix

    The result does not depend on the order files were discovered in.
    Renaming a schema file changes the fingerprint.
    """
    hasher = hashlib.sha256()
    for rel_path, content in sorted(files):
        hasher.update(rel_path.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(content.encode("utf-8"))
        hasher.update(b"\0")
    return f"sha256:{hasher.hexdigest()}"


def canonical_options(options: Mapping[str, Any]) -> str:
    """
    Serialize generation options canonically.

    Key order never matters; non-JSON values fall back to str().
    """
    return json.dumps(
        options,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_fingerprint(
    content: str,
    schema_fingerprint: str,
    options: Mapping[str, Any],
) -> str:
    """
    Compute a document fingerprint.

    The fingerprint is a SHA-256 hash of:
    - document content
    - schema fingerprint
    - canonical generation options

    This ensures:
    - Same document + same schema + same options = same fingerprint
    - Schema change or option change = new fingerprint
    - Deterministic and reproducible

    Args:
        content: Raw document text
        schema_fingerprint: Result of compute_schema_hash() for the bound schema
        options: Effective generation options

    Returns:
        SHA-256 hash as hex string (no prefix, usable as identifier suffix)

    Examples:
        >>> compute_fingerprint("query { a }", "sha256:00", {})  # doctest: +SKIP
        '5f1c...'
    """
    key = "\0".join([
        content,
        schema_fingerprint,
        canonical_options(options),
    ])

    return hashlib.sha256(key.encode("utf-8")).hexdigest()


__all__ = [
    "compute_schema_hash",
    "canonical_options",
    "compute_fingerprint",
]
