# letgen/codegen/__init__.py
"""
Incremental code generation.

This package implements fingerprint-based incremental generation:
- Only regenerate documents whose content, schema or options changed
- Regenerate documents whose generated files were deleted out-of-band
- Prune entries of documents that no longer exist

Key components:
- Scanner: Expands schema/document globs and fingerprints schemas
- Differ: Classifies documents as fresh or stale
- Writer: Places artifacts at deterministic paths, all-or-nothing
- Executor: Orchestrates batch runs (thread pool, per-document isolation)
- DocumentLoader: Single-document mode for build hooks

Usage:
    from letgen.codegen import run_codegen

    summary = run_codegen("./my-project", engine=my_engine)
    for context in summary.contexts():
        print(context.rel_path, context.fingerprint, context.skip)
"""

from letgen.codegen.differ import (
    DiffResult,
    Differ,
    DocumentCandidate,
    ManifestReader,
    StaleReason,
)
from letgen.codegen.engine import (
    CodegenEngine,
    CommandEngine,
    GeneratedOutput,
    GenerationKind,
    GenerationRequest,
    available_engines,
    create_engine,
    register_engine,
)
from letgen.codegen.executor import (
    CodegenExecutor,
    CodegenOutcome,
    CodegenSummary,
    OutcomeStatus,
    run_codegen,
)
from letgen.codegen.hashing import (
    canonical_options,
    compute_fingerprint,
    compute_schema_hash,
)
from letgen.codegen.loader import DocumentLoader
from letgen.codegen.scanner import (
    BindingScan,
    DocumentSource,
    FileScanner,
    SchemaSource,
)
from letgen.codegen.writer import ArtifactPaths, ArtifactWriter

__all__ = [
    # Hashing
    "compute_schema_hash",
    "canonical_options",
    "compute_fingerprint",
    # Scanner
    "SchemaSource",
    "DocumentSource",
    "BindingScan",
    "FileScanner",
    # Differ
    "ManifestReader",
    "DocumentCandidate",
    "StaleReason",
    "DiffResult",
    "Differ",
    # Engine
    "GenerationKind",
    "GenerationRequest",
    "GeneratedOutput",
    "CodegenEngine",
    "CommandEngine",
    "register_engine",
    "available_engines",
    "create_engine",
    # Writer
    "ArtifactPaths",
    "ArtifactWriter",
    # Executor
    "OutcomeStatus",
    "CodegenOutcome",
    "CodegenSummary",
    "CodegenExecutor",
    "run_codegen",
    # Single document
    "DocumentLoader",
]
