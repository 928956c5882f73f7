"""
letgen - incremental code generation for schema/query documents.

letgen turns query documents written against a schema into generated typed
modules, and only regenerates what changed since the last run.

Quick Start:
    >>> from letgen import run_codegen
    >>> summary = run_codegen("./my-project")
    >>> print(summary)

Public API:
    Batch mode:
        - run_codegen: Discover, diff, generate and commit a whole project
        - CodegenExecutor: The orchestrator behind run_codegen

    Single-document mode:
        - DocumentLoader: Build-pipeline hook entry point (one document)

    Results:
        - CodegenSummary / CodegenOutcome / CodegenContext

Architecture:
    letgen/
    ├── core/              # Paths, YAML loading, exceptions
    ├── config/            # Config schema + loader
    ├── codegen/           # Fingerprinter, manifest, differ, writer, executor
    ├── logging/           # Logger + subsystem tags
    └── cli/               # Typer CLI
"""

from letgen.codegen.executor import CodegenExecutor, CodegenOutcome, CodegenSummary, run_codegen
from letgen.codegen.loader import DocumentLoader
from letgen.codegen.manifest import CodegenContext

__version__ = "0.3.0"

__all__ = [
    "run_codegen",
    "CodegenExecutor",
    "CodegenSummary",
    "CodegenOutcome",
    "CodegenContext",
    "DocumentLoader",
    "__version__",
]
