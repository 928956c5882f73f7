# tests/conftest.py
"""
Shared fixtures for letgen tests.

Test Tiers:
- tier1: Pure logic, no I/O (hashing, config models, differ with fakes)
- tier2: Temp-directory tests with a fake generation engine

The fake engine is deterministic: its output depends only on the request,
and it fails the way a real engine does:
- a document mentioning the type "Broke" -> GenerationError
- a schema containing "BROKEN" -> SchemaLoadError
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import yaml

from letgen.codegen.engine import GeneratedOutput, GenerationKind, GenerationRequest
from letgen.codegen.hashing import canonical_options
from letgen.core.exceptions import GenerationError, SchemaLoadError

SCHEMA = """\
type Query {
  viewer: User
}

type User {
  id: ID!
  name: String
}
"""

DOCUMENTS = {
    "src/viewer.graphql": "query Viewer { viewer { id name } }\n",
    "src/user-id.graphql": "query UserId { viewer { id } }\n",
    "src/nested/user-name.graphql": "query UserName { viewer { name } }\n",
}

BROKEN_DOCUMENT = "query Broken { viewer { ...on Broke { id } } }\n"

BROKE_MESSAGE = (
    'Failed to load schema\n'
    '        Type "Broke" not found in document.\n'
    '        Error: Type "Broke" not found in document.'
)


class FakeEngine:
    """Deterministic stand-in for a real generation engine."""

    plugin_name = "fake"

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.calls: List[GenerationRequest] = []
        self._lock = threading.Lock()

    def generate(self, request: GenerationRequest) -> GeneratedOutput:
        with self._lock:
            self.calls.append(request)

        if request.kind == GenerationKind.SCHEMA:
            if "BROKEN" in request.content:
                raise SchemaLoadError(f"Failed to load schema from {request.path}:\n\nSyntax Error")
            return GeneratedOutput(
                module="",
                declaration=f"// schema {request.schema.name}\n// {canonical_options(request.options)}\n",
            )

        if "Broke" in request.content:
            raise GenerationError(BROKE_MESSAGE)

        return GeneratedOutput(
            module=f"export const document = {json.dumps(request.content)};\n",
            declaration=(
                f"// {request.path}\n"
                f"// {canonical_options(request.options)}\n"
                f"declare const document: string;\n"
            ),
        )

    def document_calls(self) -> List[str]:
        return sorted(r.path for r in self.calls if r.kind == GenerationKind.DOCUMENT)

    def schema_calls(self) -> List[str]:
        return sorted(r.path for r in self.calls if r.kind == GenerationKind.SCHEMA)

    def reset(self) -> None:
        with self._lock:
            self.calls.clear()


def write_project(
    root: Path,
    documents: Optional[Dict[str, str]] = None,
    schema: str = SCHEMA,
    config: Optional[dict] = None,
    config_name: str = ".letgen.yml",
) -> Path:
    """Lay out a project: schema, documents and a config file."""
    (root / "schema").mkdir(parents=True, exist_ok=True)
    (root / "schema" / "type-defs.graphqls").write_text(schema, encoding="utf-8")

    for rel_path, content in (DOCUMENTS if documents is None else documents).items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    data = {
        "schema": "schema/**/*.graphqls",
        "documents": "**/*.graphql",
        "max_workers": 2,
    }
    data.update(config or {})
    (root / config_name).write_text(yaml.safe_dump(data), encoding="utf-8")
    return root


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project with one schema and three valid documents."""
    return write_project(tmp_path)
