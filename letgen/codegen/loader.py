# letgen/codegen/loader.py
"""
Single-document mode.

Entry point for build-pipeline hooks (bundler loaders and the like) that hand
over one document's raw content and full path at a time and expect the
generated module text back. The declaration artifact is written as a side
effect.

Uses the same primitives as batch mode: fingerprint -> staleness check ->
generate -> write -> commit. Nothing is pruned here.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from letgen.config.loader import load_letgen_config
from letgen.config.schema import LetgenConfig, ProjectConfig
from letgen.core.exceptions import GenerationError
from letgen.core.paths import LetgenPaths
from letgen.logging.logger import get_logger
from letgen.logging.tags import LOADER

from .differ import Differ, DocumentCandidate
from .engine import CodegenEngine, create_engine
from .executor import CodegenExecutor
from .scanner import DocumentSource

logger = get_logger(__name__)


class DocumentLoader:
    """
    Generates one document on demand.

    Usage:
        loader = DocumentLoader("/path/to/project")
        module_text = loader.load(source_text, "/path/to/project/src/query.graphql")

        # From async hosts
        module_text = await loader.aload(source_text, full_path)
    """

    def __init__(
        self,
        project_root: Union[str, Path],
        *,
        config_path: Optional[Union[str, Path]] = None,
        config: Optional[LetgenConfig] = None,
        engine: Optional[CodegenEngine] = None,
    ) -> None:
        """
        Initialize the loader.

        Args:
            project_root: Project root directory
            config_path: Alternate config file (selects the manifest too)
            config: Already-loaded config; read from config_path if None
            engine: Generation engine; built from the config if None
        """
        self._paths = LetgenPaths(project_root)
        self._config = config or load_letgen_config(project_root, config_path)
        self._executor = CodegenExecutor(
            config=self._config,
            project_root=project_root,
            engine=engine or create_engine(self._config.engine),
            config_path=config_path,
            max_workers=1,
        )

    @property
    def executor(self) -> CodegenExecutor:
        return self._executor

    def load(self, content: str, full_path: Union[str, Path]) -> str:
        """
        Return the generated module for a document, regenerating if stale.

        Args:
            content: Raw document text as supplied by the host
            full_path: Absolute path of the document

        Returns:
            Generated module text

        Raises:
            SchemaLoadError: If the bound schema can't be loaded
            GenerationError: If the engine rejects the document
            ArtifactWriteError: If writing the artifacts fails
        """
        rel_path = self._paths.relative(full_path)
        binding = self._binding_for(rel_path)
        schema = self._executor.scanner.load_schema(binding)

        candidate = DocumentCandidate.from_source(
            DocumentSource(
                rel_path=rel_path,
                path=Path(full_path),
                content=content,
                schema_name=binding.name,
            ),
            schema,
            self._executor.options,
        )

        # Reload every call: other hooks may have committed since.
        manifest = self._executor.store.load()
        differ = Differ(manifest, self._executor.writer.exists, self._executor.writer.paths_for)
        reason = differ.check_document(candidate)
        entry = manifest.get(rel_path)

        if entry is not None and not reason.is_stale:
            logger.debug(f"{LOADER} Reusing {entry.module_path}")
            return self._executor.writer.read_module(entry.module_path)

        logger.info(f"{LOADER} Generating {rel_path} ({reason})")
        self._executor.writer.prepare()
        outcome = self._executor.generate_document(candidate)
        if outcome.error is not None:
            raise outcome.error
        if outcome.module_text is None:
            raise GenerationError("Engine produced no module", path=rel_path)
        return outcome.module_text

    async def aload(self, content: str, full_path: Union[str, Path]) -> str:
        """Async variant of load(); runs in a worker thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.load, content, full_path)

    def _binding_for(self, rel_path: str) -> ProjectConfig:
        bindings = self._config.bindings()
        for binding in bindings:
            if self._executor.scanner.is_candidate(rel_path, binding.documents, binding.exclude):
                return binding
        # Hosts may route files the globs don't list; fall back to the first schema.
        return bindings[0]


__all__ = ["DocumentLoader"]
