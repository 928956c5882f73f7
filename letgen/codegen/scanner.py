# letgen/codegen/scanner.py
"""
Document and schema discovery.

Expands the configured globs of every schema binding into concrete files,
reads them, and fingerprints each schema.

Rules:
- Globs are project-relative; entries starting with "!" exclude
- Files under the output root, the .letgen workspace, .git and
  node_modules are never documents
- .gitignore rules apply when respect_gitignore is set
- Files matched as schema are never also documents of the same binding
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from letgen.config.schema import ProjectConfig
from letgen.core.exceptions import LetgenError, SchemaLoadError
from letgen.core.paths import WORKSPACE_DIRNAME, LetgenPaths
from letgen.logging.logger import get_logger
from letgen.logging.tags import SCAN

from .hashing import compute_schema_hash

logger = get_logger(__name__)

_EXCLUDED_DIRS = {".git", "node_modules", WORKSPACE_DIRNAME}


@dataclass(frozen=True)
class SchemaSource:
    """A schema binding's files, combined content and fingerprint."""

    name: str
    files: Tuple[str, ...]
    content: str
    fingerprint: str

    @property
    def primary_file(self) -> str:
        return self.files[0]


@dataclass(frozen=True)
class DocumentSource:
    """A document discovered on disk (or handed in by a build hook)."""

    rel_path: str
    path: Path
    content: str
    schema_name: str


@dataclass
class BindingScan:
    """Scan result for one schema binding."""

    name: str
    schema: Optional[SchemaSource] = None
    schema_error: Optional[SchemaLoadError] = None
    documents: List[DocumentSource] = field(default_factory=list)
    errors: List[Tuple[str, LetgenError]] = field(default_factory=list)

    @property
    def total_scanned(self) -> int:
        return len(self.documents) + len(self.errors)


# =============================================================================
# Ignore rules
# =============================================================================


@dataclass
class IgnoreRule:
    """An ignore rule parsed from .gitignore."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    """Parse a .gitignore file. A missing file yields no rules."""
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _is_ignored(rel_path: str, rules: Sequence[IgnoreRule]) -> bool:
    # A file is ignored when it or any of its parent directories is.
    parts = rel_path.split("/")
    for depth in range(1, len(parts) + 1):
        target = "/".join(parts[:depth])
        is_dir = depth < len(parts)
        ignored = False
        for rule in rules:
            if rule.matches(target, is_dir):
                ignored = not rule.negate
        if ignored:
            return True
    return False


def matches_glob(rel_path: str, pattern: str) -> bool:
    """
    Match a project-relative POSIX path against an exclude glob.

    "**/" also matches zero directories, "dir/**" matches everything below dir.
    """
    pattern = pattern.lstrip("/")
    if fnmatchcase(rel_path, pattern):
        return True
    if pattern.startswith("**/") and fnmatchcase(rel_path, pattern[3:]):
        return True
    if pattern.endswith("/**") and rel_path.startswith(pattern[:-3] + "/"):
        return True
    return False


# =============================================================================
# Scanner
# =============================================================================


class FileScanner:
    """
    Discovers schema and document files for schema bindings.

    Usage:
        scanner = FileScanner(paths, output_dir="__generated__")
        scan = scanner.scan_binding(config.bindings()[0])
        print(scan.schema.fingerprint, len(scan.documents))
    """

    def __init__(
        self,
        paths: LetgenPaths,
        output_dir: str,
        respect_gitignore: bool = True,
    ) -> None:
        self._paths = paths
        self._output_dir = output_dir.strip("/")
        self._rules = parse_gitignore(paths.root / ".gitignore") if respect_gitignore else []

    def expand(self, globs: Sequence[str], exclude: Sequence[str] = ()) -> List[str]:
        """
        Expand include/exclude globs into sorted project-relative file paths.

        Args:
            globs: Include globs; entries starting with "!" are excludes
            exclude: Additional exclude globs

        Returns:
            Sorted, de-duplicated relative POSIX paths
        """
        includes = [g for g in globs if not g.startswith("!")]
        excludes = [g[1:] for g in globs if g.startswith("!")] + list(exclude)

        found: set[str] = set()
        root = self._paths.root
        for pattern in includes:
            for match in root.glob(pattern.lstrip("/")):
                if not match.is_file():
                    continue
                try:
                    rel_path = self._paths.relative(match)
                except ValueError:
                    # Symlink resolving outside the project
                    continue
                if self._is_excluded(rel_path, excludes):
                    continue
                found.add(rel_path)

        return sorted(found)

    def is_candidate(self, rel_path: str, globs: Sequence[str], exclude: Sequence[str] = ()) -> bool:
        """Whether a single relative path would be discovered by these globs."""
        includes = [g for g in globs if not g.startswith("!")]
        excludes = [g[1:] for g in globs if g.startswith("!")] + list(exclude)
        if not any(matches_glob(rel_path, g) for g in includes):
            return False
        return not self._is_excluded(rel_path, excludes)

    def load_schema(self, binding: ProjectConfig) -> SchemaSource:
        """
        Read and fingerprint a binding's schema.

        Raises:
            SchemaLoadError: If no file matches or a schema file can't be read
        """
        files = self.expand(binding.schema_globs, binding.exclude)
        if not files:
            raise SchemaLoadError(
                "Failed to load schema: no files matched",
                path=", ".join(binding.schema_globs),
            )

        contents: List[Tuple[str, str]] = []
        for rel_path in files:
            try:
                text = self._paths.absolute(rel_path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise SchemaLoadError(f"Failed to load schema: {e}", path=rel_path) from e
            contents.append((rel_path, text))

        return SchemaSource(
            name=binding.name,
            files=tuple(files),
            content="\n".join(text for _, text in contents),
            fingerprint=compute_schema_hash(contents),
        )

    def scan_binding(self, binding: ProjectConfig) -> BindingScan:
        """
        Discover the schema and documents of one binding.

        Schema failures are recorded on the result, not raised, so the
        caller can report them against every bound document.
        """
        scan = BindingScan(name=binding.name)

        try:
            scan.schema = self.load_schema(binding)
        except SchemaLoadError as e:
            logger.warning(f"{SCAN} {e}")
            scan.schema_error = e

        schema_files = set(scan.schema.files) if scan.schema else set()
        for rel_path in self.expand(binding.documents, binding.exclude):
            if rel_path in schema_files:
                continue
            path = self._paths.absolute(rel_path)
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                scan.errors.append((rel_path, LetgenError(f"Failed to read document: {e}", path=rel_path)))
                continue
            scan.documents.append(
                DocumentSource(rel_path=rel_path, path=path, content=content, schema_name=binding.name)
            )

        logger.info(
            f"{SCAN} Binding '{binding.name}': {len(schema_files)} schema file(s), "
            f"{len(scan.documents)} document(s)"
        )
        return scan

    def _is_excluded(self, rel_path: str, excludes: Sequence[str]) -> bool:
        parts = rel_path.split("/")
        if any(part in _EXCLUDED_DIRS for part in parts[:-1]):
            return True
        if rel_path == self._output_dir or rel_path.startswith(self._output_dir + "/"):
            return True
        if any(matches_glob(rel_path, pattern) for pattern in excludes):
            return True
        return bool(self._rules) and _is_ignored(rel_path, self._rules)


__all__ = [
    "SchemaSource",
    "DocumentSource",
    "BindingScan",
    "IgnoreRule",
    "parse_gitignore",
    "matches_glob",
    "FileScanner",
]
