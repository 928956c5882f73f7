# letgen/config/schema.py
"""
Configuration schema for letgen.

This module defines Pydantic models for:
- EngineConfig: Generation engine plugin configuration
- ProjectConfig: One schema binding (schema globs + document globs)
- LetgenConfig: Top-level configuration (.letgen.yml)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from letgen.core.paths import DEFAULT_OUTPUT_DIRNAME

DEFAULT_PROJECT_NAME = "default"


def _as_list(v: Any) -> Any:
    if isinstance(v, str):
        return [v]
    return v


class EngineConfig(BaseModel):
    """
    Configuration for the generation engine plugin.

    Example:
        >>> EngineConfig(
        ...     plugin_name="command",
        ...     kwargs={"argv": ["node", "scripts/codegen.js"]}
        ... )
    """

    plugin_name: str = Field(..., description="Registered engine name or 'module:attr' path")
    kwargs: Dict[str, Any] = Field(default_factory=dict, description="Engine init kwargs")

    model_config = ConfigDict(extra="forbid")


class ProjectConfig(BaseModel):
    """
    One schema binding: every document matched here is generated against
    the schema matched here.

    Globs are project-relative. Entries starting with "!" are excludes.
    """

    name: str = Field(default=DEFAULT_PROJECT_NAME, description="Binding name")
    schema_globs: List[str] = Field(..., alias="schema", description="Schema file glob(s)")
    documents: List[str] = Field(..., description="Document file glob(s)")
    exclude: List[str] = Field(default_factory=list, description="Extra exclude patterns")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("schema_globs", "documents", "exclude", mode="before")
    @classmethod
    def normalize_globs(cls, v: Any) -> Any:
        """Accept a single glob string as well as a list."""
        return _as_list(v)

    @field_validator("schema_globs", "documents")
    @classmethod
    def require_include(cls, v: List[str]) -> List[str]:
        if not [p for p in v if not p.startswith("!")]:
            raise ValueError("at least one non-exclude glob is required")
        return v


class LetgenConfig(BaseModel):
    """
    Central configuration for code generation.

    Example YAML:
        schema: schema/**/*.graphqls
        documents:
          - "**/*.graphql"
          - "!legacy/**"
        output_dir: __generated__
        use_index_signature: true
        codegen:
          avoidOptionals: true
        engine:
          plugin_name: command
          kwargs:
            argv: [node, scripts/codegen.js]

    Multiple schemas:
        projects:
          - name: api
            schema: api/schema.graphqls
            documents: api/**/*.graphql
          - name: admin
            schema: admin/schema.graphqls
            documents: admin/**/*.graphql
    """

    schema_globs: Optional[List[str]] = Field(
        default=None, alias="schema", description="Schema file glob(s)"
    )
    documents: Optional[List[str]] = Field(default=None, description="Document file glob(s)")
    exclude: List[str] = Field(default_factory=list, description="Extra exclude patterns")
    projects: List[ProjectConfig] = Field(
        default_factory=list, description="Named schema bindings (multi-schema setups)"
    )
    output_dir: str = Field(
        default=DEFAULT_OUTPUT_DIRNAME, description="Output root for generated modules"
    )
    use_index_signature: bool = Field(
        default=False, description="Add an index-signature form to generated types"
    )
    respect_gitignore: bool = Field(
        default=True, description="Skip files ignored by the project's .gitignore"
    )
    codegen: Dict[str, Any] = Field(
        default_factory=dict, description="Options forwarded to the generation engine"
    )
    module_extension: str = Field(default=".tsx", description="Suffix of generated modules")
    declaration_extension: str = Field(
        default=".d.ts", description="Suffix of generated declarations"
    )
    max_workers: Optional[int] = Field(
        default=None, ge=1, description="Parallel generation workers (1 = sequential)"
    )
    engine: Optional[EngineConfig] = Field(default=None, description="Generation engine")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("schema_globs", "documents", "exclude", mode="before")
    @classmethod
    def normalize_globs(cls, v: Any) -> Any:
        """Accept a single glob string as well as a list."""
        return _as_list(v)

    @field_validator("module_extension", "declaration_extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        """Ensure extensions start with a dot."""
        if not v.startswith("."):
            v = f".{v}"
        return v

    @field_validator("output_dir")
    @classmethod
    def output_dir_is_relative(cls, v: str) -> str:
        stripped = v.strip().strip("/")
        if not stripped or v.startswith("/") or ".." in stripped.split("/"):
            raise ValueError("output_dir must be a project-relative directory")
        return stripped

    @model_validator(mode="after")
    def check_bindings(self) -> "LetgenConfig":
        if self.projects:
            if self.schema_globs or self.documents:
                raise ValueError("use either top-level schema/documents or projects, not both")
            names = [p.name for p in self.projects]
            if len(names) != len(set(names)):
                raise ValueError(f"duplicate project names: {names}")
        elif not self.schema_globs or not self.documents:
            raise ValueError("'schema' and 'documents' are required")
        return self

    def bindings(self) -> List[ProjectConfig]:
        """All schema bindings, with top-level excludes applied to each."""
        if self.projects:
            return [
                p.model_copy(update={"exclude": [*p.exclude, *self.exclude]})
                for p in self.projects
            ]
        return [
            ProjectConfig(
                name=DEFAULT_PROJECT_NAME,
                schema=self.schema_globs,
                documents=self.documents,
                exclude=list(self.exclude),
            )
        ]

    def generation_options(self) -> Dict[str, Any]:
        """
        Effective options passed to the engine and folded into fingerprints.

        Anything that can change generated text belongs here.
        """
        options = dict(self.codegen)
        options["use_index_signature"] = self.use_index_signature
        return options


__all__ = [
    "DEFAULT_PROJECT_NAME",
    "EngineConfig",
    "ProjectConfig",
    "LetgenConfig",
]
