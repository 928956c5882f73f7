# tests/test_codegen_executor.py
"""
Tests for batch mode (letgen.codegen.executor).

Covers the incremental guarantees end to end with the fake engine:
- a second run with nothing changed regenerates nothing
- content, schema and option changes regenerate exactly what they affect
- deleted artifacts are recovered
- one failing document never affects the others
- orphaned entries are pruned
"""

import json
from pathlib import Path

import pytest
import yaml

from letgen.codegen.engine import GeneratedOutput, GenerationKind
from letgen.codegen.executor import CodegenExecutor, OutcomeStatus, run_codegen
from letgen.codegen.manifest import ManifestStore
from letgen.config import load_letgen_config
from letgen.core.exceptions import (
    ArtifactWriteError,
    CodegenRunError,
    GenerationError,
    SchemaLoadError,
)
from letgen.core.paths import LetgenPaths

from tests.conftest import BROKE_MESSAGE, BROKEN_DOCUMENT, DOCUMENTS, SCHEMA, write_project

pytestmark = pytest.mark.tier2


def _manifest(root: Path) -> dict:
    return json.loads((root / ".letgen" / "manifest.json").read_text(encoding="utf-8"))


def _outcome(summary, rel_path):
    return next(o for o in summary.outcomes if o.rel_path == rel_path)


def _set_config(root: Path, **overrides) -> None:
    path = root / ".letgen.yml"
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    data.update(overrides)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


class TestFirstRun:
    def test_generates_every_document(self, project, engine):
        summary = run_codegen(project, engine=engine)

        assert summary.ok
        assert summary.scanned == 3
        assert summary.generated == 3
        assert summary.skipped == 0
        assert engine.document_calls() == sorted(DOCUMENTS)

    def test_writes_artifacts_at_deterministic_paths(self, project, engine):
        run_codegen(project, engine=engine)

        for rel_path, content in DOCUMENTS.items():
            module = project / "__generated__" / f"{rel_path}.tsx"
            declaration = project / f"{rel_path}.d.ts"
            assert module.read_text(encoding="utf-8") == (
                f"export const document = {json.dumps(content)};\n"
            )
            assert declaration.is_file()

    def test_writes_schema_declaration(self, project, engine):
        summary = run_codegen(project, engine=engine)

        assert summary.schemas_generated == 1
        assert (project / "schema" / "type-defs.graphqls.d.ts").is_file()
        assert engine.schema_calls() == ["schema/type-defs.graphqls"]

    def test_manifest_records_every_document(self, project, engine):
        summary = run_codegen(project, engine=engine)

        data = _manifest(project)
        assert sorted(data["documents"]) == sorted(DOCUMENTS)
        for context in summary.contexts():
            entry = data["documents"][context.rel_path]
            assert entry["fingerprint"] == context.fingerprint
            assert entry["module_path"] == f"__generated__/{context.rel_path}.tsx"
            assert "skip" not in entry
        assert "default" in data["schemas"]

    def test_contexts_are_ordered_by_path(self, project, engine):
        summary = run_codegen(project, engine=engine)

        paths = [c.rel_path for c in summary.contexts()]
        assert paths == sorted(paths)

    def test_identifier_derives_from_fingerprint(self, project, engine):
        summary = run_codegen(project, engine=engine)

        for context in summary.contexts():
            assert context.identifier == f"V{context.fingerprint}"

    def test_summary_string(self, project, engine):
        summary = run_codegen(project, engine=engine)

        assert str(summary) == "scanned 3, generated 3, skipped 0, pruned 0, errors 0"
        assert summary.duration_seconds >= 0


class TestIdempotence:
    def test_second_run_skips_everything(self, project, engine):
        first = run_codegen(project, engine=engine)
        engine.reset()

        second = run_codegen(project, engine=engine)

        assert second.generated == 0
        assert second.skipped == 3
        assert engine.calls == []
        assert all(c.skip for c in second.contexts())
        assert [c.fingerprint for c in second.contexts()] == [
            c.fingerprint for c in first.contexts()
        ]

    def test_second_run_leaves_artifacts_untouched(self, project, engine):
        run_codegen(project, engine=engine)
        module = project / "__generated__" / "src/viewer.graphql.tsx"
        before = module.stat().st_mtime_ns

        run_codegen(project, engine=engine)

        assert module.stat().st_mtime_ns == before

    def test_force_regenerates_everything(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()

        summary = run_codegen(project, engine=engine, force=True)

        assert summary.generated == 3
        assert engine.schema_calls() == ["schema/type-defs.graphqls"]
        assert all(str(o.reason) == "forced" for o in summary.outcomes)


class TestChangeSensitivity:
    def test_content_change_regenerates_only_that_document(self, project, engine):
        first = run_codegen(project, engine=engine)
        engine.reset()
        (project / "src/viewer.graphql").write_text(
            "query Viewer { viewer { id } }\n", encoding="utf-8"
        )

        second = run_codegen(project, engine=engine)

        assert engine.document_calls() == ["src/viewer.graphql"]
        assert second.generated == 1
        assert second.skipped == 2
        outcome = _outcome(second, "src/viewer.graphql")
        assert outcome.reason.fingerprint_changed
        assert outcome.fingerprint != _outcome(first, "src/viewer.graphql").fingerprint

    def test_schema_change_regenerates_every_bound_document(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        (project / "schema" / "type-defs.graphqls").write_text(
            SCHEMA + "\ntype Extra { id: ID }\n", encoding="utf-8"
        )

        summary = run_codegen(project, engine=engine)

        assert summary.generated == 3
        assert engine.document_calls() == sorted(DOCUMENTS)
        assert engine.schema_calls() == ["schema/type-defs.graphqls"]
        assert all(o.reason.schema_changed for o in summary.outcomes)

    def test_option_change_regenerates_everything(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        _set_config(project, use_index_signature=True)

        summary = run_codegen(project, engine=engine)

        assert summary.generated == 3
        declaration = (project / "src/viewer.graphql.d.ts").read_text(encoding="utf-8")
        assert '"use_index_signature":true' in declaration

    def test_deleted_module_is_regenerated(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        (project / "__generated__" / "src/user-id.graphql.tsx").unlink()

        summary = run_codegen(project, engine=engine)

        assert engine.document_calls() == ["src/user-id.graphql"]
        assert _outcome(summary, "src/user-id.graphql").reason.artifact_missing
        assert (project / "__generated__" / "src/user-id.graphql.tsx").is_file()

    def test_deleted_declaration_is_regenerated(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        (project / "src/nested/user-name.graphql.d.ts").unlink()

        run_codegen(project, engine=engine)

        assert engine.document_calls() == ["src/nested/user-name.graphql"]

    def test_output_dir_change_moves_modules(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        _set_config(project, output_dir="gen2")

        summary = run_codegen(project, engine=engine)

        assert summary.generated == 3
        assert engine.document_calls() == sorted(DOCUMENTS)
        assert all(o.reason.location_changed for o in summary.outcomes)
        assert (project / "gen2" / "src/viewer.graphql.tsx").is_file()
        assert not (project / "__generated__" / "src/viewer.graphql.tsx").exists()
        assert _manifest(project)["documents"]["src/viewer.graphql"]["module_path"] == (
            "gen2/src/viewer.graphql.tsx"
        )

    def test_output_dir_change_then_rerun_is_fresh(self, project, engine):
        run_codegen(project, engine=engine)
        _set_config(project, output_dir="gen2")
        run_codegen(project, engine=engine)
        engine.reset()

        summary = run_codegen(project, engine=engine)

        assert summary.skipped == 3
        assert engine.calls == []

    def test_extension_change_moves_declarations(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        _set_config(project, declaration_extension=".d.mts")

        summary = run_codegen(project, engine=engine)

        assert summary.generated == 3
        assert (project / "src/user-id.graphql.d.mts").is_file()
        assert not (project / "src/user-id.graphql.d.ts").exists()

    def test_new_document_is_generated(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        (project / "src/extra.graphql").write_text("query Extra { viewer { id } }\n", encoding="utf-8")

        summary = run_codegen(project, engine=engine)

        assert engine.document_calls() == ["src/extra.graphql"]
        assert _outcome(summary, "src/extra.graphql").reason.is_new


class TestFailureIsolation:
    @pytest.fixture
    def broken_project(self, tmp_path):
        documents = dict(DOCUMENTS)
        documents["src/broken.graphql"] = BROKEN_DOCUMENT
        return write_project(tmp_path, documents=documents)

    def test_other_documents_still_generate(self, broken_project, engine):
        summary = run_codegen(broken_project, engine=engine)

        assert not summary.ok
        assert summary.generated == 3
        assert summary.errors == 1
        assert _outcome(summary, "src/broken.graphql").status == OutcomeStatus.ERROR

    def test_diagnostic_is_kept_verbatim(self, broken_project, engine):
        summary = run_codegen(broken_project, engine=engine)

        error = _outcome(summary, "src/broken.graphql").error
        assert isinstance(error, GenerationError)
        assert error.message == BROKE_MESSAGE
        assert error.path == "src/broken.graphql"

    def test_failed_document_gets_no_entry(self, broken_project, engine):
        run_codegen(broken_project, engine=engine)

        assert "src/broken.graphql" not in _manifest(broken_project)["documents"]
        assert not (broken_project / "__generated__" / "src/broken.graphql.tsx").exists()

    def test_failure_keeps_previous_entry_and_artifacts(self, project, engine):
        first = run_codegen(project, engine=engine)
        previous = _manifest(project)["documents"]["src/viewer.graphql"]
        module = project / "__generated__" / "src/viewer.graphql.tsx"
        previous_module = module.read_text(encoding="utf-8")

        (project / "src/viewer.graphql").write_text(BROKEN_DOCUMENT, encoding="utf-8")
        second = run_codegen(project, engine=engine)

        assert _outcome(second, "src/viewer.graphql").status == OutcomeStatus.ERROR
        assert _manifest(project)["documents"]["src/viewer.graphql"] == previous
        assert module.read_text(encoding="utf-8") == previous_module
        assert first.ok

    def test_failed_document_is_retried_next_run(self, broken_project, engine):
        run_codegen(broken_project, engine=engine)
        engine.reset()

        run_codegen(broken_project, engine=engine)

        assert engine.document_calls() == ["src/broken.graphql"]

    def test_raise_for_errors(self, broken_project, engine):
        summary = run_codegen(broken_project, engine=engine)

        with pytest.raises(CodegenRunError) as exc_info:
            summary.raise_for_errors()

        assert len(exc_info.value.errors) == 1
        assert BROKE_MESSAGE in str(exc_info.value)

    def test_unexpected_engine_exception_is_wrapped(self, project):
        class ExplodingEngine:
            def generate(self, request):
                if request.kind == GenerationKind.SCHEMA:
                    return GeneratedOutput(module="", declaration="")
                raise RuntimeError("boom")

        summary = run_codegen(project, engine=ExplodingEngine())

        assert summary.errors == 3
        for outcome in summary.failures():
            assert isinstance(outcome.error, GenerationError)
            assert outcome.error.message == "boom"

    def test_malformed_engine_output_fails_only_that_document(self, project, engine):
        class NoModuleEngine:
            def generate(self, request):
                if request.path == "src/user-id.graphql":
                    return GeneratedOutput(module=None, declaration="// user-id\n")
                return engine.generate(request)

        summary = run_codegen(project, engine=NoModuleEngine())

        assert summary.generated == 2
        assert summary.errors == 1
        error = _outcome(summary, "src/user-id.graphql").error
        assert isinstance(error, GenerationError)
        assert error.message.startswith("Invalid engine output")
        assert "src/user-id.graphql" not in _manifest(project)["documents"]
        assert (project / "__generated__" / "src/viewer.graphql.tsx").is_file()

    def test_engine_returning_wrong_type_is_an_error(self, project, engine):
        class TextEngine:
            def generate(self, request):
                if request.kind == GenerationKind.SCHEMA:
                    return engine.generate(request)
                return "export const document = null;"

        summary = run_codegen(project, engine=TextEngine())

        assert summary.errors == 3
        for outcome in summary.failures():
            assert "expected GeneratedOutput, got str" in outcome.error.message


class TestManifestRecovery:
    def test_corrupt_manifest_regenerates_everything(self, project, engine):
        run_codegen(project, engine=engine)
        engine.reset()
        (project / ".letgen" / "manifest.json").write_text("{not json", encoding="utf-8")

        summary = run_codegen(project, engine=engine)

        assert summary.ok
        assert summary.generated == 3
        assert sorted(_manifest(project)["documents"]) == sorted(DOCUMENTS)

    def test_write_failure_leaves_manifest_unchanged(self, project, engine, monkeypatch):
        run_codegen(project, engine=engine)
        before = _manifest(project)["documents"]["src/viewer.graphql"]
        (project / "src/viewer.graphql").write_text(
            "query Viewer { viewer { name } }\n", encoding="utf-8"
        )

        def fail_write(self, rel_path, module_text, declaration_text):
            raise ArtifactWriteError("Failed to write artifacts: disk full", path=rel_path)

        monkeypatch.setattr("letgen.codegen.writer.ArtifactWriter.write", fail_write)
        summary = run_codegen(project, engine=engine)

        assert _outcome(summary, "src/viewer.graphql").status == OutcomeStatus.ERROR
        assert _manifest(project)["documents"]["src/viewer.graphql"] == before


class TestPruning:
    def test_removed_document_is_pruned(self, project, engine):
        run_codegen(project, engine=engine)
        (project / "src/user-id.graphql").unlink()

        summary = run_codegen(project, engine=engine)

        assert summary.pruned == 1
        assert "src/user-id.graphql" not in _manifest(project)["documents"]
        assert not (project / "__generated__" / "src/user-id.graphql.tsx").exists()
        assert not (project / "src/user-id.graphql.d.ts").exists()

    def test_failed_documents_are_not_pruned(self, project, engine):
        run_codegen(project, engine=engine)
        (project / "src/viewer.graphql").write_text(BROKEN_DOCUMENT, encoding="utf-8")

        summary = run_codegen(project, engine=engine)

        assert summary.pruned == 0
        assert "src/viewer.graphql" in _manifest(project)["documents"]


class TestSchemaFailures:
    def test_missing_schema_fails_every_bound_document(self, project, engine):
        (project / "schema" / "type-defs.graphqls").unlink()

        summary = run_codegen(project, engine=engine)

        assert summary.errors == 3
        assert len(summary.schema_errors) == 1
        assert isinstance(summary.schema_errors[0], SchemaLoadError)
        assert engine.document_calls() == []

    def test_schema_failure_keeps_existing_entries(self, project, engine):
        run_codegen(project, engine=engine)
        (project / "schema" / "type-defs.graphqls").write_text("BROKEN", encoding="utf-8")

        summary = run_codegen(project, engine=engine)

        assert summary.errors == 3
        assert summary.pruned == 0
        assert sorted(_manifest(project)["documents"]) == sorted(DOCUMENTS)

    def test_raise_for_errors_reports_schema_once(self, project, engine):
        (project / "schema" / "type-defs.graphqls").unlink()
        summary = run_codegen(project, engine=engine)

        with pytest.raises(CodegenRunError) as exc_info:
            summary.raise_for_errors()

        assert len(exc_info.value.errors) == 1


class TestProjects:
    @pytest.fixture
    def multi_project(self, tmp_path):
        write_project(
            tmp_path,
            documents={
                "app/viewer.graphql": "query Viewer { viewer { id } }\n",
                "admin/users.graphql": "query Users { users { id } }\n",
            },
        )
        (tmp_path / "admin-schema").mkdir()
        (tmp_path / "admin-schema" / "admin.graphqls").write_text(
            "type Query { users: [User] }\ntype User { id: ID }\n", encoding="utf-8"
        )
        (tmp_path / ".letgen.yml").write_text(
            yaml.safe_dump(
                {
                    "projects": [
                        {"name": "app", "schema": "schema/*.graphqls", "documents": "app/**/*.graphql"},
                        {
                            "name": "admin",
                            "schema": "admin-schema/*.graphqls",
                            "documents": "admin/**/*.graphql",
                        },
                    ]
                }
            ),
            encoding="utf-8",
        )
        return tmp_path

    def test_each_document_binds_to_its_schema(self, multi_project, engine):
        summary = run_codegen(multi_project, engine=engine)

        assert summary.ok
        names = {c.rel_path: c.schema_name for c in summary.contexts()}
        assert names == {"app/viewer.graphql": "app", "admin/users.graphql": "admin"}

    def test_schema_change_only_affects_its_documents(self, multi_project, engine):
        run_codegen(multi_project, engine=engine)
        engine.reset()
        (multi_project / "admin-schema" / "admin.graphqls").write_text(
            "type Query { users: [User] }\ntype User { id: ID name: String }\n", encoding="utf-8"
        )

        summary = run_codegen(multi_project, engine=engine)

        assert engine.document_calls() == ["admin/users.graphql"]
        assert _outcome(summary, "app/viewer.graphql").skip

    def test_broken_schema_only_fails_its_documents(self, multi_project, engine):
        (multi_project / "admin-schema" / "admin.graphqls").write_text("BROKEN", encoding="utf-8")

        summary = run_codegen(multi_project, engine=engine)

        assert _outcome(summary, "app/viewer.graphql").status == OutcomeStatus.SUCCESS
        assert _outcome(summary, "admin/users.graphql").status == OutcomeStatus.ERROR


class TestAlternateConfig:
    def test_alternate_config_uses_its_own_manifest(self, project, engine):
        write_project(project, config={"use_index_signature": True}, config_name="letgen.alt.yml")

        run_codegen(project, engine=engine)
        run_codegen(project, engine=engine, config_path="letgen.alt.yml")

        assert (project / ".letgen" / "manifest.json").is_file()
        assert LetgenPaths(project).manifest("letgen.alt.yml").is_file()

    def test_same_file_name_in_two_directories(self, tmp_path, engine):
        documents = {
            "a/src/one.graphql": "query One { viewer { id } }\n",
            "b/src/two.graphql": "query Two { viewer { name } }\n",
        }
        root = write_project(tmp_path, documents=documents)
        for name in ("a", "b"):
            write_project(
                tmp_path,
                documents={},
                config={"documents": f"{name}/**/*.graphql"},
                config_name=f"{name}/.letgen-x.yml",
            )

        run_codegen(root, engine=engine, config_path="a/.letgen-x.yml")
        run_codegen(root, engine=engine, config_path="b/.letgen-x.yml")
        engine.reset()
        summary = run_codegen(root, engine=engine, config_path="a/.letgen-x.yml")

        assert engine.calls == []
        assert summary.skipped == 1
        assert (root / "__generated__" / "a/src/one.graphql.tsx").is_file()
        assert (root / "__generated__" / "b/src/two.graphql.tsx").is_file()


class TestParallelism:
    def test_sequential_and_parallel_agree(self, tmp_path, engine):
        documents = {
            f"src/q{i}.graphql": f"query Q{i} {{ viewer {{ id }} }}\n" for i in range(12)
        }
        sequential_root = write_project(tmp_path / "seq", documents=documents)
        parallel_root = write_project(tmp_path / "par", documents=documents)

        sequential = run_codegen(sequential_root, engine=engine, max_workers=1)
        parallel = run_codegen(parallel_root, engine=engine, max_workers=6)

        assert [c.fingerprint for c in sequential.contexts()] == [
            c.fingerprint for c in parallel.contexts()
        ]
        assert sorted(_manifest(parallel_root)["documents"]) == sorted(documents)


class TestPlan:
    def test_plan_does_not_call_engine_or_write(self, project, engine):
        config = load_letgen_config(project)
        executor = CodegenExecutor(config=config, project_root=project, engine=engine)

        diff, summary = executor.plan()

        assert len(diff.to_generate) == 3
        assert engine.calls == []
        assert not (project / ".letgen" / "manifest.json").exists()
        assert summary.ok

    def test_plan_after_run_is_all_fresh(self, project, engine):
        run_codegen(project, engine=engine)
        config = load_letgen_config(project)
        executor = CodegenExecutor(
            config=config,
            project_root=project,
            engine=engine,
            manifest_store=ManifestStore(project / ".letgen" / "manifest.json"),
        )

        diff, _ = executor.plan()

        assert diff.to_generate == []
        assert len(diff.to_skip) == 3
