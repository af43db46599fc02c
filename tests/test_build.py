"""
Tests for the build use case — log output, error paths, store interplay.
"""

import io
import json
import re
from pathlib import Path

import pytest

from src.core.models.layer import Decision
from src.core.observability.build_log import Emitter
from src.core.persistence.layer_store import LayerStore
from src.core.services.layer_build.domain import (
    ChecksumMismatchError,
    InstallError,
    LayerBuildError,
    MetadataWriteError,
    NoMatchingVersionError,
)
from src.core.use_cases.build import run_build
from tests.helpers import STACK, gemfile_lock


def _build(config, app_dir, layers_dir, clock, environ=None, **kwargs):
    out = io.StringIO()
    result = run_build(
        config,
        app_dir=app_dir,
        layers_dir=layers_dir,
        stack_id=kwargs.pop("stack_id", STACK),
        environ=environ or {},
        emitter=Emitter(out),
        clock=clock,
        **kwargs,
    )
    return result, out.getvalue()


def _store(layers_dir: Path) -> LayerStore:
    return LayerStore(layers_dir / "paketo-community_bundler")


class TestBuildLog:
    def test_first_build_log(self, config, app_dir, layers_dir, clock):
        result, log = _build(config, app_dir, layers_dir, clock)
        layer = layers_dir / "paketo-community_bundler" / "bundler"
        lines = log.splitlines()

        assert lines[:7] == [
            "Bundler Buildpack 1.2.3",
            "  Resolving Bundler version",
            "    Candidate version sources (in priority order):",
            '      <unknown> -> "*"',
            "",
            "    Selected Bundler version (using <unknown>): 2.1.4",
            "",
        ]
        assert lines[7:9] == ["  Executing build process", "    Installing Bundler 2.1.4"]
        assert re.fullmatch(r"      Completed in \d+\.?\d*(ms|s)", lines[9])
        assert lines[10:13] == [
            "",
            "  Configuring environment",
            f'    GEM_PATH -> "$GEM_PATH:{layer}"',
        ]
        assert result.decision == Decision.REBUILD

    def test_candidate_names_aligned(self, config, app_dir, layers_dir, clock):
        (app_dir / "Gemfile.lock").write_text(gemfile_lock("1.17.3"))
        _, log = _build(config, app_dir, layers_dir, clock)
        assert '      Gemfile.lock -> "1.17.3"\n      <unknown>    -> "*"\n' in log
        assert "Selected Bundler version (using Gemfile.lock): 1.17.3" in log

    def test_override_listed(self, config, app_dir, layers_dir, clock):
        _, log = _build(config, app_dir, layers_dir, clock, environ={"BP_BUNDLER_VERSION": "1.*"})
        assert '      BP_BUNDLER_VERSION -> "1.*"' in log
        assert "Selected Bundler version (using BP_BUNDLER_VERSION): 1.17.3" in log


class TestBuildResult:
    def test_metadata_written(self, config, app_dir, layers_dir, clock):
        result, _ = _build(config, app_dir, layers_dir, clock)
        md = _store(layers_dir).load("bundler")

        assert md == result.metadata
        assert md.fingerprint.version == "2.1.4"
        assert md.fingerprint.source_name == "<unknown>"
        assert md.fingerprint.stack_id == STACK
        assert md.built_at == "2020-01-01T00:00:01+00:00"
        assert Path(md.artifact_path) == result.layer_path / "bin" / "bundler"
        assert Path(md.artifact_path).is_file()

    def test_to_dict(self, config, app_dir, layers_dir, clock):
        result, _ = _build(config, app_dir, layers_dir, clock)
        data = result.to_dict()
        assert data["decision"] == "rebuild"
        assert data["version"] == "2.1.4"
        assert data["metadata"]["built_at"] == "2020-01-01T00:00:01+00:00"
        json.dumps(data)

    def test_stack_filters_catalog(self, config, app_dir, layers_dir, clock):
        with pytest.raises(NoMatchingVersionError):
            _build(config, app_dir, layers_dir, clock, stack_id="io.buildpacks.stacks.other")


class TestBuildFailures:
    def test_no_match_writes_nothing(self, config, app_dir, layers_dir, clock):
        (app_dir / "Gemfile.lock").write_text(gemfile_lock("9.9.9"))
        with pytest.raises(NoMatchingVersionError):
            _build(config, app_dir, layers_dir, clock)
        assert _store(layers_dir).load("bundler") is None
        assert clock.calls == 0

    def test_failed_rebuild_invalidates_old_record(self, config, app_dir, layers_dir, clock):
        _build(config, app_dir, layers_dir, clock)
        assert _store(layers_dir).load("bundler") is not None

        (app_dir / "Gemfile.lock").write_text(gemfile_lock("1.17.3"))
        bad = config.model_copy(update={
            "dependencies": [
                d.model_copy(update={"sha256": "0" * 64}) if d.version == "1.17.3" else d
                for d in config.dependencies
            ],
        })
        with pytest.raises(ChecksumMismatchError):
            _build(bad, app_dir, layers_dir, clock)

        assert _store(layers_dir).load("bundler") is None

    def test_corrupt_metadata_triggers_rebuild(self, config, app_dir, layers_dir, clock, caplog):
        _build(config, app_dir, layers_dir, clock)
        _store(layers_dir).record_path("bundler").write_text("{garbage")

        result, log = _build(config, app_dir, layers_dir, clock)

        assert result.decision == Decision.REBUILD
        assert "Installing Bundler 2.1.4" in log
        assert "Unreadable layer metadata" in caplog.text
        assert _store(layers_dir).load("bundler").built_at == "2020-01-01T00:00:02+00:00"

    def test_unreadable_lock_file_falls_through(self, config, app_dir, layers_dir, clock):
        (app_dir / "Gemfile.lock").write_bytes(b"\xff\xfe garbage")
        result, _ = _build(config, app_dir, layers_dir, clock)
        assert result.resolved.chosen_source_name == "<unknown>"

    def test_unremovable_record_is_typed(self, config, app_dir, layers_dir, clock):
        _store(layers_dir).record_path("bundler").mkdir(parents=True)
        with pytest.raises(MetadataWriteError) as exc_info:
            _build(config, app_dir, layers_dir, clock)
        assert isinstance(exc_info.value, LayerBuildError)
        assert clock.calls == 0

    def test_layer_path_blocked_is_typed(self, config, app_dir, layers_dir, clock):
        layer = _store(layers_dir).layer_path("bundler")
        layer.parent.mkdir(parents=True)
        layer.write_text("not a directory")
        with pytest.raises(InstallError):
            _build(config, app_dir, layers_dir, clock)
        assert _store(layers_dir).load("bundler") is None
