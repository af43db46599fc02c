"""
Tests for configuration loading — buildpack.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from src.core.config.loader import ConfigError, find_config_file, load_config
from src.core.models.buildpack import BuildpackConfig


@pytest.fixture
def valid_buildpack_yml(tmp_path: Path) -> Path:
    """Create a valid buildpack.yml in a temp directory."""
    content = textwrap.dedent("""\
        buildpack:
          id: paketo-community/bundler
          name: Bundler Buildpack
          version: 0.1.0

        tool:
          name: Bundler
          executable: bundler
          lock_file: Gemfile.lock
          override_env: BP_BUNDLER_VERSION

        dependencies:
          - id: bundler
            version: 1.17.3
            uri: https://example.com/bundler-1.17.3.tgz
            sha256: abc123
            stacks: [io.buildpacks.stacks.bionic]
          - id: bundler
            version: 2.1
            uri: dist/bundler-2.1.0.tgz
            stacks: ["*"]
    """)
    path = tmp_path / "buildpack.yml"
    path.write_text(content)
    return path


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_valid_config(self, valid_buildpack_yml: Path):
        config = load_config(valid_buildpack_yml)
        assert isinstance(config, BuildpackConfig)
        assert config.buildpack.id == "paketo-community/bundler"
        assert config.buildpack.version == "0.1.0"
        assert config.buildpack.layer_namespace == "paketo-community_bundler"
        assert len(config.dependencies) == 2

    def test_float_version_coerced(self, valid_buildpack_yml: Path):
        config = load_config(valid_buildpack_yml)
        assert config.dependencies[1].version == "2.1"

    def test_relative_uri_resolved(self, valid_buildpack_yml: Path):
        config = load_config(valid_buildpack_yml)
        base = valid_buildpack_yml.parent.resolve()
        assert config.dependencies[0].uri == "https://example.com/bundler-1.17.3.tgz"
        assert config.dependencies[1].uri == str(base / "dist" / "bundler-2.1.0.tgz")

    def test_catalog_for_stack(self, valid_buildpack_yml: Path):
        config = load_config(valid_buildpack_yml)
        assert [d.version for d in config.catalog_for_stack("io.buildpacks.stacks.bionic")] == [
            "1.17.3", "2.1",
        ]
        assert [d.version for d in config.catalog_for_stack("other")] == ["2.1"]

    def test_empty_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "buildpack.yml"
        path.write_text("")
        config = load_config(path)
        assert config.tool.name == "Bundler"
        assert config.tool.default_constraint == "*"
        assert config.tool.env_var == "GEM_PATH"
        assert config.dependencies == []

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nonexistent.yml")

    def test_invalid_yaml_raises(self, tmp_path: Path):
        bad = tmp_path / "buildpack.yml"
        bad.write_text("dependencies: [\n  - broken")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(bad)

    def test_non_mapping_raises(self, tmp_path: Path):
        bad = tmp_path / "buildpack.yml"
        bad.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(bad)

    def test_missing_version_raises(self, tmp_path: Path):
        bad = tmp_path / "buildpack.yml"
        bad.write_text("dependencies:\n  - id: bundler\n    uri: x.tgz\n")
        with pytest.raises(ConfigError, match="Invalid buildpack configuration"):
            load_config(bad)

    def test_auto_search_returns_none(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match=r"No buildpack\.yml found"):
            load_config()


class TestFindConfigFile:
    """Tests for find_config_file()."""

    def test_find_in_current_dir(self, valid_buildpack_yml: Path):
        found = find_config_file(valid_buildpack_yml.parent)
        assert found == valid_buildpack_yml.resolve()

    def test_find_in_parent_dir(self, valid_buildpack_yml: Path):
        child = valid_buildpack_yml.parent / "app" / "nested"
        child.mkdir(parents=True)
        assert find_config_file(child) == valid_buildpack_yml.resolve()

    def test_not_found_returns_none(self, tmp_path: Path):
        subdir = tmp_path / "deep" / "nested"
        subdir.mkdir(parents=True)
        assert find_config_file(subdir) is None
