"""
Tests for candidate source reading — lock file, override, default.
"""

import logging

import pytest

from src.core.services.layer_build.domain.sources import (
    DEFAULT_PRIORITY,
    LOCK_FILE_PRIORITY,
    OVERRIDE_PRIORITY,
    parse_lock_file_version,
    read_sources,
)
from tests.helpers import gemfile_lock


class TestParseLockFile:
    def test_bundled_with(self):
        assert parse_lock_file_version(gemfile_lock("1.17.3")) == "1.17.3"

    def test_bundled_with_after_blank_lines(self):
        content = "GEM\n  specs:\n\nBUNDLED WITH\n\n   2.1.4\n"
        assert parse_lock_file_version(content) == "2.1.4"

    def test_crlf_line_endings(self):
        content = "GEM\r\n\r\nBUNDLED WITH\r\n   2.1.4\r\n"
        assert parse_lock_file_version(content) == "2.1.4"

    @pytest.mark.parametrize("content", [
        None,
        "",
        "GEM\n  specs:\n",                      # no marker
        "BUNDLED WITH\n",                        # marker, no version
        "BUNDLED WITH\n   not-a-version\n",      # garbage token
        "BUNDLED WITH\nRUBY VERSION\n   ruby 2.7.1\n",  # next section, not indented
    ])
    def test_unparsable_is_absent(self, content):
        assert parse_lock_file_version(content) is None


class TestReadSources:
    def test_fixed_order(self):
        sources = read_sources(gemfile_lock("1.17.3"), "2.1.*", "*")
        assert [s.priority for s in sources] == [
            LOCK_FILE_PRIORITY, OVERRIDE_PRIORITY, DEFAULT_PRIORITY,
        ]
        assert [s.name for s in sources] == ["Gemfile.lock", "BP_BUNDLER_VERSION", "<unknown>"]

    def test_all_present(self):
        lock, override, default = read_sources(gemfile_lock("1.17.3"), "2.1.*", "*")
        assert lock.present and lock.raw_constraint == "1.17.3"
        assert override.present and override.raw_constraint == "2.1.*"
        assert default.present and default.raw_constraint == "*"

    def test_absent_inputs(self):
        lock, override, default = read_sources(None, None)
        assert not lock.present
        assert not override.present
        assert default.present

    def test_empty_override_is_present(self):
        _, override, _ = read_sources(None, "")
        assert override.present
        assert override.raw_constraint == ""

    def test_unparsable_lock_file_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            lock, _, _ = read_sources("BUNDLED WITH\n   ???\n", None)
        assert not lock.present
        assert "Gemfile.lock" in caplog.text

    def test_custom_names(self):
        lock, override, default = read_sources(
            None, "1.0.0", "2.*",
            lock_file_name="tool.lock",
            override_name="BP_TOOL_VERSION",
            default_name="buildpack.yml",
        )
        assert (lock.name, override.name, default.name) == (
            "tool.lock", "BP_TOOL_VERSION", "buildpack.yml",
        )
        assert default.raw_constraint == "2.*"
