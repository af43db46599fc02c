"""
Build log — the human-readable trace printed once per build.

    Bundler Buildpack 1.2.3
      Resolving Bundler version
        Candidate version sources (in priority order):
          Gemfile.lock -> "1.17.3"
          <unknown>    -> "*"

        Selected Bundler version (using Gemfile.lock): 1.17.3

      Executing build process
        Installing Bundler 1.17.3
          Completed in 1.234s

This is output, not diagnostics: it goes to the given stream (stdout
by default) regardless of the logging level.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import IO

import click

from src.core.models.layer import ConstraintSource

_INDENT = "  "


def format_duration(seconds: float) -> str:
    """Format an elapsed time like ``312ms`` or ``1.234s``."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.3f}s"
    minutes, secs = divmod(seconds, 60)
    return f"{int(minutes)}m{secs:.3f}s"


class Emitter:
    """Writes indented build log lines."""

    def __init__(self, stream: IO[str] | None = None):
        self._stream = stream

    def _line(self, depth: int, text: str) -> None:
        click.echo(f"{_INDENT * depth}{text}" if text else "", file=self._stream)

    def title(self, text: str) -> None:
        self._line(0, text)

    def process(self, text: str) -> None:
        self._line(1, text)

    def subprocess(self, text: str) -> None:
        self._line(2, text)

    def action(self, text: str) -> None:
        self._line(3, text)

    def detail(self, text: str) -> None:
        self._line(4, text)

    def blank(self) -> None:
        self._line(0, "")

    def candidates(self, sources: Sequence[ConstraintSource]) -> None:
        """List present sources with names padded to a common width."""
        present = [s for s in sorted(sources, key=lambda s: s.priority) if s.present]
        self.subprocess("Candidate version sources (in priority order):")
        width = max((len(s.name) for s in present), default=0)
        for s in present:
            self.action(f'{s.name.ljust(width)} -> "{s.raw_constraint}"')
        self.blank()

    def selected(self, tool: str, source: str, version: str) -> None:
        self.subprocess(f"Selected {tool} version (using {source}): {version}")
        self.blank()

    def environment(self, entries: Sequence[tuple[str, str]]) -> None:
        self.process("Configuring environment")
        width = max((len(name) for name, _ in entries), default=0)
        for name, value in entries:
            self.subprocess(f"{name.ljust(width)} -> {value}")
        self.blank()
