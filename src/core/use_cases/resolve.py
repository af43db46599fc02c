"""
Resolve use case — read the candidate sources and pick a version.

Emits the "Resolving <Tool> version" block of the build log.  Used on
its own by ``toolpack resolve`` and as the first half of a build.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from src.core.models.buildpack import BuildpackConfig
from src.core.models.layer import ConstraintSource, ResolvedVersion
from src.core.observability.build_log import Emitter
from src.core.services.layer_build.domain import read_sources, resolve

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Sources considered and the version they resolved to."""

    sources: tuple[ConstraintSource, ...] = field(default_factory=tuple)
    resolved: ResolvedVersion | None = None

    def to_dict(self) -> dict:
        result: dict = {
            "sources": [
                {
                    "name": s.name,
                    "constraint": s.raw_constraint,
                    "priority": s.priority,
                    "present": s.present,
                }
                for s in self.sources
            ],
        }
        if self.resolved:
            result["selected"] = {
                "version": self.resolved.value,
                "source": self.resolved.chosen_source_name,
                "uri": self.resolved.entry.uri,
            }
        return result


def read_lock_file(path: Path) -> str | None:
    """Lock file text, or None when missing or unreadable."""
    if not path.is_file():
        logger.debug("No lock file at %s", path)
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s, ignoring it as a version source", path, e)
        return None


def resolve_version(
    config: BuildpackConfig,
    *,
    app_dir: Path,
    stack_id: str,
    environ: Mapping[str, str],
    emitter: Emitter,
) -> Resolution:
    """Resolve the tool version for the application in ``app_dir``.

    Raises:
        NoConstraintError: No source is present.
        NoMatchingVersionError: Nothing in the stack's catalog matches.
    """
    tool = config.tool
    emitter.process(f"Resolving {tool.name} version")

    sources = read_sources(
        read_lock_file(app_dir / tool.lock_file),
        environ.get(tool.override_env),
        tool.default_constraint,
        lock_file_name=tool.lock_file,
        override_name=tool.override_env,
        default_name=tool.default_source_name,
    )
    emitter.candidates(sources)

    catalog = config.catalog_for_stack(stack_id)
    logger.debug("%d of %d catalog entries support stack %s",
                 len(catalog), len(config.dependencies), stack_id)

    rv = resolve(sources, catalog)
    emitter.selected(tool.name, rv.chosen_source_name, rv.value)
    return Resolution(sources=sources, resolved=rv)
