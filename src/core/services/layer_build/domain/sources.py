"""
L1 Domain — Candidate version sources (pure).

Reads the three inputs that may carry a version requirement and lists
them in their fixed priority order.  Nothing here decides which source
wins; that is the resolver's job.

Priority (lower number wins):
    0  lock file      e.g. Gemfile.lock "BUNDLED WITH" section
    1  override       e.g. $BP_BUNDLER_VERSION
    2  default        the buildpack's wildcard, always present
"""

from __future__ import annotations

import logging
import re

from src.core.models.layer import ConstraintSource
from src.core.services.layer_build.domain.semver import is_version

logger = logging.getLogger(__name__)

LOCK_FILE_PRIORITY = 0
OVERRIDE_PRIORITY = 1
DEFAULT_PRIORITY = 2

_BUNDLED_WITH_RE = re.compile(r"^BUNDLED WITH[ \t]*\r?$", re.MULTILINE)


def parse_lock_file_version(content: str | None) -> str | None:
    """Extract the version token following ``BUNDLED WITH``.

    Returns None when the marker is missing, not followed by an indented
    line, or that line is not a version.
    """
    if not content:
        return None

    m = _BUNDLED_WITH_RE.search(content)
    if not m:
        return None

    for line in content[m.end():].splitlines():
        if not line.strip():
            continue
        if not line[0].isspace():
            return None
        token = line.strip()
        return token if is_version(token) else None
    return None


def read_sources(
    lock_content: str | None,
    override: str | None,
    default: str = "*",
    *,
    lock_file_name: str = "Gemfile.lock",
    override_name: str = "BP_BUNDLER_VERSION",
    default_name: str = "<unknown>",
) -> tuple[ConstraintSource, ConstraintSource, ConstraintSource]:
    """Build the ordered candidate sources.

    Args:
        lock_content: Raw lock file text, or None if there is no lock file.
        override: Override value, or None if the variable is unset.
            Presence alone marks the source present, even when empty.
        default: The buildpack's default constraint.

    Returns:
        ``(lock_file, override, default)`` in ascending priority order.
    """
    lock_version = parse_lock_file_version(lock_content)
    if lock_content is not None and lock_version is None:
        logger.warning(
            "%s has no parsable BUNDLED WITH version, ignoring it as a version source",
            lock_file_name,
        )

    return (
        ConstraintSource(
            name=lock_file_name,
            raw_constraint=lock_version or "",
            priority=LOCK_FILE_PRIORITY,
            present=lock_version is not None,
        ),
        ConstraintSource(
            name=override_name,
            raw_constraint=(override or "").strip(),
            priority=OVERRIDE_PRIORITY,
            present=override is not None,
        ),
        ConstraintSource(
            name=default_name,
            raw_constraint=default,
            priority=DEFAULT_PRIORITY,
            present=True,
        ),
    )
