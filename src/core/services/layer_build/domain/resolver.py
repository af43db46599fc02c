"""
L1 Domain — Version resolution (pure).

Picks the highest-priority present constraint source and resolves it
against the catalog of distributable versions.

Matching rules:
    1. A catalog entry whose version string equals an exact pin wins outright.
    2. Otherwise the highest-precedence entry allowed by the constraint wins.
    3. Entries tied on precedence (e.g. differing only in build metadata)
       resolve to the earliest one in catalog order.

No I/O, no clock, no network.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.core.models.buildpack import AvailableVersion
from src.core.models.layer import ConstraintSource, ResolvedVersion
from src.core.services.layer_build.domain.errors import (
    InvalidConstraintError,
    NoConstraintError,
    NoMatchingVersionError,
)
from src.core.services.layer_build.domain.semver import (
    Constraint,
    Version,
    parse_constraint,
    parse_version,
)

logger = logging.getLogger(__name__)


def select_source(sources: Sequence[ConstraintSource]) -> ConstraintSource:
    """Return the first present source in ascending priority order.

    Raises:
        NoConstraintError: If no source is present.
    """
    for source in sorted(sources, key=lambda s: s.priority):
        if source.present:
            return source
    raise NoConstraintError(
        hint="Declare a version in the lock file or set the override variable.",
    )


def resolve(
    sources: Sequence[ConstraintSource],
    catalog: Sequence[AvailableVersion],
) -> ResolvedVersion:
    """Resolve the selected source's constraint to one catalog entry.

    Args:
        sources: Candidate sources (any order; sorted by priority here).
        catalog: Available versions in caller-defined, deterministic order.

    Returns:
        ResolvedVersion naming the matched entry and the source used.

    Raises:
        NoConstraintError: No source is present.
        InvalidConstraintError: The selected constraint cannot be parsed.
        NoMatchingVersionError: No catalog entry satisfies the constraint.
    """
    source = select_source(sources)
    parsed = _parsed_catalog(catalog)

    try:
        constraint = parse_constraint(source.raw_constraint)
    except ValueError:
        raise InvalidConstraintError(
            source.raw_constraint,
            source=source.name,
            nearest=nearest_versions(None, parsed),
        ) from None

    entry = match(constraint, parsed)
    if entry is None:
        raise NoMatchingVersionError(
            constraint.raw,
            source=source.name,
            nearest=nearest_versions(constraint.anchor, parsed),
        )

    logger.debug(
        "Resolved %r from %s to %s (%d catalog entries)",
        constraint.raw, source.name, entry.version, len(catalog),
    )
    return ResolvedVersion(
        value=entry.version,
        chosen_source_name=source.name,
        entry=entry,
    )


def match(
    constraint: Constraint,
    parsed: Sequence[tuple[Version, AvailableVersion]],
) -> AvailableVersion | None:
    """Best catalog entry for ``constraint``, or None."""
    if constraint.pinned is not None:
        for _, entry in parsed:
            if entry.version.strip().removeprefix("v") == constraint.pinned:
                return entry

    best: tuple[Version, AvailableVersion] | None = None
    for version, entry in parsed:
        if not constraint.allows(version):
            continue
        # Strictly greater keeps the earliest entry on ties
        if best is None or version.precedence() > best[0].precedence():
            best = (version, entry)
    return best[1] if best else None


def nearest_versions(
    anchor: Version | None,
    parsed: Sequence[tuple[Version, AvailableVersion]],
    limit: int = 3,
) -> list[str]:
    """Catalog versions closest to ``anchor``, ascending.

    With no anchor (wildcard or unparsable constraint), the newest versions.
    """
    seen: dict[tuple, tuple[Version, str]] = {}
    for version, entry in parsed:
        seen.setdefault(version.precedence(), (version, entry.version))
    ordered = [seen[k] for k in sorted(seen)]
    if not ordered:
        return []

    if anchor is None:
        return [text for _, text in ordered[-limit:]]

    key = anchor.precedence()
    pivot = sum(1 for v, _ in ordered if v.precedence() < key)
    picks = sorted(range(len(ordered)), key=lambda i: (abs(i + 0.5 - pivot), -i))[:limit]
    return [ordered[i][1] for i in sorted(picks)]


def _parsed_catalog(
    catalog: Sequence[AvailableVersion],
) -> list[tuple[Version, AvailableVersion]]:
    parsed: list[tuple[Version, AvailableVersion]] = []
    for entry in catalog:
        try:
            parsed.append((parse_version(entry.version), entry))
        except ValueError:
            logger.warning("Skipping catalog entry with invalid version %r", entry.version)
    return parsed
