"""
L1 Domain — Semantic versions and version constraints (pure).

Parses ``MAJOR[.MINOR[.PATCH]][-PRERELEASE][+BUILD]`` versions and the
constraint syntax found in lock files, override variables and
buildpack defaults:

    1.17.3 / =1.17.3        exact pin
    * / 2.* / 2.1.x         wildcard (whole catalog, or one major/minor line)
    2.1                     partial version, same as 2.1.*
    >=2.0 <3 / >=2.0, <3    comparisons, ANDed
    ~> 2.1                  pessimistic (>=2.1.0, <3.0.0)
    ~2.1                    tilde (>=2.1.0, <2.2.0)
    ^2.1                    caret (>=2.1.0, <3.0.0)
    1.x || 2.1.*            alternatives

Partial versions in comparisons are zero-filled (``<3`` is ``<3.0.0``).
No I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_VERSION_RE = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_WILDCARD_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.[xX*])?$|^v?(\d+)\.[xX*](?:\.[xX*])?$")

_TERM_RE = re.compile(r"\s*(~>|>=|<=|!=|==|=|>|<|~|\^)?\s*([0-9A-Za-z.*+-]+)")

_WILDCARDS = frozenset({"*", "x", "X"})


@dataclass(frozen=True)
class Version:
    """A parsed semantic version.

    ``parts`` records how many numeric components the text spelled out,
    so ``2.1`` and ``2.1.0`` compare equal but can still be told apart.
    """

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: tuple[str, ...] = ()
    build: str = ""
    parts: int = 3

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def precedence(self) -> tuple:
        """Sort key following semver precedence; build metadata is ignored."""
        if not self.prerelease:
            pre: tuple = ((2, 0, ""),)
        else:
            pre = tuple(
                (0, int(ident), "") if ident.isdigit() else (1, 0, ident)
                for ident in self.prerelease
            )
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre)


def parse_version(text: str) -> Version:
    """Parse a version string.

    Raises:
        ValueError: If ``text`` is not a version.
    """
    m = _VERSION_RE.match(text.strip())
    if not m:
        raise ValueError(f"Invalid version: {text!r}")
    major, minor, patch, pre, build = m.groups()
    return Version(
        major=int(major),
        minor=int(minor) if minor is not None else 0,
        patch=int(patch) if patch is not None else 0,
        prerelease=tuple(pre.split(".")) if pre else (),
        build=build or "",
        parts=1 + (minor is not None) + (patch is not None),
    )


def is_version(text: str) -> bool:
    """True if ``text`` parses as a version."""
    return bool(_VERSION_RE.match(text.strip()))


@dataclass(frozen=True)
class Comparison:
    """A single ``<op> <version>`` term."""

    op: str
    version: Version

    def allows(self, candidate: Version) -> bool:
        c, v = candidate.precedence(), self.version.precedence()
        if self.op == "=":
            return c == v
        if self.op == "!=":
            return c != v
        if self.op == ">":
            return c > v
        if self.op == ">=":
            return c >= v
        if self.op == "<":
            return c < v
        if self.op == "<=":
            return c <= v
        raise ValueError(f"Unknown operator: {self.op}")

    def __str__(self) -> str:
        return f"{self.op}{self.version}"


@dataclass(frozen=True)
class Constraint:
    """A parsed constraint: OR of AND-groups of comparisons.

    An empty group matches every release.  ``pinned`` holds the version
    text of a single exact pin, used for exact-string catalog matches.
    """

    raw: str
    groups: tuple[tuple[Comparison, ...], ...] = field(default_factory=lambda: ((),))
    pinned: str | None = None

    @property
    def allows_prerelease(self) -> bool:
        return any(c.version.is_prerelease for g in self.groups for c in g)

    @property
    def anchor(self) -> Version | None:
        """The lowest version the constraint names, for "nearest" hints."""
        named = [c.version for g in self.groups for c in g if c.op != "!="]
        if not named:
            return None
        return min(named, key=Version.precedence)

    def allows(self, candidate: Version) -> bool:
        if candidate.is_prerelease and not self.allows_prerelease:
            return False
        return any(all(c.allows(candidate) for c in group) for group in self.groups)


def parse_constraint(text: str) -> Constraint:
    """Parse a constraint string into a :class:`Constraint`.

    Raises:
        ValueError: If any term cannot be parsed.
    """
    raw = text.strip()
    if raw in ("", "*", "x", "X"):
        return Constraint(raw=raw or "*")

    groups: list[tuple[Comparison, ...]] = []
    for alt in raw.split("||"):
        alt = alt.replace(",", " ").strip()
        if not alt:
            raise ValueError(f"Empty alternative in constraint: {text!r}")
        groups.append(tuple(_parse_group(alt, text)))

    pinned = None
    if len(groups) == 1 and len(groups[0]) == 1:
        only = groups[0][0]
        if only.op == "=" and only.version.parts == 3:
            pinned = re.sub(r"^(==|=)?\s*v?", "", raw)

    return Constraint(raw=raw, groups=tuple(groups), pinned=pinned)


def _parse_group(alt: str, original: str) -> list[Comparison]:
    terms: list[Comparison] = []
    pos = 0
    while pos < len(alt):
        m = _TERM_RE.match(alt, pos)
        if not m or m.end() == pos:
            raise ValueError(f"Invalid constraint: {original!r}")
        op, operand = m.group(1) or "", m.group(2)
        terms.extend(_expand_term(op, operand, original))
        pos = m.end()
        while pos < len(alt) and alt[pos].isspace():
            pos += 1
    return terms


def _expand_term(op: str, operand: str, original: str) -> list[Comparison]:
    if operand in _WILDCARDS:
        if op in ("", "=", "=="):
            return []
        raise ValueError(f"Operator {op!r} cannot apply to a wildcard in {original!r}")

    w = _WILDCARD_RE.match(operand)
    is_wild = w is not None and any(ch in operand for ch in "xX*")

    if is_wild:
        if op not in ("", "=", "=="):
            raise ValueError(f"Operator {op!r} cannot apply to {operand!r} in {original!r}")
        major = int(w.group(1) if w.group(1) is not None else w.group(3))
        minor = w.group(2) if w.group(1) is not None else None
        return _line_range(major, int(minor) if minor is not None else None)

    try:
        v = parse_version(operand)
    except ValueError:
        raise ValueError(f"Invalid version {operand!r} in {original!r}") from None

    if op in ("", "=", "=="):
        if v.parts == 3 or v.prerelease:
            return [Comparison("=", v)]
        return _line_range(v.major, v.minor if v.parts == 2 else None)
    if op in (">", ">=", "<", "<=", "!="):
        return [Comparison(op, v)]
    if op == "~>":
        if v.parts == 3:
            upper = Version(v.major, v.minor + 1, 0)
        else:
            upper = Version(v.major + 1, 0, 0)
        return [Comparison(">=", v), Comparison("<", upper)]
    if op == "~":
        if v.parts == 1:
            upper = Version(v.major + 1, 0, 0)
        else:
            upper = Version(v.major, v.minor + 1, 0)
        return [Comparison(">=", v), Comparison("<", upper)]
    if op == "^":
        if v.major > 0 or v.parts == 1:
            upper = Version(v.major + 1, 0, 0)
        elif v.minor > 0 or v.parts == 2:
            upper = Version(0, v.minor + 1, 0)
        else:
            upper = Version(0, 0, v.patch + 1)
        return [Comparison(">=", v), Comparison("<", upper)]
    raise ValueError(f"Unknown operator {op!r} in {original!r}")


def _line_range(major: int, minor: int | None) -> list[Comparison]:
    """Comparisons selecting one major (or major.minor) release line."""
    if minor is None:
        return [
            Comparison(">=", Version(major, 0, 0)),
            Comparison("<", Version(major + 1, 0, 0)),
        ]
    return [
        Comparison(">=", Version(major, minor, 0)),
        Comparison("<", Version(major, minor + 1, 0)),
    ]
