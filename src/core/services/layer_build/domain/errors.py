"""
L1 Domain — Layer build error taxonomy.

Resolution and install errors are fatal to the build step.
``MetadataIOError`` is the exception: the build use case degrades it
to "no previous build" and rebuilds.
"""

from __future__ import annotations


class LayerBuildError(Exception):
    """Base class for every failure raised by the layer build."""


class NoConstraintError(LayerBuildError):
    """No candidate version source is present."""

    def __init__(self, tool: str = "", hint: str = ""):
        self.tool = tool
        message = f"No version constraint found for {tool or 'the tool'}."
        if hint:
            message += f" {hint}"
        super().__init__(message)


class NoMatchingVersionError(LayerBuildError):
    """A constraint is present but no catalog entry satisfies it."""

    def __init__(
        self,
        constraint: str,
        source: str = "",
        nearest: list[str] | None = None,
        message: str = "",
    ):
        self.constraint = constraint
        self.source = source
        self.nearest = nearest or []

        if not message:
            origin = f" (from {source})" if source else ""
            message = f'No available version satisfies "{constraint}"{origin}.'
        if self.nearest:
            message += f" Nearest available versions: {', '.join(self.nearest)}"
        else:
            message += " The catalog has no versions for this stack."
        super().__init__(message)


class InvalidConstraintError(NoMatchingVersionError):
    """A present source carries a constraint that cannot be parsed."""

    def __init__(self, constraint: str, source: str = "", nearest: list[str] | None = None):
        origin = f" from {source}" if source else ""
        super().__init__(
            constraint,
            source=source,
            nearest=nearest,
            message=f'Cannot parse version constraint "{constraint}"{origin}.',
        )


class TransportError(LayerBuildError):
    """Fetching the distribution failed (network, timeout, unreadable URI)."""

    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"Failed to download {uri}: {reason}")


class ChecksumMismatchError(LayerBuildError):
    """The downloaded artifact does not match the catalog checksum."""

    def __init__(self, uri: str, expected: str, actual: str):
        self.uri = uri
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch for {uri}: expected sha256:{expected}, got sha256:{actual}"
        )


class InstallError(LayerBuildError):
    """Writing the artifact to disk failed (disk space, bad archive)."""


class MetadataIOError(LayerBuildError):
    """A previous layer metadata record exists but cannot be read."""

    action = "Unreadable"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{self.action} layer metadata {path}: {reason}")


class MetadataWriteError(MetadataIOError):
    """A layer metadata record cannot be written or removed."""

    action = "Cannot update"
