"""
Test helpers — local distributions and a deterministic clock.
"""

import hashlib
import io
import tarfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

STACK = "io.buildpacks.stacks.bionic"


def make_tarball(path: Path, files: dict[str, str]) -> Path:
    """Write a .tgz at ``path`` holding ``files`` (name → text)."""
    with tarfile.open(path, "w:gz") as tar:
        for name, text in files.items():
            data = text.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return path


def sha256_of(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def gemfile_lock(version: str) -> str:
    return (
        "GEM\n"
        "  remote: https://rubygems.org/\n"
        "  specs:\n"
        "    rack (2.2.3)\n"
        "\n"
        "PLATFORMS\n"
        "  ruby\n"
        "\n"
        "DEPENDENCIES\n"
        "  rack\n"
        "\n"
        "BUNDLED WITH\n"
        f"   {version}\n"
    )


class FakeClock:
    """Deterministic clock: each call is one second later than the last."""

    def __init__(self):
        self._now = datetime(2020, 1, 1, tzinfo=UTC)
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        self._now += timedelta(seconds=1)
        return self._now
