"""
L4 Execution — Tool installer.

Fetches the resolved distribution, verifies it, and materializes it in
the layer directory.  Runs only when the decision engine says REBUILD.

Re-running after a partial failure is safe: the layer directory is
cleared before the new artifact is written.  Nothing here writes layer
metadata; the caller does that after ``install`` returns.

Not safe for concurrent callers sharing ``dest_dir``.
"""

from __future__ import annotations

import logging
import shutil
import stat
import tarfile
import tempfile
from pathlib import Path, PurePosixPath

from src.core.models.layer import ResolvedVersion
from src.core.services.layer_build.domain.errors import InstallError, TransportError
from src.core.services.layer_build.execution.download import fetch, verify_checksum

logger = logging.getLogger(__name__)


def install(
    rv: ResolvedVersion,
    dest_dir: Path,
    *,
    executable: str,
    timeout: float = 60.0,
) -> Path:
    """Install ``rv`` into ``dest_dir``.

    Archives (tar, tar.gz, tgz) are extracted into the layer; any other
    payload is installed as ``bin/<executable>``.

    Args:
        rv: The resolved version; its catalog entry supplies uri and sha256.
        dest_dir: Layer directory to (re)populate.
        executable: Name of the tool binary expected under ``bin/``.
        timeout: Seconds allowed for the download.

    Returns:
        Path to the installed executable.

    Raises:
        TransportError: Download failed.
        ChecksumMismatchError: Download did not match the catalog checksum.
        InstallError: The artifact could not be written or is incomplete.
    """
    entry = rv.entry
    if not entry.uri:
        raise TransportError(f"{entry.id or executable}@{rv.value}", "no download URI in catalog")

    prefix = f".{dest_dir.name}-"
    try:
        dest_dir.parent.mkdir(parents=True, exist_ok=True)
        _sweep_staging(dest_dir.parent, prefix)
        staging = Path(tempfile.mkdtemp(dir=dest_dir.parent, prefix=prefix))
    except OSError as exc:
        raise InstallError(f"Cannot prepare {dest_dir}: {exc}") from exc

    try:
        download = staging / (PurePosixPath(entry.uri).name or "download")
        digest = fetch(entry.uri, download, timeout=timeout)
        verify_checksum(entry.uri, download, entry.sha256, digest)

        try:
            _clear(dest_dir)
            if tarfile.is_tarfile(download):
                _extract(download, dest_dir)
            else:
                _place_binary(download, dest_dir / "bin" / executable)
        except (OSError, tarfile.TarError) as exc:
            raise InstallError(f"Cannot install {download.name} into {dest_dir}: {exc}") from exc
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    artifact = dest_dir / "bin" / executable
    if not artifact.is_file():
        raise InstallError(f"Distribution {entry.uri} does not provide bin/{executable}")
    try:
        _make_executable(artifact)
    except OSError as exc:
        raise InstallError(f"Cannot mark {artifact} executable: {exc}") from exc

    logger.info("Installed %s %s to %s", executable, rv.value, dest_dir)
    return artifact


def _sweep_staging(parent: Path, prefix: str) -> None:
    # Left behind when a previous install was killed before its cleanup ran
    for stale in parent.glob(f"{prefix}*"):
        if stale.is_dir():
            logger.debug("Removing stale staging directory %s", stale)
            shutil.rmtree(stale, ignore_errors=True)


def _clear(dest_dir: Path) -> None:
    if dest_dir.exists():
        logger.debug("Clearing previous contents of %s", dest_dir)
        shutil.rmtree(dest_dir)
    dest_dir.mkdir(parents=True)


def _extract(archive: Path, dest_dir: Path) -> None:
    # The "data" filter rejects absolute paths, ".." members and device files
    with tarfile.open(archive) as tar:
        tar.extractall(dest_dir, filter="data")


def _place_binary(payload: Path, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(payload, target)


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
