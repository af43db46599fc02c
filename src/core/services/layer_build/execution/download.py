"""
L4 Execution — Distribution download and checksum verification.

One blocking fetch per install, bounded by a caller-supplied timeout.
Failures are not retried here.
"""

from __future__ import annotations

import errno
import hashlib
import logging
import urllib.error
import urllib.request
from pathlib import Path

from src.core.services.layer_build.domain.errors import (
    ChecksumMismatchError,
    InstallError,
    TransportError,
)

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


def normalize_uri(uri: str) -> str:
    """Turn a bare filesystem path into a ``file://`` URI."""
    if "://" not in uri:
        return Path(uri).resolve().as_uri()
    return uri


def fetch(uri: str, dest: Path, *, timeout: float = 60.0) -> str:
    """Download ``uri`` to ``dest`` and return its sha256 hex digest.

    Raises:
        TransportError: The source cannot be opened or read (incl. timeout).
        InstallError: ``dest`` cannot be written (e.g. disk full).
    """
    url = normalize_uri(uri)
    logger.info("Downloading %s", url)

    try:
        resp = urllib.request.urlopen(url, timeout=timeout)  # noqa: S310
    except (urllib.error.URLError, TimeoutError, OSError, ValueError) as exc:
        raise TransportError(uri, _reason(exc)) from exc

    hasher = hashlib.sha256()
    size = 0
    with resp:
        try:
            fh = open(dest, "wb")
        except OSError as exc:
            raise InstallError(f"Cannot write {dest}: {_reason(exc)}") from exc
        with fh:
            while True:
                try:
                    chunk = resp.read(_CHUNK)
                except (TimeoutError, OSError) as exc:
                    raise TransportError(uri, _reason(exc)) from exc
                if not chunk:
                    break
                try:
                    fh.write(chunk)
                except OSError as exc:
                    raise InstallError(f"Cannot write {dest}: {_reason(exc)}") from exc
                hasher.update(chunk)
                size += len(chunk)

    logger.debug("Downloaded %d bytes from %s", size, url)
    return hasher.hexdigest()


def verify_checksum(uri: str, path: Path, expected: str, actual: str) -> None:
    """Compare digests; on mismatch remove ``path`` and raise.

    ``expected`` may carry an ``sha256:`` prefix.  An empty ``expected``
    means the distribution ships no checksum and nothing is verified.

    Raises:
        ChecksumMismatchError: If the digests differ.
    """
    if not expected:
        logger.debug("No checksum published for %s, skipping verification", uri)
        return
    want = expected.removeprefix("sha256:").strip().lower()
    if actual != want:
        path.unlink(missing_ok=True)
        raise ChecksumMismatchError(uri, want, actual)


def _reason(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "timed out"
    if isinstance(exc, urllib.error.HTTPError):
        return f"HTTP {exc.code} {exc.reason}"
    if isinstance(exc, urllib.error.URLError):
        return str(exc.reason)
    if isinstance(exc, OSError) and exc.errno == errno.ENOSPC:
        return "insufficient disk space"
    return str(exc)
