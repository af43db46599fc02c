"""
Layer metadata store — atomic read/write of per-layer provenance.

Each layer's record is a JSON file next to the layer directory:

    <root>/<layer>.json     metadata record
    <root>/<layer>/         installed artifact

Writes are atomic (write to temp file, then rename).  The build use case
deletes a record before it touches the layer directory and saves the new
one only after the install succeeded, so a record on disk always
describes a complete artifact.

Not safe for concurrent callers sharing the same root.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import ValidationError

from src.core.models.layer import LayerMetadata
from src.core.services.layer_build.domain.errors import MetadataIOError, MetadataWriteError

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"


class LayerStore:
    """Key-value store of layer metadata, keyed by layer name."""

    def __init__(self, root: Path):
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def record_path(self, layer_key: str) -> Path:
        return self._root / f"{layer_key}{RECORD_SUFFIX}"

    def layer_path(self, layer_key: str) -> Path:
        """Directory holding the layer's artifact."""
        return self._root / layer_key

    def load(self, layer_key: str) -> LayerMetadata | None:
        """Load the metadata recorded by the previous build.

        Returns:
            The metadata, or None if no record exists.

        Raises:
            MetadataIOError: A record exists but is unreadable or corrupt.
        """
        path = self.record_path(layer_key)
        if not path.is_file():
            logger.debug("No layer metadata at %s", path)
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MetadataIOError(str(path), str(e)) from e

        if not isinstance(data, dict):
            raise MetadataIOError(str(path), f"expected an object, got {type(data).__name__}")

        try:
            md = LayerMetadata.from_record(data)
        except KeyError as e:
            raise MetadataIOError(str(path), f"missing field {e}") from e
        except (ValidationError, TypeError) as e:
            raise MetadataIOError(str(path), str(e)) from e

        logger.debug("Loaded layer metadata from %s (built_at=%s)", path, md.built_at)
        return md

    def save(self, layer_key: str, md: LayerMetadata) -> None:
        """Persist ``md`` for ``layer_key`` (atomic write).

        Raises:
            MetadataWriteError: The record could not be written.
        """
        path = self.record_path(layer_key)
        content = json.dumps(md.to_record(), indent=2, ensure_ascii=False) + "\n"

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _fd, tmp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{layer_key}_",
                suffix=".tmp",
            )
            tmp = Path(tmp_path)
            try:
                with open(_fd, "w", encoding="utf-8") as fh:
                    fh.write(content)
                tmp.replace(path)
                logger.debug("Layer metadata saved to %s", path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to save layer metadata to %s: %s", path, e)
            raise MetadataWriteError(str(path), str(e)) from e

    def delete(self, layer_key: str) -> None:
        """Remove the record so no later load can vouch for the layer.

        Raises:
            MetadataWriteError: The record exists but could not be removed.
        """
        path = self.record_path(layer_key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise MetadataWriteError(str(path), str(e)) from e
        logger.debug("Invalidated layer metadata %s", path)
