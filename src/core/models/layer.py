"""
Layer models — constraint sources, resolved versions, fingerprints, metadata.

These are the values that flow through a single layer build:

    ConstraintSource  → ResolvedVersion → LayerFingerprint → Decision
                                                  ↓
                                            LayerMetadata (persisted)
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from src.core.models.buildpack import AvailableVersion


class Decision(StrEnum):
    """Outcome of comparing the current fingerprint with the previous build."""

    REUSE = "reuse"
    REBUILD = "rebuild"


class ConstraintSource(BaseModel):
    """One origin of a version requirement.

    ``present`` is False when the backing input is absent or unparsable;
    such a source is listed but never selected.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    raw_constraint: str = ""
    priority: int
    present: bool = False


class ResolvedVersion(BaseModel):
    """A concrete catalog entry picked for a constraint source."""

    model_config = ConfigDict(frozen=True)

    value: str
    chosen_source_name: str
    entry: AvailableVersion


class LayerFingerprint(BaseModel):
    """Minimal identity of a reusable layer.

    Two fingerprints are equal iff version, source name and stack ID are
    all equal.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    source_name: str
    stack_id: str


class LayerMetadata(BaseModel):
    """Provenance recorded after a successful rebuild."""

    fingerprint: LayerFingerprint
    built_at: str
    artifact_path: str = ""

    schema_version: int = 1

    def to_record(self) -> dict:
        """Flatten into the on-disk record shape."""
        return {
            "schema_version": self.schema_version,
            "version": self.fingerprint.version,
            "source": self.fingerprint.source_name,
            "stack_id": self.fingerprint.stack_id,
            "built_at": self.built_at,
            "artifact_path": self.artifact_path,
        }

    @classmethod
    def from_record(cls, data: dict) -> LayerMetadata:
        """Rebuild from the flat on-disk record.

        Raises:
            KeyError: A required field is missing.
            pydantic.ValidationError: A field has the wrong type.
        """
        return cls(
            fingerprint=LayerFingerprint(
                version=data["version"],
                source_name=data["source"],
                stack_id=data["stack_id"],
            ),
            built_at=data["built_at"],
            artifact_path=data.get("artifact_path", ""),
            schema_version=data.get("schema_version", 1),
        )
