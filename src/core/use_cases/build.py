"""
Build use case — resolve, decide, and (re)build the tool layer.

The full vertical slice of one build step:

    resolve version → fingerprint → load previous metadata → decide
        REUSE:   log "Reusing cached layer", done
        REBUILD: drop old record → install → env files → save new record

Ordering of the REBUILD branch matters: the old record is deleted before
the layer directory is touched, and the new one is written only after
the artifact is in place.  A build interrupted anywhere in between
leaves no record, so the next build rebuilds.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from src.core.models.buildpack import BuildpackConfig
from src.core.models.layer import Decision, LayerFingerprint, LayerMetadata, ResolvedVersion
from src.core.observability.build_log import Emitter, format_duration
from src.core.persistence.layer_store import LayerStore
from src.core.services.layer_build.domain import (
    MetadataIOError,
    decide,
    explain,
    fingerprint,
)
from src.core.services.layer_build.execution import configure_environment, install
from src.core.use_cases.resolve import resolve_version

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_TIMEOUT = 60.0

Installer = Callable[..., Path]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class BuildResult:
    """Outcome of one build step."""

    decision: Decision | None = None
    resolved: ResolvedVersion | None = None
    fingerprint: LayerFingerprint | None = None
    metadata: LayerMetadata | None = None
    layer_path: Path | None = None
    duration_ms: int = 0

    @property
    def reused(self) -> bool:
        return self.decision == Decision.REUSE

    def to_dict(self) -> dict:
        result: dict = {
            "decision": str(self.decision) if self.decision else None,
            "layer_path": str(self.layer_path) if self.layer_path else None,
            "duration_ms": self.duration_ms,
        }
        if self.resolved:
            result["version"] = self.resolved.value
            result["source"] = self.resolved.chosen_source_name
        if self.fingerprint:
            result["stack_id"] = self.fingerprint.stack_id
        if self.metadata:
            result["metadata"] = self.metadata.to_record()
        return result


def load_previous(store: LayerStore, layer_key: str) -> LayerMetadata | None:
    """Previous metadata, degrading unreadable records to None."""
    try:
        return store.load(layer_key)
    except MetadataIOError as e:
        logger.warning("%s, treating layer as never built", e)
        return None


def run_build(
    config: BuildpackConfig,
    *,
    app_dir: Path,
    layers_dir: Path,
    stack_id: str,
    environ: Mapping[str, str] | None = None,
    emitter: Emitter | None = None,
    clock: Callable[[], datetime] = _utc_now,
    timeout: float = DEFAULT_INSTALL_TIMEOUT,
    installer: Installer = install,
) -> BuildResult:
    """Run the build step for the tool layer.

    Args:
        config: Buildpack configuration (tool spec + catalog).
        app_dir: Application source directory (holds the lock file).
        layers_dir: Root of the layers directory; this buildpack owns
            ``<layers_dir>/<buildpack id with / replaced by _>``.
        stack_id: Build stack identifier, part of the layer fingerprint.
        environ: Environment to read the override from (default: os.environ).
        emitter: Build log writer (default: stdout).
        clock: Source of the ``built_at`` timestamp.
        timeout: Download timeout in seconds.
        installer: Install function, ``install(rv, dest_dir, executable=, timeout=)``.

    Raises:
        NoConstraintError, NoMatchingVersionError: Resolution failed.
        TransportError, ChecksumMismatchError, InstallError: Install failed.
        MetadataWriteError: The layer record could not be removed or written.
    """
    started = time.monotonic()
    emitter = emitter or Emitter()
    environ = os.environ if environ is None else environ
    tool = config.tool

    emitter.title(f"{config.buildpack.name} {config.buildpack.version}")
    resolution = resolve_version(
        config,
        app_dir=app_dir,
        stack_id=stack_id,
        environ=environ,
        emitter=emitter,
    )
    rv = resolution.resolved
    assert rv is not None  # resolve_version raises instead of returning None

    current = fingerprint(rv, stack_id)
    store = LayerStore(layers_dir / config.buildpack.layer_namespace)
    layer_path = store.layer_path(tool.layer)

    previous = load_previous(store, tool.layer)
    decision = decide(current, previous)
    logger.info("Layer %s: %s (%s)", tool.layer, decision, explain(current, previous))

    result = BuildResult(
        decision=decision,
        resolved=rv,
        fingerprint=current,
        layer_path=layer_path,
    )

    if decision == Decision.REUSE:
        emitter.process(f"Reusing cached layer {layer_path}")
        result.metadata = previous
        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    store.delete(tool.layer)

    emitter.process("Executing build process")
    emitter.subprocess(f"Installing {tool.name} {rv.value}")
    install_started = time.monotonic()
    artifact = installer(rv, layer_path, executable=tool.executable, timeout=timeout)
    emitter.action(f"Completed in {format_duration(time.monotonic() - install_started)}")
    emitter.blank()

    emitter.environment(configure_environment(layer_path, tool.env_var))

    metadata = LayerMetadata(
        fingerprint=current,
        built_at=clock().isoformat(),
        artifact_path=str(artifact),
    )
    store.save(tool.layer, metadata)

    result.metadata = metadata
    result.duration_ms = int((time.monotonic() - started) * 1000)
    return result
