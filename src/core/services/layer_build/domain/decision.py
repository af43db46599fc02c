"""
L1 Domain — Layer reuse decision (pure).

Reuse requires the previous build's fingerprint to equal the current one
exactly.  A different version, a different source supplying it, or a
different stack all force a rebuild.
"""

from __future__ import annotations

from src.core.models.layer import Decision, LayerFingerprint, LayerMetadata


def decide(current: LayerFingerprint, previous: LayerMetadata | None) -> Decision:
    """Compare ``current`` against the metadata of the previous build."""
    if previous is None:
        return Decision.REBUILD
    if previous.fingerprint == current:
        return Decision.REUSE
    return Decision.REBUILD


def explain(current: LayerFingerprint, previous: LayerMetadata | None) -> str:
    """Human-readable reason for :func:`decide`'s outcome, for debug logs."""
    if previous is None:
        return "no previous layer metadata"
    changed = [
        f"{name}: {getattr(previous.fingerprint, name)!r} -> {getattr(current, name)!r}"
        for name in ("version", "source_name", "stack_id")
        if getattr(previous.fingerprint, name) != getattr(current, name)
    ]
    if not changed:
        return "fingerprint unchanged"
    return "; ".join(changed)
