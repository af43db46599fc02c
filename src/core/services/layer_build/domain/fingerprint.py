"""
L1 Domain — Layer fingerprint (pure).

The fingerprint is everything a cached layer must agree on to be reused.
It deliberately contains no timestamps.
"""

from __future__ import annotations

from src.core.models.layer import LayerFingerprint, ResolvedVersion


def fingerprint(rv: ResolvedVersion, stack_id: str) -> LayerFingerprint:
    """Derive the layer identity from a resolution and the build stack."""
    return LayerFingerprint(
        version=rv.value,
        source_name=rv.chosen_source_name,
        stack_id=stack_id,
    )
