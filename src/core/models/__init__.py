"""
Domain models — Pydantic types for the layer engine.

All models are re-exported here for convenient access:

    from src.core.models import BuildpackConfig, ConstraintSource, LayerMetadata
"""

from src.core.models.buildpack import (
    AvailableVersion,
    BuildpackConfig,
    BuildpackInfo,
    ToolSpec,
)
from src.core.models.layer import (
    ConstraintSource,
    Decision,
    LayerFingerprint,
    LayerMetadata,
    ResolvedVersion,
)

__all__ = [
    # buildpack.py
    "AvailableVersion",
    "BuildpackConfig",
    "BuildpackInfo",
    # layer.py
    "ConstraintSource",
    "Decision",
    "LayerFingerprint",
    "LayerMetadata",
    "ResolvedVersion",
    "ToolSpec",
]
