"""
L4 Execution — re-exports for download, install and layer environment.
"""

from src.core.services.layer_build.execution.download import (  # noqa: F401
    fetch,
    normalize_uri,
    verify_checksum,
)
from src.core.services.layer_build.execution.environment import (  # noqa: F401
    apply_environment,
    configure_environment,
)
from src.core.services.layer_build.execution.installer import install  # noqa: F401
