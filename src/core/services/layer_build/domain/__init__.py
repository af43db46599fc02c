"""
L1 Domain — ``__init__.py`` re-exports the pure layer build functions.

These functions have NO subprocess calls, NO filesystem access,
NO network calls. Pure input→output.
"""

from src.core.services.layer_build.domain.decision import decide, explain  # noqa: F401
from src.core.services.layer_build.domain.errors import (  # noqa: F401
    ChecksumMismatchError,
    InstallError,
    InvalidConstraintError,
    LayerBuildError,
    MetadataIOError,
    MetadataWriteError,
    NoConstraintError,
    NoMatchingVersionError,
    TransportError,
)
from src.core.services.layer_build.domain.fingerprint import fingerprint  # noqa: F401
from src.core.services.layer_build.domain.resolver import (  # noqa: F401
    nearest_versions,
    resolve,
    select_source,
)
from src.core.services.layer_build.domain.semver import (  # noqa: F401
    Constraint,
    Version,
    parse_constraint,
    parse_version,
)
from src.core.services.layer_build.domain.sources import (  # noqa: F401
    parse_lock_file_version,
    read_sources,
)
