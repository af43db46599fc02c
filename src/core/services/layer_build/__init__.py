"""
Layer build — resolve a tool version, decide reuse vs rebuild, install.

Layered like the rest of the core services:

    domain/      L1 pure functions (sources, resolver, fingerprint, decision)
    execution/   L4 side effects (download, install, env files)

The build flow that ties them to the metadata store lives in
``src.core.use_cases.build``.
"""
