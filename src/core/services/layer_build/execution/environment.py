"""
L4 Execution — Layer environment files.

Exposes the installed tool to later build steps and the running app
using the layer ``env/`` directory convention:

    env/<VAR>.append   value appended to $VAR
    env/<VAR>.prepend  value prepended to $VAR
    env/<VAR>.delim    delimiter between existing and new value
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from src.core.services.layer_build.domain.errors import InstallError

logger = logging.getLogger(__name__)

_DELIM = os.pathsep


def configure_environment(layer_path: Path, env_var: str) -> list[tuple[str, str]]:
    """Write env files for ``layer_path`` and return the log entries.

    ``env_var`` (e.g. GEM_PATH) gets the layer path appended; PATH gets
    the layer's ``bin`` directory prepended.

    Returns:
        ``[(var, description), ...]`` for the build log, e.g.
        ``[("GEM_PATH", '"$GEM_PATH:/layers/x/bundler"')]``.

    Raises:
        InstallError: The env files could not be written.
    """
    env_dir = layer_path / "env"
    entries: list[tuple[str, str]] = []
    try:
        env_dir.mkdir(parents=True, exist_ok=True)
        if env_var and env_var != "PATH":
            _write(env_dir, env_var, "append", str(layer_path))
            entries.append((env_var, f'"${env_var}{_DELIM}{layer_path}"'))

        _write(env_dir, "PATH", "prepend", str(layer_path / "bin"))
        if env_var == "PATH":
            entries.append(("PATH", f'"{layer_path / "bin"}{_DELIM}$PATH"'))
    except OSError as exc:
        raise InstallError(f"Cannot write environment files under {env_dir}: {exc}") from exc

    logger.debug("Wrote environment files under %s", env_dir)
    return entries


def apply_environment(layer_path: Path, environ: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``environ`` with the layer's env files applied."""
    result = dict(environ)
    env_dir = layer_path / "env"
    if not env_dir.is_dir():
        return result

    for f in sorted(env_dir.iterdir()):
        var, _, action = f.name.rpartition(".")
        if action not in ("append", "prepend", "override"):
            continue
        value = f.read_text(encoding="utf-8")
        if action == "override" or not result.get(var):
            result[var] = value
            continue
        delim_file = env_dir / f"{var}.delim"
        delim = delim_file.read_text(encoding="utf-8") if delim_file.is_file() else ""
        if action == "append":
            result[var] = f"{result[var]}{delim}{value}"
        else:
            result[var] = f"{value}{delim}{result[var]}"
    return result


def _write(env_dir: Path, var: str, action: str, value: str) -> None:
    (env_dir / f"{var}.{action}").write_text(value, encoding="utf-8")
    (env_dir / f"{var}.delim").write_text(_DELIM, encoding="utf-8")
