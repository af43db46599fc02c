"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from src.core.models.buildpack import AvailableVersion, BuildpackConfig, BuildpackInfo, ToolSpec
from tests.helpers import STACK, FakeClock, make_tarball, sha256_of


@pytest.fixture
def distributions(tmp_path: Path) -> Path:
    """Directory of bundler tarballs for 1.17.3, 2.1.2 and 2.1.4."""
    dist = tmp_path / "dist"
    dist.mkdir()
    for version in ("1.17.3", "2.1.2", "2.1.4"):
        make_tarball(
            dist / f"bundler-{version}.tgz",
            {"bin/bundler": f"#!/bin/sh\necho 'Bundler version {version}'\n"},
        )
    return dist


@pytest.fixture
def catalog(distributions: Path) -> list[AvailableVersion]:
    """Catalog entries pointing at the local tarballs, with checksums."""
    entries = []
    for version in ("1.17.3", "2.1.2", "2.1.4"):
        tgz = distributions / f"bundler-{version}.tgz"
        entries.append(AvailableVersion(
            id="bundler",
            version=version,
            uri=tgz.as_uri(),
            sha256=sha256_of(tgz),
            stacks=(STACK,),
        ))
    return entries


@pytest.fixture
def config(catalog: list[AvailableVersion]) -> BuildpackConfig:
    return BuildpackConfig(
        buildpack=BuildpackInfo(
            id="paketo-community/bundler",
            name="Bundler Buildpack",
            version="1.2.3",
        ),
        tool=ToolSpec(),
        dependencies=catalog,
    )


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    app = tmp_path / "app"
    app.mkdir()
    return app


@pytest.fixture
def layers_dir(tmp_path: Path) -> Path:
    layers = tmp_path / "layers"
    layers.mkdir()
    return layers


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
