"""
Buildpack model — what buildpack.yml declares.

The buildpack describes one tool: how it is named in the build log,
where its version constraints come from, which layer it lands in, and
the catalog of distributable versions it may install.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AvailableVersion(BaseModel):
    """One distributable version in the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    version: str
    uri: str = ""
    sha256: str = ""      # empty = distribution ships no checksum
    stacks: tuple[str, ...] = ()

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, v: object) -> str:
        # YAML reads `version: 2.1` as a float
        return str(v)

    def supports_stack(self, stack_id: str) -> bool:
        """True if this entry may be installed on ``stack_id``."""
        if not self.stacks:
            return True
        return "*" in self.stacks or stack_id in self.stacks


class BuildpackInfo(BaseModel):
    """Identity of the buildpack printed in the log title."""

    id: str = "paketo-community/bundler"
    name: str = "Bundler Buildpack"
    version: str = "0.0.0"

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, v: object) -> str:
        return str(v)

    @property
    def layer_namespace(self) -> str:
        """Directory under the layers root owned by this buildpack."""
        return self.id.replace("/", "_")


class ToolSpec(BaseModel):
    """The single tool this buildpack installs."""

    name: str = "Bundler"
    executable: str = "bundler"
    layer: str = "bundler"
    lock_file: str = "Gemfile.lock"
    override_env: str = "BP_BUNDLER_VERSION"
    default_constraint: str = "*"
    env_var: str = "GEM_PATH"
    default_source_name: str = "<unknown>"


class BuildpackConfig(BaseModel):
    """Root configuration — loaded from buildpack.yml."""

    buildpack: BuildpackInfo = Field(default_factory=BuildpackInfo)
    tool: ToolSpec = Field(default_factory=ToolSpec)
    dependencies: list[AvailableVersion] = Field(default_factory=list)

    def catalog_for_stack(self, stack_id: str) -> list[AvailableVersion]:
        """Catalog entries installable on ``stack_id``, in declared order."""
        return [d for d in self.dependencies if d.supports_stack(stack_id)]
