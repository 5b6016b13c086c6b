"""Canonical Pydantic models shared across the kubeweb build pipeline.

This is the single source of truth for data shapes in the build tooling.
The models fall into three groups:

**Settings** -- resolved from CLI flags, environment and ``kubeweb.json``:
    :class:`BuildSettings`.

**Spec models** -- produced while fetching and merging OpenAPI documents:
    :class:`DiscoveryGroup`, :class:`MergeCollision`, :class:`MergeResult`,
    :class:`OperationParameter` and :class:`OperationRecord`.

**Generation targets** -- describe what the generator produces:
    :class:`ProfileMode`, :class:`TargetProfile` and
    :class:`ConvenienceWrapper`.

The runtime client configuration (:class:`~kubeweb.runtime.config.ClientConfig`)
is deliberately *not* defined here: the runtime package is copied into
generated distributions and only depends on itself.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from kubeweb.codegen.naming import python_identifier


# --- Settings ---


class BuildSettings(BaseModel):
    """Effective settings for one pipeline run.

    See :func:`~kubeweb.config.resolve_settings` for the precedence chain.
    Relative directories are interpreted against :attr:`root`.
    """

    root: Path = Field(default_factory=Path.cwd, description="Project root directory")
    api_server: str = Field(
        default="https://localhost:6443", description="kube-apiserver used for spec discovery"
    )
    token: str = Field(default="secret-token", description="Static bearer token for discovery")
    verify_ssl: bool = Field(
        default=False, description="Verify the apiserver certificate (self-signed by default)"
    )
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    specs_dir: Path = Field(default=Path("openapi-specs"))
    clients_dir: Path = Field(default=Path("clients"))
    line_length: int = Field(default=100, description="black line length for generated code")
    lint_select: list[str] = Field(
        default_factory=lambda: ["E", "F", "I", "W"],
        description="ruff rule selection applied to generated code",
    )
    lint_ignore: list[str] = Field(default_factory=lambda: ["E501"])
    public_name: str = Field(
        default="kubeweb", description="Shared distribution name used while publishing"
    )
    compose_file: Path = Field(default=Path("docker-compose.yml"))
    startup_timeout: float = Field(default=90.0, description="Seconds to wait for /readyz")

    def resolve(self, path: Path) -> Path:
        """Return *path* anchored at :attr:`root` unless already absolute."""
        return path if path.is_absolute() else self.root / path

    @property
    def specs_path(self) -> Path:
        return self.resolve(self.specs_dir)

    @property
    def merged_spec_path(self) -> Path:
        return self.specs_path / "_merged.json"

    def profile_dir(self, profile: TargetProfile) -> Path:
        """Distribution directory (holding ``pyproject.toml``) of *profile*."""
        return self.resolve(self.clients_dir) / profile.name

    def package_dir(self, profile: TargetProfile) -> Path:
        """Import-package directory the generator writes into."""
        return self.profile_dir(profile) / "src" / profile.package


# --- Spec models ---


class DiscoveryGroup(BaseModel):
    """One entry of the ``/openapi/v3`` discovery document.

    The apiserver returns ``{"serverRelativeURL": ...}`` objects; a bare
    URL string is accepted as shorthand for the same thing.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    server_relative_url: str = Field(alias="serverRelativeURL")

    @model_validator(mode="before")
    @classmethod
    def _expand_url_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"serverRelativeURL": value}
        return value


class MergeCollision(BaseModel):
    """A key that a later document overwrote during a merge."""

    section: str = Field(description="'paths' or 'components.<type>'")
    key: str
    winner: str = Field(description="Label of the document whose value was kept")


class MergeResult(BaseModel):
    """Output of :func:`~kubeweb.specs.merger.merge_specs`."""

    spec: dict[str, Any]
    collisions: list[MergeCollision] = Field(default_factory=list)

    @property
    def path_count(self) -> int:
        return len(self.spec.get("paths", {}))

    @property
    def schema_count(self) -> int:
        return len(self.spec.get("components", {}).get("schemas", {}))


class OperationParameter(BaseModel):
    """A single operation parameter as declared in the spec."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str = Field(alias="in")
    description: Optional[str] = None
    required: bool = False
    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")

    @property
    def python_name(self) -> str:
        return python_identifier(self.name)


class OperationRecord(BaseModel):
    """Documentation-relevant facts about one operation.

    Extracted from the merged spec solely to drive docstring injection;
    derived, not authoritative.
    """

    operation_id: str
    description: Optional[str] = None
    summary: Optional[str] = None
    parameters: list[OperationParameter] = Field(default_factory=list)


# --- Generation targets ---


class ProfileMode(str, enum.Enum):
    """Output shape of a target profile."""

    SERVICE = "service"
    """One service class per tag; methods call an injected ``KubeClient``."""

    FUNCTIONS = "functions"
    """Module-level coroutines per tag plus request-options getters."""


class TargetProfile(BaseModel):
    """One generation target.

    The pipeline is a single code path parameterized by this model; the two
    built-in profiles live in :mod:`kubeweb.codegen.profiles`.
    """

    name: str = Field(description="Short profile name, also the version-stamp label")
    package: str = Field(description="Import name of the generated distribution")
    distribution: str = Field(description="Distribution name while not publishing")
    mode: ProfileMode
    with_wrappers: bool = False
    shared_modules: list[str] = Field(
        default_factory=list,
        description="Modules (relative to the package) re-exported by the barrel",
    )

    def generated_names(self, operation_id: str) -> list[str]:
        """Names of every function the generator emits for *operation_id*."""
        base = python_identifier(operation_id)
        if self.mode is ProfileMode.FUNCTIONS:
            return [base, f"get_{base}_request_options"]
        return [base]


class ConvenienceWrapper(BaseModel):
    """A hand-specified list helper forwarding to a generated list operation."""

    name: str
    operation_id: str
    response_model: str
    namespaced: bool
    description: str
    examples: list[str] = Field(default_factory=list)

    @property
    def target(self) -> str:
        return python_identifier(self.operation_id)
