"""The render pipeline: merged spec in, formatted and linted client packages out.

One code path serves every target profile::

    merge specs -> render -> runtime copy -> wrappers -> barrel
                -> black -> docstrings -> ruff

Stages run sequentially; a stage failure aborts the run with its
:class:`~kubeweb.exceptions.KubeWebError` except formatting, which only
reports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from kubeweb.codegen.generator import ClientGenerator, render_template
from kubeweb.config import atomic_write, write_json
from kubeweb.models import BuildSettings, TargetProfile
from kubeweb.output import info, success, warning
from kubeweb.postprocess.barrel import write_barrel
from kubeweb.postprocess.docstrings import inject_package_docstrings
from kubeweb.postprocess.formatter import format_tree
from kubeweb.postprocess.linter import lint_tree
from kubeweb.postprocess.runtime_copy import copy_runtime
from kubeweb.postprocess.wrappers import write_wrappers
from kubeweb.specs.merger import merge_spec_files
from kubeweb.specs.operations import extract_operations


@dataclass
class RenderResult:
    """Counters reported for one profile."""

    profile: str
    files: int = 0
    formatted: int = 0
    documented: int = 0
    lint_fixed: int = 0
    skipped_wrappers: int = 0


def ensure_distribution(settings: BuildSettings, profile: TargetProfile) -> None:
    """Write the profile's ``pyproject.toml`` unless one already exists."""
    path = settings.profile_dir(profile) / "pyproject.toml"
    if not path.exists():
        atomic_write(path, render_template("client_pyproject.toml.j2", profile=profile))
        info(f"Created {path}")


def render_profile(settings: BuildSettings, profile: TargetProfile, spec: dict[str, Any]) -> RenderResult:
    """Generate and post-process the client package for *profile*."""
    result = RenderResult(profile=profile.name)
    package_dir = settings.package_dir(profile)
    title = (spec.get("info") or {}).get("title") or "Kubernetes API"

    ensure_distribution(settings, profile)

    info(f"Generating {profile.name} client into {package_dir}...")
    result.files = len(ClientGenerator(spec, profile).generate(package_dir))
    copy_runtime(package_dir)

    if profile.with_wrappers:
        path, skipped = write_wrappers(package_dir)
        result.skipped_wrappers = len(skipped)
        if path is None:
            warning("No convenience wrappers generated")

    write_barrel(package_dir, profile, title=title)
    success(f"Generated {result.files} module(s)")

    info("Formatting generated files...")
    result.formatted = format_tree(package_dir, settings.line_length)
    success(f"Formatted {result.formatted} file(s)")

    info("Adding docstrings to generated functions...")
    result.documented = inject_package_docstrings(package_dir, extract_operations(spec), profile)
    success(f"Injected docstrings for {result.documented} function(s)")

    info("Linting generated files...")
    report = lint_tree(package_dir, settings.lint_select, settings.lint_ignore, settings.line_length)
    result.lint_fixed = report.fixed
    success(f"Lint clean ({report.fixed} issue(s) auto-fixed)")
    return result


def render_clients(
    settings: BuildSettings,
    profiles: list[TargetProfile],
    spec: Optional[dict[str, Any]] = None,
) -> list[RenderResult]:
    """Merge the fetched specs (unless *spec* is given) and render every profile."""
    if spec is None:
        spec = merge_spec_files(settings.specs_path).spec
    else:
        write_json(settings.merged_spec_path, spec)
    return [render_profile(settings, profile, spec) for profile in profiles]
