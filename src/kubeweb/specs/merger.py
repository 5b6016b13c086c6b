"""Merge per-group OpenAPI documents into the single document the generator consumes.

Merging is a key-wise union of ``paths`` and of every ``components``
section. When two documents define the same path or component name the later
document (by iteration order) wins. That loss is accepted -- the generated
output shape depends on it -- but every overwrite is recorded as a
:class:`~kubeweb.models.MergeCollision` so it shows up with ``--verbose``.

``servers`` is taken from the first document that declares it.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Iterable, Optional

from kubeweb.config import write_json
from kubeweb.exceptions import SpecError
from kubeweb.models import MergeCollision, MergeResult
from kubeweb.output import debug, info, success

MERGED_TITLE = "Kubernetes API"
MERGED_FILENAME = "_merged.json"


def _empty_document() -> dict[str, Any]:
    return {
        "openapi": "3.0.0",
        "info": {"title": MERGED_TITLE, "version": "1.0.0"},
        "paths": {},
        "components": {"schemas": {}},
    }


def _union(
    target: dict[str, Any],
    source: dict[str, Any],
    section: str,
    label: str,
    collisions: list[MergeCollision],
) -> None:
    for key, value in source.items():
        if key in target:
            collisions.append(MergeCollision(section=section, key=key, winner=label))
        target[key] = copy.deepcopy(value)


def merge_specs(
    documents: Iterable[dict[str, Any]],
    labels: Optional[Iterable[str]] = None,
) -> MergeResult:
    """Merge OpenAPI documents with last-write-wins collision handling.

    Args:
        documents: The per-group documents, in merge order.
        labels: Optional names for the documents used in the collision
            report (defaults to ``#<index>``).

    Returns:
        A :class:`~kubeweb.models.MergeResult` holding the merged document
        and the list of overwritten keys. Input documents are not mutated.
    """
    merged = _empty_document()
    collisions: list[MergeCollision] = []
    label_list = list(labels) if labels is not None else None

    for index, spec in enumerate(documents):
        label = label_list[index] if label_list is not None else f"#{index}"

        _union(merged["paths"], spec.get("paths") or {}, "paths", label, collisions)

        for component_type, components in (spec.get("components") or {}).items():
            if not isinstance(components, dict):
                continue
            target = merged["components"].setdefault(component_type, {})
            _union(target, components, f"components.{component_type}", label, collisions)

        if "servers" not in merged and spec.get("servers"):
            merged["servers"] = copy.deepcopy(spec["servers"])

    for collision in collisions:
        debug(f"merge: {collision.section} '{collision.key}' overwritten by {collision.winner}")

    return MergeResult(spec=merged, collisions=collisions)


def list_spec_files(specs_dir: Path) -> list[Path]:
    """Return the per-group spec files in *specs_dir*, sorted by name.

    Files starting with ``_`` (the merged output) are excluded.

    Raises:
        SpecError: If the directory does not exist or holds no spec files.
    """
    if not specs_dir.is_dir():
        raise SpecError(
            f"OpenAPI specs directory not found: {specs_dir}. "
            "Run 'kubeweb fetch-specs' first."
        )
    files = sorted(
        p for p in specs_dir.glob("*.json") if p.is_file() and not p.name.startswith("_")
    )
    if not files:
        raise SpecError(f"No OpenAPI spec files found in {specs_dir}. Run 'kubeweb fetch-specs' first.")
    return files


def load_spec_file(path: Path) -> dict[str, Any]:
    """Load one JSON spec file.

    Raises:
        SpecError: If the file is not valid JSON or not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SpecError(f"Cannot read spec {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SpecError(f"Spec {path} is not a JSON object")
    return data


def merge_spec_files(specs_dir: Path) -> MergeResult:
    """Load every spec in *specs_dir*, merge them, and write ``_merged.json``."""
    files = list_spec_files(specs_dir)
    info(f"Found {len(files)} OpenAPI specs")
    info("Merging all specs into a single OpenAPI document...")

    result = merge_specs(
        (load_spec_file(path) for path in files),
        labels=[path.stem for path in files],
    )
    write_json(specs_dir / MERGED_FILENAME, result.spec)

    success(
        f"Merged {len(files)} specs ({result.path_count} paths, {result.schema_count} schemas)"
    )
    if result.collisions:
        debug(f"{len(result.collisions)} keys were overwritten by later specs")
    return result
