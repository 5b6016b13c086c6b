"""Docstring injection for generated client functions.

The renderer emits bare functions; this pass adds documentation taken from the
merged spec. For every :class:`~kubeweb.models.OperationRecord` the profile
names the functions generated for it, the source is parsed with :mod:`ast` to
find exactly those ``def`` / ``async def`` nodes, and a docstring is inserted
above the first statement of each body. Functions that already carry a
docstring are left alone, so re-running the pass is a no-op.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, Mapping

from kubeweb.config import atomic_write
from kubeweb.models import OperationRecord, TargetProfile
from kubeweb.output import debug


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def docstring_lines(record: OperationRecord) -> list[str]:
    """Synthesize the (unquoted, unindented) docstring body for *record*.

    The summary is the operation's ``description``, else its ``summary``,
    else the operationId. Parameters follow in an ``Args:`` section;
    optional ones are marked ``(optional)``.
    """
    headline = record.description or record.summary or record.operation_id
    lines = [line.rstrip() for line in headline.strip().splitlines()]
    if record.parameters:
        lines.extend(["", "Args:"])
        for param in record.parameters:
            marker = "" if param.required else "(optional) "
            text = (param.description or "").strip().splitlines() or [""]
            lines.append(f"    {param.python_name}: {marker}{text[0].rstrip()}".rstrip())
            lines.extend(f"        {extra.rstrip()}".rstrip() for extra in text[1:])
    return lines


def format_docstring(lines: Iterable[str], indent: str) -> list[str]:
    """Quote and indent docstring *lines* as source lines (no trailing newlines).

    Blank lines stay empty so the result never carries trailing whitespace.
    """
    body = [_escape(line) for line in lines] or [""]
    if len(body) == 1 and not body[0].endswith('"'):
        return [f'{indent}"""{body[0]}"""']
    result = [f'{indent}"""{body[0]}']
    result.extend(f"{indent}{line}" if line else "" for line in body[1:])
    result.append(f'{indent}"""')
    return result


def inject_docstrings(source: str, targets: Mapping[str, OperationRecord]) -> tuple[str, int]:
    """Insert docstrings into the functions of *source* named in *targets*.

    Returns:
        The new source and the number of docstrings inserted.
    """
    tree = ast.parse(source)
    insertions: list[tuple[int, list[str]]] = []
    for node in ast.walk(tree):
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        record = targets.get(node.name)
        if record is None or ast.get_docstring(node) is not None:
            continue
        first = node.body[0]
        if first.lineno == node.lineno:
            # one-line definition; nowhere to put a docstring
            continue
        indent = " " * first.col_offset
        insertions.append((first.lineno - 1, format_docstring(docstring_lines(record), indent)))

    if not insertions:
        return source, 0

    lines = source.splitlines()
    for index, block in sorted(insertions, key=lambda item: item[0], reverse=True):
        lines[index:index] = block
    return "\n".join(lines) + "\n", len(insertions)


def build_targets(records: Mapping[str, OperationRecord], profile: TargetProfile) -> dict[str, OperationRecord]:
    """Map every generated function name to the record documenting it."""
    targets: dict[str, OperationRecord] = {}
    for operation_id, record in records.items():
        for name in profile.generated_names(operation_id):
            targets[name] = record
    return targets


def inject_package_docstrings(
    package_dir: Path,
    records: Mapping[str, OperationRecord],
    profile: TargetProfile,
) -> int:
    """Run :func:`inject_docstrings` over every generated tag module.

    Returns:
        Total number of docstrings inserted.
    """
    targets = build_targets(records, profile)
    total = 0
    for path in sorted((package_dir / "generated").glob("*.py")):
        if path.name in ("__init__.py", "models.py"):
            continue
        source = path.read_text(encoding="utf-8")
        updated, count = inject_docstrings(source, targets)
        if count:
            atomic_write(path, updated)
            debug(f"Injected {count} docstring(s) into {path.name}")
        total += count
    return total
