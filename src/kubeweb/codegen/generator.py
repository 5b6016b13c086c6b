"""Render Python client packages from a merged OpenAPI document.

:class:`ClientGenerator` turns the merged spec into, per target profile::

    <package>/generated/__init__.py
    <package>/generated/models.py      pydantic models for components.schemas
    <package>/generated/<tag>.py       one module per OpenAPI tag

Rendering happens in two steps:

1. The spec is reduced to plain render contexts (:class:`ModelSpec`,
   :class:`OperationSpec`) by walking ``components.schemas`` and ``paths``.
   Every Python name and literal is decided here, through
   :mod:`kubeweb.codegen.naming`.
2. Jinja2 templates from ``codegen/templates/`` lay the contexts out as
   source files. The output is valid but not pretty; black and ruff run
   afterwards (:mod:`kubeweb.postprocess`).

Docstrings for operations are *not* emitted here; the post-processor injects
them from the extracted operation records.

Any exception while rendering is re-raised as
:class:`~kubeweb.exceptions.GenerationError`.
"""

from __future__ import annotations

import json
import re
import shutil
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from kubeweb.codegen.naming import (
    class_name,
    field_name,
    module_name,
    python_identifier,
    service_class_name,
)
from kubeweb.config import atomic_write
from kubeweb.exceptions import GenerationError
from kubeweb.models import ProfileMode, TargetProfile
from kubeweb.output import debug, warning
from kubeweb.postprocess.docstrings import format_docstring
from kubeweb.specs.operations import iter_operations

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``codegen/templates/``)."""

DEFAULT_TAG = "default"

_PRIMITIVES = {"string": "str", "integer": "int", "number": "float", "boolean": "bool"}
_RESERVED_ARGS = frozenset({"self", "client", "body", "options", "data"})
_CONTENT_PREFERENCE = ("application/json", "*/*")
_TYPING_NAME = re.compile(r"\b(Any|Optional|Union)\b")


def py_str(value: str) -> str:
    """Render *value* as a double-quoted Python string literal."""
    return json.dumps(value)


def typing_names(texts: Iterable[str]) -> set[str]:
    """Names from :mod:`typing` referenced by the type expressions in *texts*."""
    found: set[str] = set()
    for text in texts:
        found.update(_TYPING_NAME.findall(text))
    return found


# --- Render contexts ---


@dataclass
class FieldSpec:
    name: str
    annotation: str
    alias: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ModelSpec:
    name: str
    docstring: list[str] = field(default_factory=list)
    fields: list[FieldSpec] = field(default_factory=list)


@dataclass
class AliasSpec:
    name: str
    expr: str


@dataclass
class ParamSpec:
    name: str
    python_name: str
    location: str
    annotation: str
    required: bool

    @property
    def declaration(self) -> str:
        if self.required:
            return f"{self.python_name}: {self.annotation}"
        return f"{self.python_name}: Optional[{self.annotation}] = None"


@dataclass
class OperationSpec:
    """Everything the tag templates need for one operation."""

    operation_id: str
    function_name: str
    method: str
    path: str
    path_params: list[ParamSpec] = field(default_factory=list)
    query_params: list[ParamSpec] = field(default_factory=list)
    header_params: list[ParamSpec] = field(default_factory=list)
    body: Optional[ParamSpec] = None
    response_model: Optional[str] = None
    return_annotation: str = "Any"

    @property
    def positional(self) -> list[ParamSpec]:
        params = list(self.path_params)
        if self.body is not None and self.body.required:
            params.append(self.body)
        return params

    @property
    def keyword(self) -> list[ParamSpec]:
        params: list[ParamSpec] = []
        if self.body is not None and not self.body.required:
            params.append(self.body)
        return params + self.query_params + self.header_params

    @property
    def declarations(self) -> list[str]:
        """Parameter declarations in order, with ``*`` before keyword-only ones."""
        decls = [p.declaration for p in self.positional]
        if self.keyword:
            decls.append("*")
            decls.extend(p.declaration for p in self.keyword)
        return decls

    @property
    def call_args(self) -> str:
        args = [p.python_name for p in self.positional]
        args.extend(f"{p.python_name}={p.python_name}" for p in self.keyword)
        return ", ".join(args)

    @property
    def request_options(self) -> str:
        """A ``RequestOptions(...)`` expression; continuation lines unindented."""
        if self.path_params:
            values = ", ".join(f"{py_str(p.name)}: {p.python_name}" for p in self.path_params)
            url = f"expand_path({py_str(self.path)}, {{{values}}})"
        else:
            url = py_str(self.path)
        lines = ["RequestOptions(", f"    method={py_str(self.method.upper())},", f"    url={url},"]
        if self.query_params:
            lines.append("    params={")
            lines.extend(f"        {py_str(p.name)}: {p.python_name}," for p in self.query_params)
            lines.append("    },")
        if self.body is not None:
            lines.append(f"    data={self.body.python_name},")
        if self.header_params:
            lines.append("    headers={")
            lines.extend(f"        {py_str(p.name)}: {p.python_name}," for p in self.header_params)
            lines.append("    },")
        lines.append(")")
        return "\n".join(lines)


@dataclass
class TagModule:
    tag: str
    module: str
    service: str
    operations: list[OperationSpec] = field(default_factory=list)

    @property
    def annotations(self) -> list[str]:
        texts: list[str] = []
        for op in self.operations:
            texts.extend(op.declarations)
            texts.append(op.return_annotation)
        return texts

    @property
    def typing_imports(self) -> list[str]:
        # Optional is always needed for the client argument
        return sorted({"Optional", *typing_names(self.annotations)})

    @property
    def uses_expand_path(self) -> bool:
        return any(op.path_params for op in self.operations)

    @property
    def uses_models(self) -> bool:
        return any("models." in text for text in self.annotations)


# --- Generator ---


class ClientGenerator:
    """Render a client package for one :class:`~kubeweb.models.TargetProfile`.

    Args:
        spec: The merged OpenAPI document.
        profile: Target profile deciding the output shape.

    Example::

        generator = ClientGenerator(merged, ASYNC)
        written = generator.generate(settings.package_dir(ASYNC))
    """

    def __init__(self, spec: dict[str, Any], profile: TargetProfile) -> None:
        self._spec = spec
        self._profile = profile
        self._schemas: dict[str, Any] = (spec.get("components") or {}).get("schemas") or {}
        self._env = _create_jinja_env()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def generate(self, package_dir: Path) -> list[Path]:
        """Render the ``generated`` sub-package into *package_dir*.

        The previous ``generated`` directory is replaced wholesale.

        Returns:
            Paths of the files written.

        Raises:
            GenerationError: On any failure while rendering or writing.
        """
        try:
            return self._generate(package_dir)
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(
                f"Client generation failed for target '{self._profile.name}': {exc}"
            ) from exc

    def build_models(self) -> tuple[list[ModelSpec], list[AliasSpec]]:
        """Split ``components.schemas`` into model classes and type aliases."""
        models: list[ModelSpec] = []
        aliases: list[AliasSpec] = []
        for raw_name in sorted(self._schemas):
            schema = self._schemas[raw_name] or {}
            name = class_name(raw_name)
            if self._is_model(schema):
                models.append(self._build_model(name, schema))
            else:
                aliases.append(AliasSpec(name=name, expr=self.type_expr(schema, prefix="")))
        return models, aliases

    def build_tag_modules(self) -> list[TagModule]:
        """Group operations by their first tag into :class:`TagModule` contexts."""
        grouped: dict[str, TagModule] = {}
        seen: dict[str, set[str]] = defaultdict(set)
        for path, method, operation, params in iter_operations(self._spec):
            tags = operation.get("tags") or [DEFAULT_TAG]
            tag = tags[0]
            module = module_name(tag)
            if module not in grouped:
                grouped[module] = TagModule(tag=tag, module=module, service=service_class_name(tag))
            op = self._build_operation(path, method, operation, params)
            if op.function_name in seen[module]:
                warning(f"Duplicate operation '{op.operation_id}' in tag '{tag}', skipped")
                continue
            seen[module].add(op.function_name)
            grouped[module].operations.append(op)
        return [grouped[key] for key in sorted(grouped)]

    def type_expr(self, schema: Optional[dict[str, Any]], prefix: str = "models.") -> str:
        """Return the Python type expression for *schema*.

        Model classes are qualified with *prefix*; type-alias schemas are
        inlined so the expression never depends on definition order.
        """
        return self._type_expr(schema, prefix, frozenset())

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _generate(self, package_dir: Path) -> list[Path]:
        generated_dir = package_dir / "generated"
        if generated_dir.exists():
            shutil.rmtree(generated_dir)

        info = self._spec.get("info") or {}
        title = info.get("title") or "Kubernetes API"
        written: list[Path] = []

        written.append(self._write(generated_dir / "__init__.py", "generated_init.py.j2", title=title))

        models, aliases = self.build_models()
        annotations = [f.annotation for m in models for f in m.fields] + [a.expr for a in aliases]
        has_fields = any(m.fields for m in models)
        typing_imports = sorted(typing_names(annotations) | ({"Optional"} if has_fields else set()))
        written.append(
            self._write(
                generated_dir / "models.py",
                "models.py.j2",
                title=title,
                models=models,
                aliases=aliases,
                typing_imports=typing_imports,
            )
        )
        debug(f"Rendered {len(models)} model(s) and {len(aliases)} alias(es)")

        template = "sync_tag.py.j2" if self._profile.mode is ProfileMode.SERVICE else "async_tag.py.j2"
        for tag_module in self.build_tag_modules():
            written.append(
                self._write(
                    generated_dir / f"{tag_module.module}.py",
                    template,
                    title=title,
                    tag=tag_module,
                )
            )
        return written

    def _write(self, path: Path, template_name: str, **context: Any) -> Path:
        source = self._env.get_template(template_name).render(**context)
        atomic_write(path, source)
        return path

    def _is_model(self, schema: dict[str, Any]) -> bool:
        if "properties" in schema:
            return True
        return schema.get("type") == "object" and "additionalProperties" not in schema

    def _build_model(self, name: str, schema: dict[str, Any]) -> ModelSpec:
        model = ModelSpec(name=name)
        description = schema.get("description")
        if description:
            model.docstring = format_docstring(
                [line.rstrip() for line in description.strip().splitlines()], "    "
            )
        used: set[str] = set()
        for prop, prop_schema in (schema.get("properties") or {}).items():
            ident = field_name(prop)
            while ident in used:
                ident = f"{ident}_"
            used.add(ident)
            prop_schema = prop_schema or {}
            model.fields.append(
                FieldSpec(
                    name=ident,
                    annotation=self._type_expr(prop_schema, "", frozenset()),
                    alias=prop if ident != prop else None,
                    description=_single_line(prop_schema.get("description")),
                )
            )
        return model

    def _type_expr(self, schema: Optional[dict[str, Any]], prefix: str, resolving: frozenset[str]) -> str:
        if not schema:
            return "Any"
        ref = schema.get("$ref")
        if ref:
            return self._ref_expr(ref, prefix, resolving)
        all_of = schema.get("allOf")
        if all_of:
            return self._type_expr(all_of[0], prefix, resolving) if len(all_of) == 1 else "dict[str, Any]"
        choices = schema.get("oneOf") or schema.get("anyOf")
        if choices:
            exprs = list(dict.fromkeys(self._type_expr(c, prefix, resolving) for c in choices))
            return exprs[0] if len(exprs) == 1 else f"Union[{', '.join(exprs)}]"
        if schema.get("x-kubernetes-int-or-string"):
            return "Union[int, str]"

        kind = schema.get("type")
        if kind in _PRIMITIVES:
            return _PRIMITIVES[kind]
        if kind == "array":
            return f"list[{self._type_expr(schema.get('items'), prefix, resolving)}]"
        if kind == "object" or "additionalProperties" in schema:
            extra = schema.get("additionalProperties")
            if isinstance(extra, dict) and extra:
                return f"dict[str, {self._type_expr(extra, prefix, resolving)}]"
            return "dict[str, Any]"
        return "Any"

    def _ref_expr(self, ref: str, prefix: str, resolving: frozenset[str]) -> str:
        raw_name = ref.rsplit("/", 1)[-1]
        target = self._schemas.get(raw_name)
        if target is None or raw_name in resolving:
            return "Any"
        if self._is_model(target):
            return f"{prefix}{class_name(raw_name)}"
        return self._type_expr(target, prefix, resolving | {raw_name})

    def _build_operation(
        self,
        path: str,
        method: str,
        operation: dict[str, Any],
        params: list[dict[str, Any]],
    ) -> OperationSpec:
        operation_id = operation["operationId"]
        op = OperationSpec(
            operation_id=operation_id,
            function_name=python_identifier(operation_id),
            method=method,
            path=path,
        )
        used: set[str] = set(_RESERVED_ARGS)
        buckets = {"path": op.path_params, "query": op.query_params, "header": op.header_params}
        for param in params:
            bucket = buckets.get(param["in"])
            if bucket is None:
                continue
            ident = python_identifier(param["name"])
            if ident in used:
                ident = f"{ident}_{param['in']}" if f"{ident}_{param['in']}" not in used else f"{ident}_"
            used.add(ident)
            bucket.append(
                ParamSpec(
                    name=param["name"],
                    python_name=ident,
                    location=param["in"],
                    annotation=self.type_expr(param.get("schema")),
                    required=bool(param.get("required")) or param["in"] == "path",
                )
            )

        request_body = operation.get("requestBody")
        if isinstance(request_body, dict):
            body_schema = _pick_content_schema(request_body.get("content"))
            op.body = ParamSpec(
                name="body",
                python_name="body",
                location="body",
                annotation=self.type_expr(body_schema),
                required=bool(request_body.get("required")),
            )

        response_schema = _success_schema(operation.get("responses"))
        op.return_annotation = self.type_expr(response_schema)
        if response_schema and "$ref" in response_schema and op.return_annotation.startswith("models."):
            op.response_model = op.return_annotation[len("models."):]
        return op


# --- Helpers ---


def render_template(template_name: str, **context: Any) -> str:
    """Render one of the bundled templates outside a :class:`ClientGenerator` run."""
    return _create_jinja_env().get_template(template_name).render(**context)


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the Python source templates.

    Autoescape stays off (the output is Python, not HTML); block trimming
    keeps control tags from leaving blank lines behind.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["py_str"] = py_str
    return env


def _single_line(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return " ".join(text.split())


def _pick_content_schema(content: Any) -> Optional[dict[str, Any]]:
    if not isinstance(content, dict) or not content:
        return None
    for media_type in _CONTENT_PREFERENCE:
        if media_type in content:
            return (content[media_type] or {}).get("schema")
    return (next(iter(content.values())) or {}).get("schema")


def _success_schema(responses: Any) -> Optional[dict[str, Any]]:
    """Schema of the first 2xx response (``200`` preferred), if any."""
    if not isinstance(responses, dict):
        return None
    codes = sorted(code for code in responses if str(code).startswith("2"))
    if "200" in responses:
        codes.insert(0, "200")
    for code in codes:
        response = responses[code]
        if isinstance(response, dict):
            schema = _pick_content_schema(response.get("content"))
            if schema:
                return schema
    return None
