"""Identifier rules shared by the generator and the post-processor.

Both sides must agree on how an OpenAPI name becomes a Python name: the
generator emits ``list_core_v1_namespaced_pod`` for the operationId
``listCoreV1NamespacedPod`` and the docstring injector later looks for
exactly that name.
"""

from __future__ import annotations

import keyword
import re

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_IDENTIFIER = re.compile(r"[^0-9a-zA-Z]+")

# Attribute names pydantic's BaseModel already uses; a field with one of these
# names would shadow the model API.
_MODEL_RESERVED = frozenset(
    {
        "copy",
        "construct",
        "dict",
        "fields",
        "json",
        "parse_file",
        "parse_obj",
        "parse_raw",
        "schema",
        "schema_json",
        "validate",
    }
)


def snake_case(name: str) -> str:
    """Convert a camelCase / PascalCase / dotted name to ``snake_case``.

    Example::

        >>> snake_case("listStorageV1CSIDriver")
        'list_storage_v1_csi_driver'
    """
    text = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    text = _WORD_BOUNDARY.sub(r"\1_\2", text)
    text = _NON_IDENTIFIER.sub("_", text)
    return text.strip("_").lower()


def python_identifier(name: str) -> str:
    """Return a valid, non-keyword snake_case identifier for *name*.

    ``continue`` becomes ``continue_``, ``$ref`` becomes ``ref`` and a name
    starting with a digit is prefixed with an underscore.
    """
    ident = snake_case(name) or "value"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident) or keyword.issoftkeyword(ident):
        ident = f"{ident}_"
    return ident


def field_name(name: str) -> str:
    """Return the model attribute name for the schema property *name*."""
    ident = python_identifier(name)
    if ident in _MODEL_RESERVED or ident.startswith("model_"):
        ident = f"{ident}_"
    if ident.startswith("_"):
        # pydantic treats leading-underscore attributes as private
        ident = f"field{ident}"
    return ident


def class_name(name: str) -> str:
    """Return a PascalCase class name for a schema or tag name.

    Each alphanumeric run keeps its own casing after the first letter, so
    ``io.k8s.api.core.v1.PodList`` becomes ``IoK8sApiCoreV1PodList``.
    """
    parts = [p for p in _NON_IDENTIFIER.split(name) if p]
    joined = "".join(p[0].upper() + p[1:] for p in parts) or "Unnamed"
    if joined[0].isdigit():
        joined = f"_{joined}"
    return joined


def module_name(tag: str) -> str:
    """Return the module file stem used for the API tag *tag* (``core_v1``)."""
    return python_identifier(tag)


def service_class_name(tag: str) -> str:
    """Return the service class name for *tag*: ``core_v1`` -> ``CoreV1Api``."""
    return f"{class_name(tag)}Api"


def sanitize_group_name(path_key: str) -> str:
    """Convert a discovery path key into the identifier used for its spec file.

    Example::

        >>> sanitize_group_name("apis/apps/v1")
        'apps-v1'
        >>> sanitize_group_name("apis/networking.k8s.io/v1")
        'networking-k8s-io-v1'
    """
    name = re.sub(r"^apis?/", "", path_key)
    return name.replace("/", "-").replace(".", "-")
