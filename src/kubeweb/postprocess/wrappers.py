"""Convenience list wrappers for the ``async`` profile.

A fixed set of helpers (``list_pods``, ``list_namespaces``, ...) forwarding the
common list filters (``label_selector``, ``field_selector``, ``limit``,
``continue_``) to the generated ``list_*`` operations. Helpers whose target
was not generated (e.g. the spec lacks the group) are skipped with a warning.
"""

from __future__ import annotations

import ast
from collections import defaultdict
from pathlib import Path
from typing import Optional

from kubeweb.codegen.generator import render_template
from kubeweb.config import atomic_write
from kubeweb.models import ConvenienceWrapper
from kubeweb.output import warning
from kubeweb.postprocess.docstrings import format_docstring

WRAPPERS: list[ConvenienceWrapper] = [
    ConvenienceWrapper(
        name="list_pods",
        operation_id="listCoreV1NamespacedPod",
        response_model="IoK8sApiCoreV1PodList",
        namespaced=True,
        description="List pods in a namespace.",
        examples=[
            "# List all pods in the default namespace",
            'pods = await list_pods("default")',
            "# List pods with a label selector",
            'pods = await list_pods("default", label_selector="app=nginx")',
        ],
    ),
    ConvenienceWrapper(
        name="list_namespaces",
        operation_id="listCoreV1Namespace",
        response_model="IoK8sApiCoreV1NamespaceList",
        namespaced=False,
        description="List all namespaces.",
        examples=[
            "namespaces = await list_namespaces()",
            'production = await list_namespaces(label_selector="environment=production")',
        ],
    ),
    ConvenienceWrapper(
        name="list_services",
        operation_id="listCoreV1NamespacedService",
        response_model="IoK8sApiCoreV1ServiceList",
        namespaced=True,
        description="List services in a namespace.",
        examples=['services = await list_services("default", label_selector="app=api")'],
    ),
    ConvenienceWrapper(
        name="list_nodes",
        operation_id="listCoreV1Node",
        response_model="IoK8sApiCoreV1NodeList",
        namespaced=False,
        description="List all nodes.",
        examples=[
            "nodes = await list_nodes()",
            'workers = await list_nodes(label_selector="node-role.kubernetes.io/worker")',
        ],
    ),
    ConvenienceWrapper(
        name="list_deployments",
        operation_id="listAppsV1NamespacedDeployment",
        response_model="IoK8sApiAppsV1DeploymentList",
        namespaced=True,
        description="List deployments in a namespace.",
        examples=['deployments = await list_deployments("default", label_selector="app=frontend")'],
    ),
    ConvenienceWrapper(
        name="list_stateful_sets",
        operation_id="listAppsV1NamespacedStatefulSet",
        response_model="IoK8sApiAppsV1StatefulSetList",
        namespaced=True,
        description="List StatefulSets in a namespace.",
        examples=['stateful_sets = await list_stateful_sets("default")'],
    ),
    ConvenienceWrapper(
        name="list_daemon_sets",
        operation_id="listAppsV1NamespacedDaemonSet",
        response_model="IoK8sApiAppsV1DaemonSetList",
        namespaced=True,
        description="List DaemonSets in a namespace.",
        examples=['daemon_sets = await list_daemon_sets("kube-system")'],
    ),
    ConvenienceWrapper(
        name="list_config_maps",
        operation_id="listCoreV1NamespacedConfigMap",
        response_model="IoK8sApiCoreV1ConfigMapList",
        namespaced=True,
        description="List ConfigMaps in a namespace.",
        examples=['config_maps = await list_config_maps("default")'],
    ),
    ConvenienceWrapper(
        name="list_secrets",
        operation_id="listCoreV1NamespacedSecret",
        response_model="IoK8sApiCoreV1SecretList",
        namespaced=True,
        description="List Secrets in a namespace.",
        examples=[
            "# Filter by type",
            'tls = await list_secrets("default", field_selector="type=kubernetes.io/tls")',
        ],
    ),
]


def index_generated_functions(package_dir: Path) -> dict[str, str]:
    """Map every top-level function in ``generated/<tag>.py`` to its module stem."""
    index: dict[str, str] = {}
    for path in sorted((package_dir / "generated").glob("*.py")):
        if path.stem in ("__init__", "models"):
            continue
        tree = ast.parse(path.read_text(encoding="utf-8"))
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                index.setdefault(node.name, path.stem)
    return index


def _docstring(wrapper: ConvenienceWrapper) -> list[str]:
    lines = [wrapper.description]
    if wrapper.examples:
        lines.extend(["", "Example::", ""])
        lines.extend(f"    {example}" for example in wrapper.examples)
    return format_docstring(lines, "    ")


def write_wrappers(
    package_dir: Path,
    wrappers: Optional[list[ConvenienceWrapper]] = None,
) -> tuple[Optional[Path], list[str]]:
    """Render ``<package_dir>/wrappers.py``.

    Returns:
        The written path (``None`` when no wrapper target exists) and the
        names of the wrappers that were skipped.
    """
    index = index_generated_functions(package_dir)
    selected: list[dict] = []
    skipped: list[str] = []
    imports: dict[str, set[str]] = defaultdict(set)

    for wrapper in wrappers if wrappers is not None else WRAPPERS:
        module = index.get(wrapper.target)
        if module is None:
            warning(f"Skipping {wrapper.name}: operation '{wrapper.operation_id}' was not generated")
            skipped.append(wrapper.name)
            continue
        imports[module].add(wrapper.target)
        selected.append({**wrapper.model_dump(), "target": wrapper.target, "docstring": _docstring(wrapper)})

    path = package_dir / "wrappers.py"
    if not selected:
        path.unlink(missing_ok=True)
        return None, skipped

    atomic_write(
        path,
        render_template(
            "wrappers.py.j2",
            wrappers=selected,
            imports=[(module, sorted(names)) for module, names in sorted(imports.items())],
        ),
    )
    return path, skipped
