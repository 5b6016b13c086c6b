"""kubeweb -- Kubernetes API clients generated from the apiserver's OpenAPI v3 specs.

This package fetches the per-group OpenAPI documents served by a
kube-apiserver, merges them into a single document, renders Python client
packages for two *target profiles* and post-processes the output. The
hand-written runtime shims the generated code relies on live in
:mod:`kubeweb.runtime` and are copied into every generated package.

Typical workflow::

    kubeweb generate 1.34              # apiserver, fetch, render both targets
    kubeweb generate 1.34 --target async
    kubeweb publish --dry-run

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the build pipeline.
    config: Project layout, settings precedence, and atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr diagnostics with Rich support.
    pipeline: The per-profile generation pipeline.
"""

__version__ = "0.3.0"
