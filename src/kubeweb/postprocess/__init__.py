"""Post-processing of generated client packages.

Runs after :class:`~kubeweb.codegen.generator.ClientGenerator`: black
formatting, docstring injection from the merged spec, ruff lint with
auto-fix, the barrel ``__init__.py``, the convenience wrappers and the
runtime copy.
"""
