"""Client code generation: naming rules, target profiles and the Jinja2 renderer.

Import submodules directly (``kubeweb.codegen.generator``,
``kubeweb.codegen.profiles``); :mod:`kubeweb.models` depends on
:mod:`kubeweb.codegen.naming`, so nothing is imported eagerly here.
"""
