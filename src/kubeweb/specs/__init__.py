"""OpenAPI spec acquisition and merging.

* :mod:`~kubeweb.specs.fetcher` -- pulls one document per API group from the
  apiserver's ``/openapi/v3`` discovery endpoint.
* :mod:`~kubeweb.specs.merger` -- combines the per-group documents into the
  single document the generator consumes.
* :mod:`~kubeweb.specs.operations` -- extracts the operation records that
  drive docstring injection.
"""

from kubeweb.specs.fetcher import fetch_specs
from kubeweb.specs.merger import merge_spec_files, merge_specs
from kubeweb.specs.operations import extract_operations

__all__ = ["fetch_specs", "merge_specs", "merge_spec_files", "extract_operations"]
