"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~kubeweb.exceptions.KubeWebError` subclass.
CI jobs can inspect the exit code to tell a failed fetch from a lint
failure without parsing stderr.

Example::

    $ kubeweb generate 1.34
    $ echo $?
    9   # EXIT_LINT_FAILURE -- generated code has unfixable lint errors
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. a malformed version)."""

EXIT_FETCH_FAILURE = 6
"""The apiserver could not be reached or returned an error status."""

EXIT_SPEC_ERROR = 7
"""The specs directory is missing, empty, or holds an unreadable document."""

EXIT_GENERATION_FAILURE = 8
"""The client generator raised while rendering a target profile."""

EXIT_LINT_FAILURE = 9
"""The linter reported errors that auto-fix could not resolve."""

EXIT_SUPPORT_FAILURE = 10
"""The support container (kube-apiserver) failed to start or become ready."""

EXIT_PUBLISH_FAILURE = 11
"""Building or uploading a distribution failed."""

EXIT_TEST_FAILURE = 12
"""The integration tests against the live apiserver failed."""
