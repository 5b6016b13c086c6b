"""Exception hierarchy for kubeweb's build pipeline.

All exceptions inherit from :class:`KubeWebError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`kubeweb.exit_codes`.
The top-level error handler in :func:`kubeweb.app.main` catches
``KubeWebError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Errors raised by the generated clients at runtime live in
:mod:`kubeweb.runtime.errors`; that package is copied into generated
distributions and must not import from here.

Subclass hierarchy::

    KubeWebError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- FetchError          (exit 6)
    +-- SpecError           (exit 7)
    +-- GenerationError     (exit 8)
    +-- LintError           (exit 9)
    +-- SupportError        (exit 10)
    +-- PublishError        (exit 11)
    +-- IntegrationTestError (exit 12)
    +-- ConfigError         (exit 1)
"""

from kubeweb.exit_codes import (
    EXIT_FETCH_FAILURE,
    EXIT_GENERATION_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_LINT_FAILURE,
    EXIT_PUBLISH_FAILURE,
    EXIT_SPEC_ERROR,
    EXIT_SUPPORT_FAILURE,
    EXIT_TEST_FAILURE,
)


class KubeWebError(Exception):
    """Base exception for all kubeweb pipeline errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`kubeweb.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(KubeWebError):
    """Raised for invalid CLI arguments, e.g. a version that is not ``MAJOR.MINOR``."""

    exit_code = EXIT_INVALID_USAGE


class FetchError(KubeWebError):
    """Raised when the discovery document or a group spec cannot be fetched."""

    exit_code = EXIT_FETCH_FAILURE


class SpecError(KubeWebError):
    """Raised for a missing specs directory, an empty spec set, or an unreadable document."""

    exit_code = EXIT_SPEC_ERROR


class GenerationError(KubeWebError):
    """Raised when rendering a target profile fails. Never partially recovered."""

    exit_code = EXIT_GENERATION_FAILURE


class LintError(KubeWebError):
    """Raised when lint errors remain in generated code after auto-fix."""

    exit_code = EXIT_LINT_FAILURE


class SupportError(KubeWebError):
    """Raised when the kube-apiserver support container cannot be started or reached."""

    exit_code = EXIT_SUPPORT_FAILURE


class PublishError(KubeWebError):
    """Raised when building or uploading a client distribution fails."""

    exit_code = EXIT_PUBLISH_FAILURE


class IntegrationTestError(KubeWebError):
    """Raised when the integration tests against the live apiserver fail."""

    exit_code = EXIT_TEST_FAILURE


class ConfigError(KubeWebError):
    """Raised for configuration problems (invalid ``kubeweb.json``, bad project layout)."""

    exit_code = EXIT_GENERIC_FAILURE
