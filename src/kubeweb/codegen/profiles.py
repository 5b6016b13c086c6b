"""Built-in generation targets."""

from __future__ import annotations

from kubeweb.exceptions import InvalidUsageError
from kubeweb.models import ProfileMode, TargetProfile

SYNC = TargetProfile(
    name="sync",
    package="kubeweb_sync",
    distribution="kubeweb-sync",
    mode=ProfileMode.SERVICE,
    with_wrappers=False,
    shared_modules=["runtime"],
)

ASYNC = TargetProfile(
    name="async",
    package="kubeweb_async",
    distribution="kubeweb-async",
    mode=ProfileMode.FUNCTIONS,
    with_wrappers=True,
    shared_modules=["runtime", "wrappers"],
)

PROFILES: dict[str, TargetProfile] = {p.name: p for p in (SYNC, ASYNC)}


def get_profile(name: str) -> TargetProfile:
    """Look up a profile by name.

    Raises:
        InvalidUsageError: For an unknown name.
    """
    try:
        return PROFILES[name]
    except KeyError:
        choices = ", ".join(sorted(PROFILES))
        raise InvalidUsageError(f"Unknown target '{name}'. Choose one of: {choices}, all") from None


def select_profiles(target: str) -> list[TargetProfile]:
    """Resolve a ``--target`` value (a profile name or ``all``) to profiles."""
    if target == "all":
        return list(PROFILES.values())
    return [get_profile(target)]
