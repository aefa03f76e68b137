"""Version checking utilities for detecting a stale installation."""

from importlib import metadata

DISTRIBUTION_NAME = "github-cms-mcp"


def check_version_consistency() -> tuple[bool, str]:
    """Check if the imported package matches the installed distribution.

    Returns:
        Tuple of (is_consistent, message). A mismatch usually means an
        editable install whose metadata predates a version bump, so the
        entry point and the source tree disagree.
    """
    from . import __version__ as runtime_version

    try:
        installed_version = metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return (
            False,
            f"{DISTRIBUTION_NAME} is not installed; cannot verify version",
        )

    if runtime_version != installed_version:
        return False, (
            f"Version mismatch detected! "
            f"Runtime: {runtime_version}, Installed: {installed_version}. "
            f"Reinstall with: pip install -e ."
        )

    return True, f"Version verified: {runtime_version}"
