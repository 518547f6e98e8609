"""Version of the installed git-helper distribution."""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata, resources

DISTRIBUTION = "git-helper"


def _packaged_version() -> str:
    # source checkouts without installed metadata still ship the VERSION file
    try:
        return resources.files("githelper").joinpath("VERSION").read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return "unknown"


@lru_cache(maxsize=1)
def get_version() -> str:
    """Return the distribution version, falling back to the packaged VERSION file."""
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return _packaged_version()


__version__ = get_version()
