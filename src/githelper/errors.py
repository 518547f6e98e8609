"""
Error taxonomy raised while including git repositories.

Every error is fatal at configuration time and reaches the build invoker
unchanged.
"""
from __future__ import annotations


class GitHelperError(Exception):
    """Base class for all plugin failures."""


class ConfigurationError(GitHelperError):
    """A repository declaration or plugin setup is missing a required value."""


class FetchError(GitHelperError):
    """A repository could not be cloned or fetched (network, auth, bad url)."""


class CheckoutError(GitHelperError):
    """A ref does not resolve or the working tree cannot be moved to it."""


__all__ = ["GitHelperError", "ConfigurationError", "FetchError", "CheckoutError"]
