"""
git-helper: include git repositories as included builds.
"""
from .errors import CheckoutError, ConfigurationError, FetchError, GitHelperError
from .host import BuildSettings, Settings
from .includer import RepositoryIncluder
from .plugin import GitHelperPlugin
from .plugins import Plugin, PluginRegistry
from .repositories import GitRepositorySpec, IncludedGitRepositories, RepositoryReference
from .version import __version__

__all__ = [
    "BuildSettings",
    "CheckoutError",
    "ConfigurationError",
    "FetchError",
    "GitHelperError",
    "GitHelperPlugin",
    "GitRepositorySpec",
    "IncludedGitRepositories",
    "Plugin",
    "PluginRegistry",
    "RepositoryIncluder",
    "RepositoryReference",
    "Settings",
    "__version__",
]
