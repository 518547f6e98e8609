"""
The ``io.micronaut.build.git-helper`` plugin.
"""
from __future__ import annotations

from typing import List, Optional

from .errors import ConfigurationError
from .git_operations import CheckoutResult
from .host import BuildSettings
from .includer import RepositoryIncluder
from .logger import get_logger
from .plugins import Plugin, default_registry
from .repositories import IncludedGitRepositories
from .settings import settings

log = get_logger(__name__)

EXTENSION_NAME = "included_git_repositories"


class GitHelperPlugin(Plugin):
    """Helper to include git repositories as included builds."""

    plugin_id = "io.micronaut.build.git-helper"
    description = "Helper to include git repositories as included builds"

    def __init__(self, includer: Optional[RepositoryIncluder] = None) -> None:
        self.includer = includer or RepositoryIncluder()
        self.repositories: Optional[IncludedGitRepositories] = None
        self.results: List[CheckoutResult] = []

    def apply(self, target: BuildSettings) -> None:
        checkout_dir = settings.checkout_dir
        if not checkout_dir.is_absolute():
            checkout_dir = target.settings_dir / checkout_dir
        self.repositories = IncludedGitRepositories(checkout_directory=checkout_dir)
        target.extensions[EXTENSION_NAME] = self.repositories
        for declaration in settings.repositories:
            self.repositories.add(declaration)
        target.settings_evaluated(self._include_repositories)

    def _include_repositories(self, target: BuildSettings) -> None:
        if self.repositories is None:
            raise ConfigurationError(f"Plugin '{self.plugin_id}' was evaluated before being applied")
        references = self.repositories.references()
        if not references:
            log.debug("no_repositories_declared")
            return
        self.results = self.includer.include(
            target, references, offline=target.offline or settings.offline
        )


default_registry.register(GitHelperPlugin)
