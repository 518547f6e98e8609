"""
Checks out declared repositories and registers them as included builds.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from .errors import ConfigurationError
from .git_operations import CheckoutResult, GitOperations
from .host import BuildSettings
from .logger import get_logger
from .repositories import RepositoryReference

log = get_logger(__name__)


class RepositoryIncluder:
    """Brings each repository to its ref, then includes it in the build.

    All repositories are prepared before any of them is registered, so a
    failure leaves the host without a partial set of included builds.
    """

    def __init__(self, git: Optional[GitOperations] = None) -> None:
        self.git = git or GitOperations()

    def prepare(self, references: Sequence[RepositoryReference], offline: bool = False) -> List[CheckoutResult]:
        results: List[CheckoutResult] = []
        for reference in references:
            log.info(
                "repository_preparing",
                repository=reference.name,
                url=reference.url,
                ref=reference.ref,
                offline=offline,
            )
            result = self.git.sync(reference, offline=offline)
            included = reference.included_path
            if not included.is_dir():
                raise ConfigurationError(
                    f"Directory '{reference.directory}' does not exist in repository '{reference.name}'"
                )
            results.append(result)
        return results

    def include(
        self,
        target: BuildSettings,
        references: Sequence[RepositoryReference],
        offline: Optional[bool] = None,
    ) -> List[CheckoutResult]:
        if offline is None:
            offline = target.offline
        results = self.prepare(references, offline=offline)
        for result in results:
            target.include_build(result.reference.included_path)
        log.info("repositories_included", count=len(results))
        return results
