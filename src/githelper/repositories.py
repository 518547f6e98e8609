"""
Declarations of the git repositories to include.

``IncludedGitRepositories`` is the extension object the plugin exposes to
build scripts. Each ``repo()`` call configures one ``GitRepositorySpec``;
when the settings are evaluated the specs are frozen into
``RepositoryReference`` values.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .errors import ConfigurationError
from .settings import RepositorySettings, settings


def extract_repo_name(url: str) -> str:
    """Derive a checkout directory name from a repository url."""
    trimmed = url.strip().rstrip("/")
    name = trimmed.replace("\\", "/").rsplit("/", 1)[-1].rsplit(":", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not name or name in {".", ".."}:
        raise ConfigurationError(f"Unable to derive a repository name from url '{url}'")
    return name


def _is_writable_location(path: Path) -> bool:
    candidate = path
    while not candidate.exists():
        if candidate.parent == candidate:
            return False
        candidate = candidate.parent
    return candidate.is_dir() and os.access(candidate, os.W_OK)


@dataclass(frozen=True)
class RepositoryReference:
    """A repository to check out at ``ref`` into ``local_path``."""

    url: str
    ref: str
    local_path: Path
    directory: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ConfigurationError("Repository url must not be empty")
        if not self.ref or not self.ref.strip():
            raise ConfigurationError(f"Repository '{self.url}' declares an empty ref")
        if not _is_writable_location(Path(self.local_path)):
            raise ConfigurationError(f"Checkout path '{self.local_path}' is not writable")

    @property
    def name(self) -> str:
        return Path(self.local_path).name

    @property
    def included_path(self) -> Path:
        if self.directory:
            return Path(self.local_path) / self.directory
        return Path(self.local_path)


@dataclass
class GitRepositorySpec:
    """Mutable repository declaration filled in by build scripts."""

    url: Optional[str] = None
    branch: Optional[str] = None
    name: Optional[str] = None
    directory: Optional[str] = None

    def to_reference(self, checkout_directory: Path) -> RepositoryReference:
        if not self.url:
            raise ConfigurationError("Repository declaration is missing the 'url' property")
        if not self.branch:
            raise ConfigurationError(f"Repository '{self.url}' is missing the 'branch' property")
        name = self.name or extract_repo_name(self.url)
        return RepositoryReference(
            url=self.url,
            ref=self.branch,
            local_path=Path(checkout_directory) / name,
            directory=self.directory,
        )


class IncludedGitRepositories:
    """Extension collecting the repositories to include as builds."""

    def __init__(self, checkout_directory: Optional[Path] = None, default_branch: Optional[str] = None) -> None:
        self.checkout_directory: Optional[Path] = checkout_directory
        self.default_branch = default_branch or settings.default_branch
        self._repositories: List[GitRepositorySpec] = []

    def repo(self, action: Callable[[GitRepositorySpec], None]) -> GitRepositorySpec:
        """Declare one repository; ``action`` configures it."""
        spec = GitRepositorySpec(branch=self.default_branch)
        action(spec)
        self._repositories.append(spec)
        return spec

    def add(self, declaration: RepositorySettings) -> GitRepositorySpec:
        """Declare a repository read from a configuration file."""

        def configure(spec: GitRepositorySpec) -> None:
            spec.url = declaration.url
            if declaration.branch:
                spec.branch = declaration.branch
            spec.name = declaration.name
            spec.directory = declaration.directory

        return self.repo(configure)

    @property
    def repositories(self) -> List[GitRepositorySpec]:
        return list(self._repositories)

    def references(self) -> List[RepositoryReference]:
        if self.checkout_directory is None:
            raise ConfigurationError("No checkout directory configured for included git repositories")
        return [spec.to_reference(self.checkout_directory) for spec in self._repositories]
