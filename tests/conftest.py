from __future__ import annotations

from pathlib import Path
from typing import Callable

import git
import pytest

from githelper.settings import settings

ACTOR = git.Actor("Build Bot", "build@example.com")


class Upstream:
    """A throwaway repository standing in for a remote."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.repo = git.Repo.init(path)

    @property
    def url(self) -> str:
        return str(self.path)

    def commit(self, filename: str, content: str, message: str) -> str:
        target = self.path / filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        self.repo.index.add([filename])
        return self.repo.index.commit(message, author=ACTOR, committer=ACTOR).hexsha

    def switch(self, branch: str) -> None:
        self.repo.git.checkout(branch)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "checkout_dir", Path(".gradle/checkouts"))
    monkeypatch.setattr(settings, "default_branch", "master")
    monkeypatch.setattr(settings, "remote_name", "origin")
    monkeypatch.setattr(settings, "offline", False)
    monkeypatch.setattr(settings, "log_level", "INFO")
    monkeypatch.setattr(settings, "repositories", [])


@pytest.fixture
def upstream(tmp_path: Path) -> Upstream:
    """Repository with ``main`` (two commits), tag ``v1.0`` and branch ``develop``."""
    remote = Upstream(tmp_path / "remotes" / "micronaut-core")
    remote.commit("settings.gradle", "rootProject.name = 'core'\n", "Initial commit")
    remote.repo.git.branch("-M", "main")
    remote.repo.create_tag("v1.0")
    remote.commit("core/build.gradle", "plugins { id 'java' }\n", "Add core module")
    remote.repo.git.checkout("-b", "develop")
    remote.commit("README.md", "develop\n", "Develop work")
    remote.switch("main")
    return remote


@pytest.fixture
def make_upstream(tmp_path: Path) -> Callable[[str], Upstream]:
    def factory(name: str) -> Upstream:
        remote = Upstream(tmp_path / "remotes" / name)
        remote.commit("settings.gradle", f"rootProject.name = '{name}'\n", "Initial commit")
        remote.repo.git.branch("-M", "main")
        return remote

    return factory
