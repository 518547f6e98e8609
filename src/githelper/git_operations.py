"""
Git checkout handling built on GitPython.

Brings a local checkout to the requested ref of a remote repository:
clone when the checkout is missing, fetch and check out when it is present.
Library failures are translated into ``FetchError`` and ``CheckoutError``.
"""
from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, RemoteProgress, Repo
from git.remote import Remote

from .errors import CheckoutError, FetchError
from .logger import get_logger, mask_credentials
from .repositories import RepositoryReference
from .settings import settings

log = get_logger(__name__)

RefKind = Literal["branch", "tag", "commit"]
CheckoutAction = Literal["cloned", "updated", "unchanged", "offline"]


class GitProgress(RemoteProgress):
    """Relays clone/fetch progress to the log."""

    def __init__(self, url: str) -> None:
        super().__init__()
        self.url = url

    def update(self, op_code, cur_count, max_count=None, message=""):
        if max_count:
            percentage = int((float(cur_count) / float(max_count)) * 100)
            log.debug("git_progress", url=self.url, percentage=percentage, message=message)


@dataclass(frozen=True)
class ResolvedRef:
    kind: RefKind
    commit: str


@dataclass(frozen=True)
class CheckoutResult:
    reference: RepositoryReference
    commit: str
    action: CheckoutAction


def _describe(exc: GitCommandError) -> str:
    detail = (exc.stderr or "").strip() or str(exc)
    return mask_credentials(detail.replace("stderr:", "").strip(" '"))


class GitOperations:
    """Clone, fetch and checkout primitives for included repositories."""

    def __init__(self, remote_name: Optional[str] = None) -> None:
        self.remote_name = remote_name or settings.remote_name

    def sync(self, reference: RepositoryReference, offline: bool = False) -> CheckoutResult:
        """Make ``reference.local_path`` a working tree at ``reference.ref``."""
        path = Path(reference.local_path)
        if not self._has_checkout(path):
            if offline:
                raise FetchError(
                    f"Repository '{reference.name}' is not checked out at {path} "
                    "and the build is offline"
                )
            created = not path.exists()
            repo = self.clone(reference.url, path)
            try:
                resolved = self.resolve(repo, reference.ref)
                self.checkout(repo, reference.ref, resolved, force=True)
            except CheckoutError:
                repo.close()
                if created:
                    shutil.rmtree(path, ignore_errors=True)
                    log.info("incomplete_clone_removed", path=str(path))
                raise
            return CheckoutResult(reference=reference, commit=resolved.commit, action="cloned")

        repo = self.open(path)
        self._ensure_remote(repo, reference.url)
        if offline:
            resolved = self.resolve(repo, reference.ref)
            self.checkout(repo, reference.ref, resolved)
            log.info("repository_offline", repository=reference.name, ref=reference.ref)
            return CheckoutResult(reference=reference, commit=resolved.commit, action="offline")

        if self.is_current(repo, reference.ref):
            log.info("repository_up_to_date", repository=reference.name, ref=reference.ref)
            return CheckoutResult(reference=reference, commit=self.head_commit(repo) or "", action="unchanged")

        previous = self.head_commit(repo) if self.has_index(repo) else None
        self.fetch(repo, reference.url)
        resolved = self.resolve(repo, reference.ref)
        self.checkout(repo, reference.ref, resolved)
        action: CheckoutAction = "unchanged" if previous == resolved.commit else "updated"
        return CheckoutResult(reference=reference, commit=resolved.commit, action=action)

    @staticmethod
    def _has_checkout(path: Path) -> bool:
        return path.exists() and (not path.is_dir() or any(path.iterdir()))

    def clone(self, url: str, path: Path) -> Repo:
        created = not path.exists()
        log.info("repository_cloning", url=url, path=str(path))
        try:
            repo = Repo.clone_from(
                url,
                path,
                progress=GitProgress(url),
                no_checkout=True,
                origin=self.remote_name,
            )
        except GitCommandError as exc:
            if created:
                shutil.rmtree(path, ignore_errors=True)
            raise FetchError(f"Unable to clone repository '{mask_credentials(url)}': {_describe(exc)}") from exc
        log.info("repository_cloned", url=url, path=str(path))
        return repo

    @staticmethod
    def open(path: Path) -> Repo:
        try:
            return Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as exc:
            raise CheckoutError(f"Checkout directory {path} is not a git repository") from exc

    def _ensure_remote(self, repo: Repo, url: str) -> Remote:
        try:
            remote = repo.remote(self.remote_name)
        except ValueError:
            log.info("remote_created", remote=self.remote_name, url=url)
            return repo.create_remote(self.remote_name, url)
        if remote.url != url:
            log.info("remote_url_updated", remote=self.remote_name, url=url)
            remote.set_url(url)
        return remote

    def fetch(self, repo: Repo, url: str) -> None:
        log.info("repository_fetching", url=url, path=str(repo.working_tree_dir))
        try:
            repo.git.fetch(self.remote_name, "--tags")
        except GitCommandError as exc:
            raise FetchError(f"Unable to fetch repository '{mask_credentials(url)}': {_describe(exc)}") from exc
        log.info("repository_fetched", url=url)

    @staticmethod
    def _rev_parse(repo: Repo, revision: str) -> Optional[str]:
        try:
            return repo.git.rev_parse("--verify", "--quiet", f"{revision}^{{commit}}").strip() or None
        except GitCommandError:
            return None

    def _lookup(self, repo: Repo, ref: str) -> Optional[ResolvedRef]:
        candidates = (
            ("branch", f"refs/remotes/{self.remote_name}/{ref}"),
            ("tag", f"refs/tags/{ref}"),
            ("commit", ref),
        )
        for kind, revision in candidates:
            commit = self._rev_parse(repo, revision)
            if commit:
                return ResolvedRef(kind=kind, commit=commit)
        return None

    def resolve(self, repo: Repo, ref: str) -> ResolvedRef:
        """Resolve ``ref`` as a remote branch, then a tag, then a commit."""
        resolved = self._lookup(repo, ref)
        if resolved is None:
            raise CheckoutError(f"Ref '{ref}' does not resolve in {repo.working_tree_dir}")
        return resolved

    @staticmethod
    def has_index(repo: Repo) -> bool:
        return Path(repo.index.path).exists()

    def checkout(self, repo: Repo, ref: str, resolved: ResolvedRef, force: bool = False) -> None:
        # a clone made with --no-checkout has no index yet
        force = force or not self.has_index(repo)
        options = ["--force"] if force else []
        if not force and repo.is_dirty(untracked_files=False):
            raise CheckoutError(
                f"Checkout {repo.working_tree_dir} has local changes; commit or discard them before switching to '{ref}'"
            )
        try:
            if resolved.kind == "branch":
                repo.git.checkout(*options, "-B", ref, f"{self.remote_name}/{ref}")
            else:
                repo.git.checkout(*options, "--detach", resolved.commit)
        except GitCommandError as exc:
            raise CheckoutError(f"Unable to check out '{ref}': {_describe(exc)}") from exc
        log.info("repository_checked_out", ref=ref, kind=resolved.kind, commit=resolved.commit[:12])

    @staticmethod
    def head_commit(repo: Repo) -> Optional[str]:
        try:
            return repo.head.commit.hexsha
        except ValueError:
            return None

    def is_current(self, repo: Repo, ref: str) -> bool:
        """True when a pinned ref (tag or commit) is already checked out cleanly."""
        resolved = self._lookup(repo, ref)
        if resolved is None or resolved.kind == "branch":
            return False
        if not self.has_index(repo) or repo.is_dirty(untracked_files=False):
            return False
        return self.head_commit(repo) == resolved.commit
