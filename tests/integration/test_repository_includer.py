from pathlib import Path

import pytest
from git import Repo

from githelper.errors import CheckoutError, ConfigurationError, FetchError
from githelper.git_operations import GitOperations
from githelper.host import Settings
from githelper.plugin import EXTENSION_NAME, GitHelperPlugin


def _build(root: Path, offline: bool = False) -> Settings:
    root.mkdir(parents=True, exist_ok=True)
    return Settings(settings_dir=root, offline=offline)


def _include(host: Settings, url: str, branch: str, **extra: str) -> GitHelperPlugin:
    plugin = host.apply_plugin(GitHelperPlugin.plugin_id)

    def configure(spec):
        spec.url = url
        spec.branch = branch
        for key, value in extra.items():
            setattr(spec, key, value)

    host.extension(EXTENSION_NAME).repo(configure)
    return plugin  # type: ignore[return-value]


def _checkout(root: Path, name: str = "micronaut-core") -> Path:
    return root / ".gradle" / "checkouts" / name


def _forbid_network(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(*_args, **_kwargs):
        raise AssertionError("unexpected network access")

    monkeypatch.setattr(GitOperations, "fetch", fail)
    monkeypatch.setattr(GitOperations, "clone", fail)


def test_clone_branch_and_register_included_build(tmp_path, upstream):
    root = tmp_path / "build"
    host = _build(root)
    plugin = _include(host, upstream.url, "main")

    included = host.evaluate()

    checkout = _checkout(root)
    assert included == [checkout.resolve()]
    repo = Repo(checkout)
    assert repo.active_branch.name == "main"
    assert repo.head.commit.hexsha == upstream.repo.heads.main.commit.hexsha
    assert (checkout / "core" / "build.gradle").is_file()
    assert not repo.is_dirty(untracked_files=True)
    assert [result.action for result in plugin.results] == ["cloned"]


def test_checkout_tag_detaches_head(tmp_path, upstream):
    root = tmp_path / "build"
    host = _build(root)
    _include(host, upstream.url, "v1.0")
    host.evaluate()

    repo = Repo(_checkout(root))
    assert repo.head.is_detached
    assert repo.head.commit.hexsha == upstream.repo.tags["v1.0"].commit.hexsha
    assert not (_checkout(root) / "core").exists()


def test_checkout_commit_hash(tmp_path, upstream):
    root = tmp_path / "build"
    develop_head = upstream.repo.heads.develop.commit.hexsha
    host = _build(root)
    _include(host, upstream.url, develop_head)
    host.evaluate()

    repo = Repo(_checkout(root))
    assert repo.head.commit.hexsha == develop_head
    assert (_checkout(root) / "README.md").read_text() == "develop\n"


def test_pinned_checkout_is_not_fetched_again(tmp_path, upstream, monkeypatch):
    root = tmp_path / "build"
    first = _build(root)
    _include(first, upstream.url, "v1.0")
    first.evaluate()

    _forbid_network(monkeypatch)
    second = _build(root)
    plugin = _include(second, upstream.url, "v1.0")
    included = second.evaluate()

    assert included == [_checkout(root).resolve()]
    assert [result.action for result in plugin.results] == ["unchanged"]


def test_branch_checkout_picks_up_new_commits(tmp_path, upstream):
    root = tmp_path / "build"
    first = _build(root)
    _include(first, upstream.url, "main")
    first.evaluate()

    new_head = upstream.commit("core/Application.java", "class Application {}\n", "Add application")

    second = _build(root)
    plugin = _include(second, upstream.url, "main")
    second.evaluate()

    repo = Repo(_checkout(root))
    assert repo.head.commit.hexsha == new_head
    assert repo.active_branch.name == "main"
    assert [result.action for result in plugin.results] == ["updated"]


def test_switching_ref_on_existing_checkout(tmp_path, upstream):
    root = tmp_path / "build"
    first = _build(root)
    _include(first, upstream.url, "main")
    first.evaluate()

    second = _build(root)
    _include(second, upstream.url, "develop")
    second.evaluate()

    repo = Repo(_checkout(root))
    assert repo.active_branch.name == "develop"
    assert repo.head.commit.hexsha == upstream.repo.heads.develop.commit.hexsha


def test_invalid_ref_aborts_without_registration(tmp_path, upstream):
    root = tmp_path / "build"
    host = _build(root)
    _include(host, upstream.url, "main")
    _include(host, upstream.url, "no-such-branch", name="broken")

    with pytest.raises(CheckoutError, match="no-such-branch"):
        host.evaluate()
    assert host.included_builds == []


def test_unreachable_repository_is_a_fetch_error(tmp_path):
    root = tmp_path / "build"
    host = _build(root)
    _include(host, str(tmp_path / "remotes" / "missing.git"), "main")

    with pytest.raises(FetchError):
        host.evaluate()
    assert not _checkout(root, "missing").exists()
    assert host.included_builds == []


def test_directory_is_included_instead_of_checkout_root(tmp_path, upstream):
    root = tmp_path / "build"
    host = _build(root)
    _include(host, upstream.url, "main", directory="core")

    assert host.evaluate() == [(_checkout(root) / "core").resolve()]


def test_missing_directory_is_a_configuration_error(tmp_path, upstream):
    root = tmp_path / "build"
    host = _build(root)
    _include(host, upstream.url, "v1.0", directory="core")

    with pytest.raises(ConfigurationError):
        host.evaluate()
    assert host.included_builds == []


def test_offline_build_without_checkout_fails(tmp_path, upstream, monkeypatch):
    _forbid_network(monkeypatch)
    root = tmp_path / "build"
    host = _build(root, offline=True)
    _include(host, upstream.url, "main")

    with pytest.raises(FetchError, match="offline"):
        host.evaluate()


def test_offline_build_uses_existing_checkout(tmp_path, upstream, monkeypatch):
    root = tmp_path / "build"
    first = _build(root)
    _include(first, upstream.url, "main")
    first.evaluate()
    cloned_head = Repo(_checkout(root)).head.commit.hexsha
    upstream.commit("core/Later.java", "class Later {}\n", "Later change")

    _forbid_network(monkeypatch)
    second = _build(root, offline=True)
    plugin = _include(second, upstream.url, "main")
    included = second.evaluate()

    assert included == [_checkout(root).resolve()]
    assert Repo(_checkout(root)).head.commit.hexsha == cloned_head
    assert [result.action for result in plugin.results] == ["offline"]


def test_remote_url_follows_declaration(tmp_path, upstream):
    root = tmp_path / "build"
    first = _build(root)
    _include(first, upstream.url, "main")
    first.evaluate()

    mirror = tmp_path / "remotes" / "mirror"
    Repo.clone_from(upstream.url, mirror)

    second = _build(root)
    _include(second, str(mirror), "main", name="micronaut-core")
    second.evaluate()

    assert Repo(_checkout(root)).remote("origin").url == str(mirror)


def test_existing_non_repository_directory_is_rejected(tmp_path, make_upstream):
    other = make_upstream("data")
    root = tmp_path / "build"
    stray = _checkout(root, "data")
    stray.mkdir(parents=True)
    (stray / "notes.txt").write_text("not a checkout\n")

    host = _build(root)
    _include(host, other.url, "main")
    with pytest.raises(CheckoutError, match="not a git repository"):
        host.evaluate()


def test_failed_first_clone_leaves_nothing_behind(tmp_path, upstream):
    root = tmp_path / "build"
    first = _build(root)
    _include(first, upstream.url, "mian")
    with pytest.raises(CheckoutError):
        first.evaluate()
    assert not _checkout(root).exists()

    main_head = upstream.repo.heads.main.commit.hexsha
    second = _build(root)
    plugin = _include(second, upstream.url, main_head)
    included = second.evaluate()

    assert included == [_checkout(root).resolve()]
    assert (_checkout(root) / "settings.gradle").is_file()
    assert Repo(_checkout(root)).head.commit.hexsha == main_head
    assert [result.action for result in plugin.results] == ["cloned"]


def test_checkout_without_index_is_populated(tmp_path, upstream):
    checkout = tmp_path / "build" / ".gradle" / "checkouts" / "micronaut-core"
    Repo.clone_from(upstream.url, checkout, no_checkout=True)
    main_head = upstream.repo.heads.main.commit.hexsha

    host = _build(tmp_path / "build")
    plugin = _include(host, upstream.url, main_head)
    host.evaluate()

    assert (checkout / "core" / "build.gradle").is_file()
    assert [result.action for result in plugin.results] != ["unchanged"]


def test_local_changes_block_switching_ref(tmp_path, upstream):
    root = tmp_path / "build"
    first = _build(root)
    _include(first, upstream.url, "main")
    first.evaluate()
    (_checkout(root) / "settings.gradle").write_text("rootProject.name = 'edited'\n")

    second = _build(root)
    _include(second, upstream.url, "develop")
    with pytest.raises(CheckoutError, match="local changes"):
        second.evaluate()
    assert second.included_builds == []
    assert Repo(_checkout(root)).active_branch.name == "main"
