from importlib import metadata, resources

import pytest

from githelper import version


@pytest.fixture(autouse=True)
def clear_version_cache():
    version.get_version.cache_clear()
    yield
    version.get_version.cache_clear()


def test_version_matches_packaged_file() -> None:
    packaged = resources.files("githelper").joinpath("VERSION").read_text(encoding="utf-8").strip()
    assert version.get_version() == packaged


def test_version_falls_back_without_distribution_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(name: str) -> str:
        raise metadata.PackageNotFoundError(name)

    monkeypatch.setattr(version.metadata, "version", missing)
    assert version.get_version() == version._packaged_version()
    assert version.get_version() != "unknown"
