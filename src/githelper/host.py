"""
Seam to the host build system.

``BuildSettings`` describes what the plugin consumes from the host's settings
object. ``Settings`` is a small in-memory host used by the CLI and the tests:
it keeps extensions, applies plugins by identifier, runs the evaluation
callbacks and records the included builds.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from .logger import get_logger
from .plugins import Plugin, PluginRegistry, default_registry

log = get_logger(__name__)


@runtime_checkable
class BuildSettings(Protocol):
    settings_dir: Path
    offline: bool
    extensions: Dict[str, Any]

    def include_build(self, path: Path) -> None:
        ...

    def settings_evaluated(self, callback: Callable[["BuildSettings"], None]) -> None:
        ...


@dataclass
class Settings:
    """In-memory implementation of the host settings object."""

    settings_dir: Path
    offline: bool = False
    registry: PluginRegistry = field(default=default_registry, repr=False)
    extensions: Dict[str, Any] = field(default_factory=dict)
    included_builds: List[Path] = field(default_factory=list)
    applied_plugins: Dict[str, Plugin] = field(default_factory=dict)
    _evaluated_callbacks: List[Callable[["Settings"], None]] = field(
        default_factory=list, init=False, repr=False
    )
    _evaluated: bool = field(default=False, init=False, repr=False)

    def apply_plugin(self, plugin_id: str) -> Plugin:
        """Apply the plugin registered under ``plugin_id`` (once)."""
        existing = self.applied_plugins.get(plugin_id)
        if existing is not None:
            return existing
        plugin = self.registry.get(plugin_id)()
        plugin.apply(self)
        self.applied_plugins[plugin_id] = plugin
        log.info("plugin_applied", plugin_id=plugin_id)
        return plugin

    def extension(self, name: str) -> Any:
        return self.extensions[name]

    def include_build(self, path: Path) -> None:
        resolved = Path(path).resolve()
        if resolved not in self.included_builds:
            self.included_builds.append(resolved)
        log.info("included_build_registered", path=str(resolved))

    def settings_evaluated(self, callback: Callable[["Settings"], None]) -> None:
        self._evaluated_callbacks.append(callback)

    def evaluate(self) -> List[Path]:
        """Fire the settings-evaluated callbacks and return the included builds."""
        if self._evaluated:
            return list(self.included_builds)
        for callback in self._evaluated_callbacks:
            callback(self)
        self._evaluated = True
        return list(self.included_builds)


def create_settings(settings_dir: Optional[Path] = None, offline: bool = False) -> Settings:
    return Settings(settings_dir=(settings_dir or Path.cwd()).resolve(), offline=offline)
