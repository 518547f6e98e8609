"""
Plugin interface and registry.

Plugins are looked up by identifier. Installed distributions advertise them
through the ``githelper.plugins`` entry point group; classes can also be
registered directly.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, ClassVar, Dict, List, Optional, Type

from .errors import ConfigurationError
from .logger import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from .host import BuildSettings

log = get_logger(__name__)

ENTRY_POINT_GROUP = "githelper.plugins"


class Plugin(ABC):
    """A unit of build logic applied to the host's settings."""

    plugin_id: ClassVar[str]
    description: ClassVar[str] = ""

    @abstractmethod
    def apply(self, target: "BuildSettings") -> None:
        """Attach the plugin's extensions and hooks to ``target``."""


class PluginRegistry:
    """Maps plugin identifiers to implementation classes."""

    def __init__(self, group: str = ENTRY_POINT_GROUP) -> None:
        self.group = group
        self._plugins: Dict[str, Type[Plugin]] = {}
        self._discovered = False

    def register(self, plugin_cls: Type[Plugin], plugin_id: Optional[str] = None) -> None:
        identifier = plugin_id or getattr(plugin_cls, "plugin_id", None)
        if not identifier:
            raise ConfigurationError(f"Plugin {plugin_cls.__name__} declares no identifier")
        if not (isinstance(plugin_cls, type) and issubclass(plugin_cls, Plugin)):
            raise ConfigurationError(f"Invalid plugin class for '{identifier}': {plugin_cls!r}")
        self._plugins[identifier] = plugin_cls
        log.debug("plugin_registered", plugin_id=identifier, implementation=plugin_cls.__qualname__)

    def discover(self) -> List[str]:
        """Load every plugin advertised through entry points."""
        found: List[str] = []
        for entry in entry_points(group=self.group):
            if entry.name in self._plugins:
                continue
            self.register(entry.load(), plugin_id=entry.name)
            found.append(entry.name)
        self._discovered = True
        if found:
            log.info("plugins_discovered", group=self.group, plugins=found)
        return found

    def get(self, plugin_id: str) -> Type[Plugin]:
        if plugin_id not in self._plugins and not self._discovered:
            self.discover()
        try:
            return self._plugins[plugin_id]
        except KeyError:
            raise ConfigurationError(f"Plugin with id '{plugin_id}' not found") from None

    def ids(self) -> List[str]:
        return sorted(self._plugins)


default_registry = PluginRegistry()
