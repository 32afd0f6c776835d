"""Read-only registry of supported airline engines"""

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, Iterator, List, Mapping, Type

from loguru import logger

from .engine import Engine
from .exceptions import ConfigError, EngineNotFoundError
from .parser import Parser
from .searcher import Searcher
from .site_config import SiteConfig
from .validators import valid_airline_code


@dataclass(frozen=True)
class EngineModule:
    """Everything needed to search one airline: its config, searcher and parser"""

    id: str
    config: SiteConfig
    searcher: Type[Searcher]
    parser: Type[Parser]

    def __post_init__(self):
        engine_id = str(self.id).upper()
        if not valid_airline_code(engine_id):
            raise ConfigError(f"Invalid engine id: {self.id!r}")
        object.__setattr__(self, "id", engine_id)

        config = self.config
        if isinstance(config, Mapping):
            config = SiteConfig.from_dict(config)
        if not isinstance(config, SiteConfig):
            raise ConfigError(f"Invalid config for engine {engine_id}: {config!r}")
        object.__setattr__(self, "config", config)

        if not (isinstance(self.searcher, type) and issubclass(self.searcher, Searcher)):
            raise ConfigError(f"No Searcher subclass defined for engine: {engine_id}")
        if self.searcher.search is Searcher.search:
            raise ConfigError(f"Searcher for {engine_id} does not implement search()")
        if config.modifiable and not self.searcher.supports_modify():
            raise ConfigError(
                f"Searcher for {engine_id} declares modifiable fields but does not implement modify()"
            )

        if not (isinstance(self.parser, type) and issubclass(self.parser, Parser)):
            raise ConfigError(f"No Parser subclass defined for engine: {engine_id}")
        if self.parser.parse is Parser.parse:
            raise ConfigError(f"Parser for {engine_id} does not implement parse()")

    @classmethod
    def from_module(cls, engine_id: str, module: Any) -> "EngineModule":
        """Build from a package exposing ``config``, ``Searcher`` and ``Parser`` attributes"""
        try:
            return cls(engine_id, module.config, module.Searcher, module.Parser)
        except AttributeError as e:
            raise ConfigError(f"Incomplete engine module for {engine_id}: {e}")


class EngineRegistry(Mapping):
    """
    Engine modules keyed by upper-case airline id.

    Built once at start-up and never modified, so it can be shared freely between
    Engine instances.
    """

    def __init__(self, modules: Iterable[EngineModule]):
        entries = {}
        for module in modules:
            if module.id in entries:
                raise ConfigError(f"Duplicate engine id: {module.id}")
            entries[module.id] = module
        self._modules = MappingProxyType(entries)

    def __getitem__(self, engine_id: str) -> EngineModule:
        return self._modules[engine_id.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def get(self, engine_id: str) -> EngineModule:
        try:
            return self[engine_id]
        except KeyError:
            raise EngineNotFoundError(f"No engine defined for airline: {engine_id}")

    def supported(self) -> List[str]:
        return sorted(self._modules)

    def new(self, engine_id: str) -> Engine:
        return Engine(self.get(engine_id), self)


@lru_cache(maxsize=None)
def default_registry() -> EngineRegistry:
    """Registry of the engines bundled with this package"""
    from .engines import ENGINES

    registry = EngineRegistry(EngineModule.from_module(k, v) for k, v in ENGINES.items())
    logger.debug(f"Registered engines: {', '.join(registry.supported())}")
    return registry
