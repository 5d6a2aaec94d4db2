"""Plugin registry and loader for exchange adapters and trading strategies.

Configuration documents name plugins by type name (``exchange.adapter``,
``strategies[].class_name``). Names resolve through an explicit registry of
zero-argument factories instead of importing arbitrary classes, so an unknown
name is a plain lookup failure.

Plugin modules listed in the bot settings are imported once at startup and
register themselves through a ``register_plugins(registry)`` hook:

    def register_plugins(registry):
        registry.register("acme.BitstampAdapter", BitstampAdapter)
"""
import importlib
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .capabilities import ExchangeAdapter, TradingApi, TradingStrategy
from .errors import CapabilityMismatchError, InstantiationError, PluginError, TypeNotFoundError
from .logging_setup import logger

PLUGIN_HOOK = "register_plugins"


@dataclass(frozen=True)
class Capability:
    """A named contract a plugin instance must satisfy."""
    name: str
    contract: type

    def is_satisfied_by(self, instance: Any) -> bool:
        return isinstance(instance, self.contract)


TRADING_API = Capability("TradingApi", TradingApi)
EXCHANGE_ADAPTER = Capability("ExchangeAdapter", ExchangeAdapter)
TRADING_STRATEGY = Capability("TradingStrategy", TradingStrategy)

EXCHANGE_ADAPTER_CAPABILITIES = (TRADING_API, EXCHANGE_ADAPTER)
TRADING_STRATEGY_CAPABILITIES = (TRADING_STRATEGY,)


@dataclass(frozen=True)
class PluginDescriptor:
    """A plugin reference read out of a configuration document."""
    type_name: str
    required_capabilities: Tuple[Capability, ...]


class PluginRegistry:
    """Type name -> zero-argument factory, with conflict protection."""

    def __init__(self):
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._lock = Lock()

    def register(self, type_name: str, factory: Callable[[], Any]) -> None:
        name = str(type_name or "").strip()
        if not name:
            raise ValueError("Plugin type name is required")
        if not callable(factory):
            raise TypeError(f"Plugin factory for '{name}' is not callable")
        with self._lock:
            existing = self._factories.get(name)
            if existing is not None and existing is not factory:
                raise ValueError(f"Plugin type name conflict: '{name}' already registered")
            self._factories[name] = factory
        logger.debug("Registered plugin type {}", name)

    def plugin(self, type_name: Optional[str] = None):
        """Class decorator registering the class under ``type_name``.

        Defaults to the class's dotted path, e.g. ``acme.adapters.KrakenAdapter``.
        """
        def decorator(cls):
            self.register(type_name or f"{cls.__module__}.{cls.__qualname__}", cls)
            return cls
        return decorator

    def unregister(self, type_name: str) -> None:
        with self._lock:
            self._factories.pop(type_name, None)

    def get(self, type_name: str) -> Optional[Callable[[], Any]]:
        with self._lock:
            return self._factories.get(str(type_name or "").strip())

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._factories)

    def __contains__(self, type_name: str) -> bool:
        return self.get(type_name) is not None

    def import_plugins(self, module_names: Iterable[str]) -> None:
        """Import plugin modules and run their ``register_plugins`` hook."""
        for module_name in module_names:
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise PluginError(f"Failed to import plugin module '{module_name}': {e}", module_name) from e
            hook = getattr(module, PLUGIN_HOOK, None)
            if not callable(hook):
                raise PluginError(f"Plugin module '{module_name}' has no {PLUGIN_HOOK}(registry) function", module_name)
            hook(self)
            logger.info("Loaded plugin module {}", module_name)


class PluginLoader:
    """Create plugin instances by type name and check their capabilities.

    Holds no state besides the registry, so it is safe to share between threads.
    """

    def __init__(self, registry: PluginRegistry):
        self.registry = registry

    def resolve(self, type_name: str, capabilities: Iterable[Capability]) -> Any:
        """Instantiate ``type_name`` and verify each capability individually.

        Raises:
            TypeNotFoundError: no plugin registered under that name
            InstantiationError: the factory raised (abstract class, required args, ...)
            CapabilityMismatchError: instance lacks one of the capabilities (named in the error)
        """
        capabilities = tuple(capabilities)
        factory = self.registry.get(type_name)
        if factory is None:
            logger.error("No plugin type registered as '{}'", type_name)
            raise TypeNotFoundError(f"No plugin type registered as '{type_name}'", type_name)

        try:
            instance = factory()
        except Exception as e:
            logger.error("Failed to instantiate plugin '{}': {}", type_name, type(e).__name__)
            raise InstantiationError(
                f"Failed to instantiate plugin '{type_name}': {type(e).__name__}: {e}", type_name
            ) from e

        for capability in capabilities:
            if not capability.is_satisfied_by(instance):
                logger.error("Plugin '{}' does not implement {}", type_name, capability.name)
                raise CapabilityMismatchError(
                    f"Plugin '{type_name}' ({type(instance).__name__}) does not implement {capability.name}",
                    type_name,
                    capability.name,
                )

        logger.info(
            "Created plugin {} [{}]", type_name, ", ".join(c.name for c in capabilities) or "no capabilities"
        )
        return instance

    def resolve_descriptor(self, descriptor: PluginDescriptor) -> Any:
        return self.resolve(descriptor.type_name, descriptor.required_capabilities)

    def load_exchange_adapter(self, type_name: str) -> Any:
        return self.resolve(type_name, EXCHANGE_ADAPTER_CAPABILITIES)

    def load_trading_strategy(self, type_name: str) -> TradingStrategy:
        return self.resolve(type_name, TRADING_STRATEGY_CAPABILITIES)
