import pytest

import sample_plugins
from botcore.capabilities import ExchangeAdapter, TradingApi
from botcore.errors import CapabilityMismatchError, InstantiationError, PluginError, TypeNotFoundError
from botcore.plugins import (
    EXCHANGE_ADAPTER,
    EXCHANGE_ADAPTER_CAPABILITIES,
    TRADING_API,
    PluginDescriptor,
    PluginLoader,
    PluginRegistry,
)


@pytest.fixture
def registry():
    registry = PluginRegistry()
    registry.register("sample.ValidExchangeAdapter", sample_plugins.ValidExchangeAdapter)
    registry.register("sample.TradingApiOnlyAdapter", sample_plugins.TradingApiOnlyAdapter)
    registry.register("sample.LifecycleOnlyAdapter", sample_plugins.LifecycleOnlyAdapter)
    registry.register("sample.IncompleteAdapter", sample_plugins.IncompleteAdapter)
    registry.register("sample.NeedsArgsAdapter", sample_plugins.NeedsArgsAdapter)
    registry.register("sample.RecordingStrategy", sample_plugins.RecordingStrategy)
    return registry


@pytest.fixture
def loader(registry):
    return PluginLoader(registry)


def test_resolve_with_both_capabilities(loader):
    adapter = loader.resolve("sample.ValidExchangeAdapter", [TRADING_API, EXCHANGE_ADAPTER])
    assert isinstance(adapter, sample_plugins.ValidExchangeAdapter)
    assert isinstance(adapter, TradingApi) and isinstance(adapter, ExchangeAdapter)


def test_each_resolve_creates_new_instance(loader):
    first = loader.load_exchange_adapter("sample.ValidExchangeAdapter")
    second = loader.load_exchange_adapter("sample.ValidExchangeAdapter")
    assert first is not second


def test_missing_capability_is_named(loader):
    with pytest.raises(CapabilityMismatchError) as exc:
        loader.resolve("sample.TradingApiOnlyAdapter", EXCHANGE_ADAPTER_CAPABILITIES)
    assert exc.value.capability == "ExchangeAdapter"
    assert "ExchangeAdapter" in str(exc.value)

    with pytest.raises(CapabilityMismatchError) as exc:
        loader.resolve("sample.LifecycleOnlyAdapter", EXCHANGE_ADAPTER_CAPABILITIES)
    assert exc.value.capability == "TradingApi"


def test_single_capability_is_enough_when_only_one_required(loader):
    adapter = loader.resolve("sample.TradingApiOnlyAdapter", [TRADING_API])
    assert adapter.get_impl_name() == "Sample Exchange"


def test_unknown_type_name(loader):
    with pytest.raises(TypeNotFoundError) as exc:
        loader.resolve("sample.NoSuchAdapter", EXCHANGE_ADAPTER_CAPABILITIES)
    assert exc.value.type_name == "sample.NoSuchAdapter"


def test_uninstantiable_types(loader):
    with pytest.raises(InstantiationError):
        loader.resolve("sample.IncompleteAdapter", EXCHANGE_ADAPTER_CAPABILITIES)
    with pytest.raises(InstantiationError) as exc:
        loader.resolve("sample.NeedsArgsAdapter", EXCHANGE_ADAPTER_CAPABILITIES)
    assert "TypeError" in str(exc.value)


def test_failing_factory_is_instantiation_error(registry, loader):
    def broken():
        raise RuntimeError("exchange unreachable")

    registry.register("sample.Broken", broken)
    with pytest.raises(InstantiationError):
        loader.resolve("sample.Broken", [])


def test_strategy_capability(loader):
    strategy = loader.load_trading_strategy("sample.RecordingStrategy")
    assert isinstance(strategy, sample_plugins.RecordingStrategy)
    with pytest.raises(CapabilityMismatchError) as exc:
        loader.load_trading_strategy("sample.ValidExchangeAdapter")
    assert exc.value.capability == "TradingStrategy"


def test_registered_virtual_subclass_satisfies_capability(registry, loader):
    class DuckAdapter:
        def init(self, config):
            pass

    ExchangeAdapter.register(DuckAdapter)
    registry.register("sample.DuckAdapter", DuckAdapter)
    assert isinstance(loader.resolve("sample.DuckAdapter", [EXCHANGE_ADAPTER]), DuckAdapter)


def test_resolve_descriptor(loader):
    descriptor = PluginDescriptor("sample.ValidExchangeAdapter", EXCHANGE_ADAPTER_CAPABILITIES)
    assert isinstance(loader.resolve_descriptor(descriptor), sample_plugins.ValidExchangeAdapter)


def test_registry_conflicts():
    registry = PluginRegistry()
    registry.register("sample.A", sample_plugins.ValidExchangeAdapter)
    # same factory again is fine
    registry.register("sample.A", sample_plugins.ValidExchangeAdapter)
    with pytest.raises(ValueError):
        registry.register("sample.A", sample_plugins.RecordingStrategy)
    with pytest.raises(ValueError):
        registry.register("  ", sample_plugins.RecordingStrategy)
    with pytest.raises(TypeError):
        registry.register("sample.B", "not callable")

    registry.unregister("sample.A")
    assert "sample.A" not in registry


def test_plugin_decorator():
    registry = PluginRegistry()

    @registry.plugin("acme.Strategy")
    class Strategy(sample_plugins.RecordingStrategy):
        pass

    @registry.plugin()
    class Other(sample_plugins.RecordingStrategy):
        pass

    assert registry.get("acme.Strategy") is Strategy
    assert f"{Other.__module__}.{Other.__qualname__}" in registry.names()


def test_import_plugins():
    registry = PluginRegistry()
    registry.import_plugins(["sample_plugins"])
    assert registry.names() == ["sample.RecordingStrategy", "sample.ValidExchangeAdapter"]

    with pytest.raises(PluginError):
        registry.import_plugins(["no_such_plugin_module"])
    # a module without the hook
    with pytest.raises(PluginError):
        registry.import_plugins(["botcore.errors"])
