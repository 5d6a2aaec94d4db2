"""Startup wiring: turn loaded documents into initialised plugins.

Loads the engine, exchange, markets, strategies and email-alerts documents,
creates the exchange adapter and one strategy per enabled market, and hands
them back to the engine. Any inconsistency is fatal to startup.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .capabilities import ExchangeApiConfig, Market, StrategyConfigItems, TradingStrategy
from .documents import DocumentType, EmailAlertsConfig, EngineConfig, ExchangeConfig, MarketConfig, StrategyConfig
from .errors import AssemblyError
from .logging_setup import logger
from .plugins import EXCHANGE_ADAPTER_CAPABILITIES, TRADING_STRATEGY_CAPABILITIES, PluginDescriptor, PluginLoader
from .store import ConfigStore


@dataclass
class LoadedStrategy:
    market: Market
    strategy_id: str
    strategy: TradingStrategy


@dataclass
class AssembledBot:
    engine: EngineConfig
    exchange_adapter: Any
    strategies: List[LoadedStrategy] = field(default_factory=list)
    email_alerts: Optional[EmailAlertsConfig] = None


def build_exchange_api_config(exchange: ExchangeConfig) -> ExchangeApiConfig:
    api_config = ExchangeApiConfig(exchange_name=exchange.name, exchange_adapter=exchange.adapter)

    network = exchange.network_config
    if network is not None:
        api_config.connection_timeout = network.connection_timeout
        api_config.non_fatal_error_codes = list(network.non_fatal_error_codes)
        api_config.non_fatal_error_messages = list(network.non_fatal_error_messages)
        if not network.non_fatal_error_codes:
            logger.info("No (optional) non-fatal error codes set for exchange adapter {}", exchange.adapter)
        if not network.non_fatal_error_messages:
            logger.info("No (optional) non-fatal error messages set for exchange adapter {}", exchange.adapter)
    else:
        logger.info("No (optional) network config set for exchange adapter {}", exchange.adapter)

    if exchange.authentication_config:
        api_config.authentication_config = dict(exchange.authentication_config)
        logger.info("Authentication config has been set for exchange adapter {}", exchange.adapter)
    else:
        logger.info("No (optional) authentication config set for exchange adapter {}", exchange.adapter)

    api_config.other_config = dict(exchange.other_config)
    return api_config


def create_exchange_adapter(exchange: ExchangeConfig, loader: PluginLoader) -> Any:
    descriptor = PluginDescriptor(exchange.adapter, EXCHANGE_ADAPTER_CAPABILITIES)
    adapter = loader.resolve_descriptor(descriptor)
    adapter.init(build_exchange_api_config(exchange))
    logger.info("Initialised exchange adapter {} for {}", exchange.adapter, exchange.name)
    return adapter


def build_strategies(
    strategies: List[StrategyConfig],
    markets: List[MarketConfig],
    trading_api: Any,
    loader: PluginLoader,
) -> List[LoadedStrategy]:
    """Create and initialise one strategy per enabled market.

    Raises:
        AssemblyError: duplicate market, market without id, or unknown strategy id
    """
    by_id: Dict[str, StrategyConfig] = {}
    for strategy in strategies:
        by_id[strategy.id] = strategy
        logger.info("Registered trading strategy id={}", strategy.id)

    loaded: List[LoadedStrategy] = []
    seen_ids, seen_names = set(), set()
    for market_config in markets:
        if not market_config.enabled:
            logger.info("{} market is not enabled for trading; skipping", market_config.name)
            continue
        if not market_config.id:
            raise AssemblyError(f"Market '{market_config.name}' has no id")
        if market_config.id in seen_ids or market_config.name in seen_names:
            raise AssemblyError(f"Found duplicate market: id={market_config.id} name={market_config.name}")
        seen_ids.add(market_config.id)
        seen_names.add(market_config.name)

        strategy_config = by_id.get(market_config.trading_strategy_id)
        if strategy_config is None:
            raise AssemblyError(
                f"Market '{market_config.name}' uses strategy '{market_config.trading_strategy_id}' "
                f"which is not defined; known strategies: {sorted(k for k in by_id if k)}"
            )

        market = Market(
            id=market_config.id,
            name=market_config.name,
            base_currency=market_config.base_currency,
            counter_currency=market_config.counter_currency,
        )
        items = StrategyConfigItems(dict(strategy_config.config_items))
        if not items:
            logger.info("No (optional) config items set for trading strategy {}", strategy_config.id)

        descriptor = PluginDescriptor(strategy_config.class_name, TRADING_STRATEGY_CAPABILITIES)
        strategy = loader.resolve_descriptor(descriptor)
        strategy.init(trading_api, market, items)
        logger.info(
            "Initialised trading strategy {} ({}) for market {}",
            strategy_config.name, strategy_config.class_name, market.name,
        )
        loaded.append(LoadedStrategy(market=market, strategy_id=strategy_config.id, strategy=strategy))
    return loaded


def assemble_bot(store: ConfigStore, loader: PluginLoader) -> AssembledBot:
    """Load every document and build the plugins the engine will drive."""
    engine = store.load(DocumentType.ENGINE).engine
    exchange = store.load(DocumentType.EXCHANGE).exchange
    markets = store.load(DocumentType.MARKETS).markets
    strategies = store.load(DocumentType.STRATEGIES).strategies
    email_alerts = store.load(DocumentType.EMAIL_ALERTS).email_alerts

    adapter = create_exchange_adapter(exchange, loader)
    loaded = build_strategies(strategies, markets, adapter, loader)
    logger.info("Assembled bot {} with {} active market(s)", engine.bot_id, len(loaded))
    return AssembledBot(engine=engine, exchange_adapter=adapter, strategies=loaded, email_alerts=email_alerts)
