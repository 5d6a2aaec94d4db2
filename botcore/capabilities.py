"""
Capability contracts that exchange adapters and trading strategies implement.

Plugins are checked against each contract separately, so a class may satisfy a
contract either by subclassing it or by being registered as a virtual
subclass (``TradingApi.register(MyAdapter)``).

All price/qty values use Decimal for precision and consistency.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class ExchangeNetworkError(Exception):
    """Transient failure talking to an exchange; the engine may retry."""


class TradingApiError(Exception):
    """Non-retryable failure reported by an exchange or adapter."""


class OrderType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Market:
    """A market the engine trades, e.g. BTC/USD."""
    id: str
    name: str
    base_currency: str
    counter_currency: str


@dataclass
class ExchangeApiConfig:
    """Exchange settings handed to ``ExchangeAdapter.init``.

    Carries the credentials, so instances must never be logged or returned to
    admin callers.
    """
    exchange_name: str
    exchange_adapter: str
    authentication_config: Dict[str, str] = field(default_factory=dict)
    connection_timeout: Optional[int] = None
    non_fatal_error_codes: List[int] = field(default_factory=list)
    non_fatal_error_messages: List[str] = field(default_factory=list)
    other_config: Dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"ExchangeApiConfig(exchange_name={self.exchange_name!r}, "
            f"exchange_adapter={self.exchange_adapter!r}, "
            f"authentication_config=<{len(self.authentication_config)} items>)"
        )


@dataclass
class StrategyConfigItems:
    """Optional per-strategy settings from strategies.yaml ``config_items``."""
    items: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.items.get(name, default)

    def __len__(self) -> int:
        return len(self.items)


class TradingApi(ABC):
    """Trading operations an exchange adapter offers to strategies.

    Every method may raise ExchangeNetworkError (retryable) or
    TradingApiError (fatal); the adapter decides which.
    """

    @abstractmethod
    def get_impl_name(self) -> str:
        pass

    @abstractmethod
    def get_market_orders(self, market_id: str) -> Dict[str, Any]:
        """Return the order book for a market.

        Returns:
            Dict with "buy" and "sell" lists of {price, quantity} entries
        """
        pass

    @abstractmethod
    def get_your_open_orders(self, market_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def create_order(self, market_id: str, order_type: OrderType, quantity: Decimal, price: Decimal) -> str:
        """Place an order.

        Args:
            market_id: Exchange market identifier
            order_type: OrderType.BUY or OrderType.SELL
            quantity: Amount of base currency as Decimal
            price: Limit price in counter currency as Decimal

        Returns:
            Exchange order ID
        """
        pass

    @abstractmethod
    def cancel_order(self, order_id: str, market_id: str) -> bool:
        """Cancel an open order; True if the exchange accepted the cancel."""
        pass

    @abstractmethod
    def get_latest_market_price(self, market_id: str) -> Decimal:
        pass

    @abstractmethod
    def get_balance_info(self) -> Dict[str, Any]:
        """Return available and on-hold balances keyed by currency."""
        pass

    @abstractmethod
    def get_percentage_fee_for_buy_order(self, market_id: str) -> Decimal:
        pass

    @abstractmethod
    def get_percentage_fee_for_sell_order(self, market_id: str) -> Decimal:
        pass


class ExchangeAdapter(ABC):
    """Lifecycle hook of an exchange adapter plugin."""

    @abstractmethod
    def init(self, config: ExchangeApiConfig) -> None:
        """Called once, before any TradingApi method, with the exchange settings."""
        pass


class TradingStrategy(ABC):
    """A trading strategy plugin, driven by the engine on a single thread."""

    @abstractmethod
    def init(self, trading_api: TradingApi, market: Market, config: StrategyConfigItems) -> None:
        """Called once before the first trade cycle."""
        pass

    @abstractmethod
    def execute(self) -> None:
        """Run one trade cycle."""
        pass
