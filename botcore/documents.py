"""Configuration document models.

Each configuration domain is one pydantic document whose fields declare a
:class:`FieldSensitivity`. The declaration drives what the admin surface may
read (``to_external``) and what it may change (``merge``); nothing else in the
package hard-codes which fields are credentials.

Example engine.yaml:
    engine:
      bot_id: avro-707_1
      bot_name: Avro 707
      emergency_stop_currency: BTC
      emergency_stop_balance: '0.5'
      trade_cycle_interval: 60
"""
from decimal import Decimal
from enum import Enum
from inspect import isclass
from typing import Dict, List, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class FieldSensitivity(str, Enum):
    PUBLIC = "public"
    WRITE_PROTECTED = "write-protected"  # readable, never changed by updates
    SECRET = "secret"  # never leaves the internal document


def sensitive(sensitivity: FieldSensitivity, default=PydanticUndefined, **kwargs) -> FieldInfo:
    """Declare a pydantic field with a non-public sensitivity."""
    return Field(default, json_schema_extra={"sensitivity": sensitivity.value}, **kwargs)


def field_sensitivity(field: FieldInfo) -> FieldSensitivity:
    extra = field.json_schema_extra
    if isinstance(extra, dict) and extra.get("sensitivity"):
        return FieldSensitivity(extra["sensitivity"])
    return FieldSensitivity.PUBLIC


def sub_document(field: FieldInfo) -> Tuple[Optional[Type[BaseModel]], bool]:
    """Return ``(model, is_list)`` when a field holds nested documents."""
    return _unwrap(field.annotation)


def _unwrap(annotation) -> Tuple[Optional[Type[BaseModel]], bool]:
    origin = get_origin(annotation)
    if origin is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return _unwrap(args[0])
        return None, False
    if origin is list:
        inner = get_args(annotation)[0]
        if isclass(inner) and issubclass(inner, BaseModel):
            return inner, True
        return None, False
    if isclass(annotation) and issubclass(annotation, BaseModel):
        return annotation, False
    return None, False


class ConfigModel(BaseModel):
    """Common pydantic settings for every document section."""
    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)


# --- Engine ---

class EngineConfig(ConfigModel):
    bot_id: str = sensitive(FieldSensitivity.WRITE_PROTECTED, min_length=1)
    bot_name: str = Field(..., min_length=1)
    emergency_stop_currency: str = Field(..., min_length=1)
    emergency_stop_balance: Decimal = Field(Decimal("0"), ge=0)
    trade_cycle_interval: int = Field(..., ge=1)


class EngineDocument(ConfigModel):
    engine: EngineConfig


# --- Exchange ---

class NetworkPolicy(ConfigModel):
    """Timeout and transient-failure classification handed to the adapter as-is."""
    connection_timeout: int = Field(30, ge=1)
    non_fatal_error_codes: List[int] = Field(default_factory=list)
    non_fatal_error_messages: List[str] = Field(default_factory=list)


class ExchangeConfig(ConfigModel):
    name: str = Field(..., min_length=1)
    adapter: str = Field(..., min_length=1)
    authentication_config: Dict[str, str] = sensitive(FieldSensitivity.SECRET, default_factory=dict)
    network_config: Optional[NetworkPolicy] = None
    other_config: Dict[str, str] = Field(default_factory=dict)


class ExchangeDocument(ConfigModel):
    exchange: ExchangeConfig


# --- Markets ---

class MarketConfig(ConfigModel):
    id: Optional[str] = sensitive(FieldSensitivity.WRITE_PROTECTED, None)
    name: str = Field(..., min_length=1)
    base_currency: str = Field(..., min_length=1)
    counter_currency: str = Field(..., min_length=1)
    enabled: bool = False
    trading_strategy_id: str = Field(..., min_length=1)


def _check_unique_ids(items, kind: str) -> None:
    seen = set()
    for item in items:
        if item.id is None:
            continue
        if item.id in seen:
            raise ValueError(f"duplicate {kind} id '{item.id}'")
        seen.add(item.id)


class MarketsDocument(ConfigModel):
    markets: List[MarketConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self):
        _check_unique_ids(self.markets, "market")
        return self


# --- Strategies ---

class StrategyConfig(ConfigModel):
    id: Optional[str] = sensitive(FieldSensitivity.WRITE_PROTECTED, None)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    class_name: str = Field(..., min_length=1)
    config_items: Dict[str, str] = Field(default_factory=dict)


class StrategiesDocument(ConfigModel):
    strategies: List[StrategyConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self):
        _check_unique_ids(self.strategies, "strategy")
        return self


# --- Email alerts ---

class SmtpConfig(ConfigModel):
    host: str = sensitive(FieldSensitivity.WRITE_PROTECTED, min_length=1)
    tls_port: int = sensitive(FieldSensitivity.WRITE_PROTECTED, gt=0)
    account_username: str = sensitive(FieldSensitivity.WRITE_PROTECTED, min_length=1)
    account_password: str = sensitive(FieldSensitivity.SECRET, min_length=1)
    from_address: str = Field(..., pattern=EMAIL_PATTERN)
    to_address: str = Field(..., pattern=EMAIL_PATTERN)


class EmailAlertsConfig(ConfigModel):
    enabled: bool = False
    smtp_config: Optional[SmtpConfig] = None

    @model_validator(mode="after")
    def _smtp_required_when_enabled(self):
        if self.enabled and self.smtp_config is None:
            raise ValueError("smtp_config is required when email alerts are enabled")
        return self


class EmailAlertsDocument(ConfigModel):
    email_alerts: EmailAlertsConfig


class DocumentType(str, Enum):
    ENGINE = "engine"
    EXCHANGE = "exchange"
    MARKETS = "markets"
    STRATEGIES = "strategies"
    EMAIL_ALERTS = "email_alerts"

    @property
    def model(self) -> Type[BaseModel]:
        return _MODELS[self]

    @property
    def filename(self) -> str:
        return _FILENAMES[self]

    @property
    def schema_ref(self) -> str:
        return self.value

    @property
    def root_key(self) -> str:
        """Top-level key of the document; for list documents, the list field."""
        return self.value

    @property
    def is_list(self) -> bool:
        return self in (DocumentType.MARKETS, DocumentType.STRATEGIES)


_MODELS: Dict[DocumentType, Type[BaseModel]] = {
    DocumentType.ENGINE: EngineDocument,
    DocumentType.EXCHANGE: ExchangeDocument,
    DocumentType.MARKETS: MarketsDocument,
    DocumentType.STRATEGIES: StrategiesDocument,
    DocumentType.EMAIL_ALERTS: EmailAlertsDocument,
}

_FILENAMES: Dict[DocumentType, str] = {
    DocumentType.ENGINE: "engine.yaml",
    DocumentType.EXCHANGE: "exchange.yaml",
    DocumentType.MARKETS: "markets.yaml",
    DocumentType.STRATEGIES: "strategies.yaml",
    DocumentType.EMAIL_ALERTS: "email-alerts.yaml",
}

Document = Union[EngineDocument, ExchangeDocument, MarketsDocument, StrategiesDocument, EmailAlertsDocument]
