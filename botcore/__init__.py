"""
Trading bot configuration core.

Persistence and plugin loading for a self-hosted trading bot:
- Engine, exchange, markets, strategies and email-alert documents as YAML or JSON
- Schema and field validation via pydantic before anything is accepted or written
- Declared field sensitivity (public / write-protected / secret) on every document
- Secret-preserving merge of partial admin updates; credentials never leave the store
- Per-document locking around load -> merge -> save
- Exchange adapters and trading strategies created by name from an explicit registry,
  with each required capability checked separately
- Structured logging via loguru with secret redaction
- Configuration-driven (YAML)

Core Modules:
    documents: Document models, DocumentType and FieldSensitivity
    codec: Schema-validated YAML/JSON load/save
    merge: Secret-preserving merge and external representation
    store: ConfigStore, locking and document cache
    capabilities: TradingApi / ExchangeAdapter / TradingStrategy contracts
    plugins: Plugin registry and loader
    assembly: Startup wiring of adapter and strategies
    settings: Settings of the core itself
    errors: Exception hierarchy

Example:
    >>> from botcore.documents import DocumentType
    >>> from botcore.plugins import PluginLoader, PluginRegistry
    >>> from botcore.store import ConfigStore
    >>> from botcore.assembly import assemble_bot
    >>>
    >>> store = ConfigStore("config")
    >>> store.update(DocumentType.EMAIL_ALERTS, {"email_alerts": {"smtp_config": {"to_address": "ops@bxbot.io"}}})
    >>> registry = PluginRegistry()
    >>> registry.import_plugins(["acme_bot.plugins"])
    >>> bot = assemble_bot(store, PluginLoader(registry))
"""

__version__ = "0.1.0"
__all__ = [
    "documents",
    "codec",
    "merge",
    "store",
    "capabilities",
    "plugins",
    "assembly",
    "settings",
    "errors",
    "logging_setup",
]
