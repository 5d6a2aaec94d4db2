"""Exception hierarchy for configuration persistence and plugin loading.

Messages name the document type, file path or plugin type involved and never
carry configuration values, so they are safe to surface to admin callers.
"""
from typing import List, Optional


class BotConfigError(Exception):
    """Base class for every error raised by botcore."""


class DocumentError(BotConfigError):
    """A configuration document could not be loaded, validated or saved."""

    def __init__(self, message: str, document_type: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message)
        self.document_type = document_type
        self.path = path


class NotFoundError(DocumentError):
    """Config file (or list item) does not exist or cannot be read."""


class ParseError(DocumentError):
    """File content is not valid YAML/JSON, or is not a mapping."""


class ConfigValidationError(DocumentError):
    """Document parsed but failed structural or field validation.

    ``errors`` holds ``(location, message)`` pairs. Input values are
    deliberately not kept.
    """

    def __init__(self, message: str, document_type: Optional[str] = None, path: Optional[str] = None, errors: Optional[List[tuple]] = None):
        super().__init__(message, document_type=document_type, path=path)
        self.errors = errors or []


class WriteError(DocumentError):
    """Document could not be persisted."""


class StoreBusyError(DocumentError):
    """Document lock could not be acquired within the configured timeout."""


class PluginError(BotConfigError):
    """A plugin type could not be resolved into a usable instance."""

    def __init__(self, message: str, type_name: str):
        super().__init__(message)
        self.type_name = type_name


class TypeNotFoundError(PluginError):
    pass


class InstantiationError(PluginError):
    pass


class CapabilityMismatchError(PluginError):
    def __init__(self, message: str, type_name: str, capability: str):
        super().__init__(message, type_name)
        self.capability = capability


class AssemblyError(BotConfigError):
    """Loaded documents are inconsistent (duplicate market, unknown strategy)."""
