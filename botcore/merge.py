"""Secret-preserving merge of admin updates into stored documents.

Field handling is driven by the sensitivity declared on the document models:

    PUBLIC           value from the incoming document when supplied, else the
                     current value (partial updates are allowed)
    WRITE_PROTECTED  always the current value; a different incoming value is
                     ignored and logged
    SECRET           always the current value; never readable from outside

The result of :func:`merge` can only contain secret and write-protected values
that were already stored. The first-time path, where nothing is stored yet, is
:func:`bootstrap` and is logged as such.
"""
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel

from .codec import validate_document
from .documents import Document, DocumentType, FieldSensitivity, field_sensitivity, sub_document
from .errors import ConfigValidationError
from .logging_setup import logger


def to_external(document: Document) -> Dict[str, Any]:
    """Return the external (secret-free) representation of a document."""
    data = document.model_dump(mode="json", exclude_none=True)
    return _scrub(type(document), data)


def _scrub(model: Type[BaseModel], data: Mapping) -> Dict[str, Any]:
    out = {}
    for name, field in model.model_fields.items():
        if name not in data or field_sensitivity(field) is FieldSensitivity.SECRET:
            continue
        value = data[name]
        nested, is_list = sub_document(field)
        if nested is not None and value is not None:
            value = [_scrub(nested, item) for item in value] if is_list else _scrub(nested, value)
        out[name] = value
    return out


def bootstrap(document_type: DocumentType, incoming) -> Document:
    """Create the first internal document from a full incoming document.

    Secret and write-protected fields are taken from ``incoming`` when present.
    """
    logger.info("No stored {} config; bootstrapping from supplied document", document_type.value)
    data = _as_mapping(document_type, incoming)
    return validate_document(document_type, dict(data))


def merge(document_type: DocumentType, current: Optional[Document], incoming) -> Document:
    """Reconcile an external update with the current internal document.

    Args:
        document_type: Type of both documents
        current: Currently stored internal document, or None when nothing is stored
        incoming: External (possibly partial) document, as a mapping

    Returns:
        The validated internal document to persist
    """
    if current is None:
        return bootstrap(document_type, incoming)

    logger.info("Merging {} config update", document_type.value)
    data = _as_mapping(document_type, incoming)
    merged = _merge_fields(document_type.model, current.model_dump(), data, "")
    return validate_document(document_type, merged)


def _as_mapping(document_type: DocumentType, incoming) -> Mapping:
    if isinstance(incoming, BaseModel):
        return incoming.model_dump(exclude_unset=True)
    if not isinstance(incoming, Mapping):
        raise ConfigValidationError(
            f"{document_type.value} config update must be a mapping, got {type(incoming).__name__}",
            document_type=document_type.value,
        )
    return incoming


def _merge_fields(model: Type[BaseModel], current: Mapping, incoming: Mapping, location: str) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for name, field in model.model_fields.items():
        loc = f"{location}.{name}" if location else name
        sensitivity = field_sensitivity(field)

        if sensitivity is not FieldSensitivity.PUBLIC:
            if name in incoming:
                _log_ignored(loc, sensitivity, incoming[name] != current.get(name))
            if name in current:
                merged[name] = current[name]
            continue

        if name not in incoming:
            if name in current:
                merged[name] = current[name]
            continue

        value = incoming[name]
        nested, is_list = sub_document(field)
        if nested is not None:
            current_value = current.get(name)
            if value is None and not is_list and current_value is not None and _has_protected_fields(nested):
                logger.warning("Ignoring removal of {}: it holds protected fields", loc)
                value = current_value
            elif is_list and isinstance(value, list):
                value = _merge_items(nested, current_value or [], value, loc)
            elif not is_list and isinstance(value, Mapping):
                value = _merge_fields(nested, current_value or {}, value, loc)
        merged[name] = value
    return merged


def _merge_items(model: Type[BaseModel], current: List[Mapping], incoming: List, location: str) -> List:
    """Merge list items by ``id``; the incoming list decides membership and order."""
    by_id = {item.get("id"): item for item in current if item.get("id") is not None}
    merged = []
    for index, item in enumerate(incoming):
        if not isinstance(item, Mapping):
            # left for validation to reject
            merged.append(item)
            continue
        existing = by_id.get(item.get("id"), {})
        merged.append(_merge_fields(model, existing, item, f"{location}.{index}"))
    return merged


def _has_protected_fields(model: Type[BaseModel]) -> bool:
    for field in model.model_fields.values():
        if field_sensitivity(field) is not FieldSensitivity.PUBLIC:
            return True
        nested, _ = sub_document(field)
        if nested is not None and _has_protected_fields(nested):
            return True
    return False


def _log_ignored(location: str, sensitivity: FieldSensitivity, changed: bool) -> None:
    if sensitivity is FieldSensitivity.SECRET:
        logger.warning("Ignoring supplied value for secret field {}", location)
    elif changed:
        logger.info("Ignoring change to write-protected field {}", location)


def secret_values(document: Document) -> List[str]:
    """Collect every secret value held by an internal document."""
    return _collect_secrets(type(document), document.model_dump(mode="json"))


def _collect_secrets(model: Type[BaseModel], data: Mapping) -> List[str]:
    found: List[str] = []
    for name, field in model.model_fields.items():
        value = data.get(name)
        if value is None:
            continue
        if field_sensitivity(field) is FieldSensitivity.SECRET:
            if isinstance(value, Mapping):
                found.extend(str(v) for v in value.values() if v is not None)
            elif isinstance(value, list):
                found.extend(str(v) for v in value if v is not None)
            else:
                found.append(str(value))
            continue
        nested, is_list = sub_document(field)
        if nested is not None:
            for item in (value if is_list else [value]):
                if isinstance(item, Mapping):
                    found.extend(_collect_secrets(nested, item))
    return found
