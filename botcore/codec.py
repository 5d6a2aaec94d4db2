"""Load and save configuration documents as YAML or JSON.

The encoding follows the file suffix: ``.json`` files are read and written as
JSON, anything else (``.yaml``/``.yml``) as YAML. Both carry exactly the same
fields, so a document saved in one form loads identically from the other.

Validation happens in two layers:
    - structural, when a schema reference is given: every key must be a known
      field of the referenced schema and sub-documents must be mappings/lists;
    - field level, always: the pydantic model of the document type (required
      fields, numeric bounds, email syntax, cross-field rules).

Only the document type and path are ever logged.
"""
import contextlib
import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Type, Union

import pydantic
import yaml
from pydantic import BaseModel

from .documents import Document, DocumentType, sub_document
from .errors import ConfigValidationError, NotFoundError, ParseError, WriteError
from .logging_setup import logger

PathLike = Union[str, Path]

JSON_SUFFIXES = (".json",)


def file_format(path: PathLike) -> str:
    """Return ``"json"`` or ``"yaml"`` for a config file path."""
    return "json" if Path(path).suffix.lower() in JSON_SUFFIXES else "yaml"


def check_structure(model: Type[BaseModel], data, location: str = "") -> List[Tuple[str, str]]:
    """Compare raw parsed data with a schema model, returning ``(location, problem)`` pairs."""
    where = location or "<root>"
    if not isinstance(data, Mapping):
        return [(where, "expected a mapping")]

    problems = []
    for key in data:
        if key not in model.model_fields:
            problems.append((_join(location, key), "unknown field"))

    for name, field in model.model_fields.items():
        value = data.get(name)
        if value is None:
            continue
        nested, is_list = sub_document(field)
        if nested is None:
            continue
        loc = _join(location, name)
        if is_list:
            if not isinstance(value, list):
                problems.append((loc, "expected a list"))
                continue
            for index, item in enumerate(value):
                problems.extend(check_structure(nested, item, _join(loc, index)))
        else:
            problems.extend(check_structure(nested, value, loc))
    return problems


def _join(location: str, key) -> str:
    return f"{location}.{key}" if location else str(key)


def _describe(problems: List[Tuple[str, str]]) -> str:
    return "; ".join(f"{loc}: {msg}" for loc, msg in problems)


def validate_document(document_type: DocumentType, data, path: Optional[PathLike] = None) -> Document:
    """Build the typed document, translating pydantic errors into ConfigValidationError."""
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return document_type.model.model_validate(data)
    except pydantic.ValidationError as e:
        # keep locations and messages only; input values may be credentials
        problems = [
            (".".join(str(part) for part in err["loc"]) or "<root>", err["msg"])
            for err in e.errors(include_url=False, include_input=False)
        ]
        where = f" {path}" if path is not None else ""
        raise ConfigValidationError(
            f"Invalid {document_type.value} config{where}: {_describe(problems)}",
            document_type=document_type.value,
            path=str(path) if path is not None else None,
            errors=problems,
        ) from None


class ConfigCodec:
    """Schema-validated reader/writer for configuration documents.

    Args:
        schemas: Mapping of schema reference name -> pydantic model used for
                 structural checks. Defaults to one entry per document type,
                 keyed by ``DocumentType.schema_ref`` (e.g. ``"engine"``).
    """

    def __init__(self, schemas: Optional[Mapping[str, Type[BaseModel]]] = None):
        if schemas is None:
            schemas = {doc_type.schema_ref: doc_type.model for doc_type in DocumentType}
        self.schemas: Dict[str, Type[BaseModel]] = dict(schemas)

    # --- Loading ---
    def load(self, document_type: DocumentType, path: PathLike, schema_ref: str = "") -> Document:
        """Read, parse and validate a document.

        Raises:
            NotFoundError: file missing or unreadable
            ParseError: content is not YAML/JSON or not a mapping
            ConfigValidationError: schema or field validation failed
        """
        path = Path(path)
        logger.info("Loading {} config from {}", document_type.value, path)
        data = self.read_raw(document_type, path)

        if schema_ref:
            schema = self.schemas.get(schema_ref)
            if schema is None:
                raise ConfigValidationError(
                    f"Unknown schema reference '{schema_ref}' for {document_type.value} config {path}",
                    document_type=document_type.value,
                    path=str(path),
                )
            problems = check_structure(schema, data)
            if problems:
                raise ConfigValidationError(
                    f"{document_type.value} config {path} does not match schema '{schema_ref}': {_describe(problems)}",
                    document_type=document_type.value,
                    path=str(path),
                    errors=problems,
                )

        document = self.validate(document_type, data, path)
        logger.debug("Loaded {} config from {}", document_type.value, path)
        return document

    def read_raw(self, document_type: DocumentType, path: PathLike) -> dict:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise NotFoundError(
                f"Failed to find or read {document_type.value} config {path}: {e.strerror or type(e).__name__}",
                document_type=document_type.value,
                path=str(path),
            ) from e
        except UnicodeDecodeError as e:
            raise ParseError(
                f"{document_type.value} config {path} is not valid UTF-8 text",
                document_type=document_type.value,
                path=str(path),
            ) from e

        try:
            if file_format(path) == "json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ParseError(
                f"Failed to parse {document_type.value} config {path} as {file_format(path).upper()}",
                document_type=document_type.value,
                path=str(path),
            ) from e

        if not isinstance(data, dict):
            raise ParseError(
                f"{document_type.value} config {path} must contain a mapping at the top level",
                document_type=document_type.value,
                path=str(path),
            )
        return data

    def validate(self, document_type: DocumentType, data, path: Optional[PathLike] = None) -> Document:
        return validate_document(document_type, data, path)

    # --- Saving ---
    def dumps(self, document: Document, fmt: str = "yaml") -> str:
        data = document.model_dump(mode="json", exclude_none=True)
        if fmt == "json":
            return json.dumps(data, indent=2) + "\n"
        return "---\n" + yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def save(self, document_type: DocumentType, document, path: PathLike) -> Document:
        """Validate and write a document, replacing the file atomically.

        Nothing is written when validation fails.

        Raises:
            ConfigValidationError: document is invalid
            WriteError: destination directory missing or not writable
        """
        path = Path(path)
        logger.info("Saving {} config to {}", document_type.value, path)
        validated = self.validate(document_type, document, path)
        text = self.dumps(validated, file_format(path))

        if not path.parent.is_dir():
            raise WriteError(
                f"Cannot save {document_type.value} config: directory {path.parent} does not exist",
                document_type=document_type.value,
                path=str(path),
            )
        self._write_atomic(document_type, path, text)
        return validated

    def write_schema(self, document_type: DocumentType, path: PathLike) -> None:
        """Write the JSON Schema of a document type (field sensitivity included)."""
        path = Path(path)
        schema = document_type.model.model_json_schema()
        logger.info("Writing {} schema to {}", document_type.value, path)
        if not path.parent.is_dir():
            raise WriteError(
                f"Cannot write {document_type.value} schema: directory {path.parent} does not exist",
                document_type=document_type.value,
                path=str(path),
            )
        self._write_atomic(document_type, path, json.dumps(schema, indent=2) + "\n")

    @staticmethod
    def _write_atomic(document_type: DocumentType, path: Path, text: str) -> None:
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                f.write(text)
            tmp.replace(path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise WriteError(
                f"Failed to write {document_type.value} config {path}: {e.strerror or type(e).__name__}",
                document_type=document_type.value,
                path=str(path),
            ) from e
