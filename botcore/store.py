"""Config store: file locations, locking and the admin read/update paths.

Each document type has its own lock owned by the store instance, so a
load -> merge -> save sequence for one document never interleaves with another
request for the same document, while independent stores (for example in
tests) never contend.
"""
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .codec import ConfigCodec
from .documents import Document, DocumentType
from .errors import NotFoundError, StoreBusyError
from .logging_setup import logger, register_secret
from .merge import merge, secret_values, to_external

PathLike = Union[str, Path]


class DocumentCache:
    """Loaded documents keyed by path, valid while the file is unchanged on disk.

    Entries are stamped with the file's mtime and size; a changed file is
    reloaded. Callers always receive deep copies.
    """

    def __init__(self):
        self._entries: Dict[Path, Tuple[Tuple[int, int], Document]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _stamp(path: Path) -> Optional[Tuple[int, int]]:
        try:
            st = path.stat()
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def get(self, path: PathLike) -> Optional[Document]:
        path = Path(path)
        stamp = self._stamp(path)
        with self._lock:
            entry = self._entries.get(path)
        if entry is None or stamp is None or entry[0] != stamp:
            return None
        return entry[1].model_copy(deep=True)

    def put(self, path: PathLike, document: Document) -> None:
        path = Path(path)
        stamp = self._stamp(path)
        if stamp is None:
            return
        with self._lock:
            self._entries[path] = (stamp, document.model_copy(deep=True))

    def invalidate(self, path: Optional[PathLike] = None) -> None:
        """Drop one path, or everything when ``path`` is None."""
        with self._lock:
            if path is None:
                self._entries.clear()
            else:
                self._entries.pop(Path(path), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ConfigStore:
    """Owns where each configuration document lives and serializes access to it.

    Args:
        config_dir: Directory holding the documents
        codec: Codec used for reading/writing (default ConfigCodec())
        cache: Optional DocumentCache; None disables caching
        file_format: "yaml" or "json" for the default file names
        locations: Per-document-type path overrides
        lock_timeout: Seconds to wait for a document lock; None waits forever
    """

    def __init__(
        self,
        config_dir: PathLike,
        codec: Optional[ConfigCodec] = None,
        cache: Optional[DocumentCache] = None,
        file_format: str = "yaml",
        locations: Optional[Mapping[Union[str, DocumentType], PathLike]] = None,
        lock_timeout: Optional[float] = None,
    ):
        self.config_dir = Path(config_dir)
        self.codec = codec or ConfigCodec()
        self.cache = cache
        self.lock_timeout = lock_timeout

        self._locations: Dict[DocumentType, Path] = {}
        for doc_type in DocumentType:
            name = doc_type.filename
            if file_format == "json":
                name = Path(name).with_suffix(".json").name
            self._locations[doc_type] = self.config_dir / name
        for key, value in (locations or {}).items():
            self._locations[DocumentType(key)] = Path(value)

        self._locks = {doc_type: threading.RLock() for doc_type in DocumentType}

    def path_for(self, document_type: DocumentType) -> Path:
        return self._locations[document_type]

    @contextmanager
    def locked(self, document_type: DocumentType):
        """Hold the lock of one document type."""
        lock = self._locks[document_type]
        if self.lock_timeout is None:
            acquired = lock.acquire()
        else:
            acquired = lock.acquire(timeout=self.lock_timeout)
        if not acquired:
            raise StoreBusyError(
                f"Timed out after {self.lock_timeout}s waiting for {document_type.value} config lock",
                document_type=document_type.value,
                path=str(self.path_for(document_type)),
            )
        try:
            yield
        finally:
            lock.release()

    # --- Internal documents ---
    def load(self, document_type: DocumentType) -> Document:
        """Load the internal document (a private copy), e.g. at engine startup."""
        with self.locked(document_type):
            return self._load(document_type)

    def save(self, document_type: DocumentType, document) -> Document:
        """Replace the stored internal document wholesale."""
        with self.locked(document_type):
            return self._save(document_type, document)

    def exists(self, document_type: DocumentType) -> bool:
        return self.path_for(document_type).is_file()

    # --- External documents (admin surface) ---
    def get(self, document_type: DocumentType) -> Dict[str, Any]:
        return to_external(self.load(document_type))

    def update(self, document_type: DocumentType, external: Mapping) -> Dict[str, Any]:
        """Merge an external update into the stored document and persist it.

        Returns:
            External representation of what was persisted
        """
        with self.locked(document_type):
            current = self._load_or_none(document_type)
            merged = merge(document_type, current, external)
            saved = self._save(document_type, merged)
        return to_external(saved)

    # --- List documents (markets, strategies) ---
    def list_items(self, document_type: DocumentType) -> List[Dict[str, Any]]:
        self._require_list(document_type)
        return self.get(document_type)[document_type.root_key]

    def get_item(self, document_type: DocumentType, item_id: str) -> Dict[str, Any]:
        for item in self.list_items(document_type):
            if item.get("id") == item_id:
                return item
        raise self._missing_item(document_type, item_id)

    def save_item(self, document_type: DocumentType, external_item: Mapping) -> Dict[str, Any]:
        """Create (no id) or update (existing id) one item of a list document."""
        self._require_list(document_type)
        root = document_type.root_key
        item_id = external_item.get("id")

        with self.locked(document_type):
            current = self._load_or_none(document_type)
            items = to_external(current)[root] if current is not None else []

            if not item_id:
                new_item = {k: v for k, v in external_item.items() if k != "id"}
                logger.info("Creating {} item", document_type.value)
                items.append(new_item)
                position = len(items) - 1
            else:
                positions = [i for i, item in enumerate(items) if item.get("id") == item_id]
                if not positions:
                    raise self._missing_item(document_type, item_id)
                position = positions[0]
                logger.info("Updating {} item {}", document_type.value, item_id)
                items[position] = dict(external_item)

            saved = self._save(document_type, merge(document_type, current, {root: items}))
        return to_external(saved)[root][position]

    def delete_item(self, document_type: DocumentType, item_id: str) -> Dict[str, Any]:
        """Remove one item of a list document and return it."""
        self._require_list(document_type)
        root = document_type.root_key

        with self.locked(document_type):
            current = self._load(document_type)
            items = to_external(current)[root]
            removed = [item for item in items if item.get("id") == item_id]
            if not removed:
                raise self._missing_item(document_type, item_id)
            logger.info("Deleting {} item {}", document_type.value, item_id)
            remaining = [item for item in items if item.get("id") != item_id]
            self._save(document_type, merge(document_type, current, {root: remaining}))
        return removed[0]

    # --- Helpers (caller holds the lock) ---
    def _load(self, document_type: DocumentType) -> Document:
        path = self.path_for(document_type)
        if self.cache is not None:
            cached = self.cache.get(path)
            if cached is not None:
                return cached
        document = self.codec.load(document_type, path, document_type.schema_ref)
        for value in secret_values(document):
            register_secret(value)
        if self.cache is not None:
            self.cache.put(path, document)
        return document

    def _load_or_none(self, document_type: DocumentType) -> Optional[Document]:
        try:
            return self._load(document_type)
        except NotFoundError:
            # an unreadable file must not be bootstrapped over
            if self.path_for(document_type).exists():
                raise
            return None

    def _save(self, document_type: DocumentType, document) -> Document:
        path = self.path_for(document_type)
        document = self.codec.validate(document_type, document, path)
        if document_type.is_list:
            document = self._assign_ids(document_type, document)
        try:
            saved = self.codec.save(document_type, document, path)
        finally:
            if self.cache is not None:
                self.cache.invalidate(path)
        for value in secret_values(saved):
            register_secret(value)
        return saved

    @staticmethod
    def _assign_ids(document_type: DocumentType, document):
        items = getattr(document, document_type.root_key, None)
        for item in items or []:
            if not item.id:
                item.id = str(uuid.uuid4())
        return document

    @staticmethod
    def _require_list(document_type: DocumentType) -> None:
        if not document_type.is_list:
            raise ValueError(f"{document_type.value} config is not a list document")

    def _missing_item(self, document_type: DocumentType, item_id: str) -> NotFoundError:
        return NotFoundError(
            f"No {document_type.value} item with id '{item_id}' in {self.path_for(document_type)}",
            document_type=document_type.value,
            path=str(self.path_for(document_type)),
        )
