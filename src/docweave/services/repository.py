"""
Persistence backends for the documentation store.

Layout of :class:`FileDocumentRepository`::

    <root>/documents/<id>.json           current document
    <root>/versions/<id>.json            version history (list of DocumentVersion)
    <root>/versions/<id>-<version>.json  archived snapshot of a prior state
"""

import logging
import os
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from docweave.exceptions import StorageError
from docweave.models import DocumentVersion, StoredDocument

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER = TypeAdapter(list[DocumentVersion])


class DocumentRepository(Protocol):
    """Load/save/list/delete operations over documents, histories and snapshots"""

    def list_documents(self) -> list[StoredDocument]: ...

    def save_document(self, document: StoredDocument) -> None: ...

    def delete_document(self, document_id: str) -> None: ...

    def list_histories(self) -> dict[str, list[DocumentVersion]]: ...

    def save_history(self, document_id: str, history: list[DocumentVersion]) -> None: ...

    def delete_history(self, document_id: str) -> None: ...

    def save_snapshot(self, document: StoredDocument) -> None: ...

    def load_snapshot(self, document_id: str, version: str) -> StoredDocument | None: ...

    def list_snapshots(self, document_id: str) -> list[str]: ...

    def delete_snapshot(self, document_id: str, version: str) -> None: ...


class FileDocumentRepository:
    """JSON files on local disk, one file per document, history and snapshot"""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.documents_path = self.root / "documents"
        self.versions_path = self.root / "versions"
        try:
            self.documents_path.mkdir(parents=True, exist_ok=True)
            self.versions_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Could not create storage directories under {self.root}: {e}") from e

    # Documents

    def list_documents(self) -> list[StoredDocument]:
        documents = []
        for path in sorted(self.documents_path.glob("*.json")):
            try:
                documents.append(StoredDocument.model_validate_json(self._read(path)))
            except ValidationError as e:
                logger.error(f"Skipping unreadable document file {path.name}: {e}")
        return documents

    def save_document(self, document: StoredDocument) -> None:
        self._write(self.documents_path / f"{document.id}.json", document.model_dump_json(indent=2))

    def delete_document(self, document_id: str) -> None:
        self._unlink(self.documents_path / f"{document_id}.json")

    # Version histories

    def list_histories(self) -> dict[str, list[DocumentVersion]]:
        histories: dict[str, list[DocumentVersion]] = {}
        for path in sorted(self.versions_path.glob("*.json")):
            if not self._is_history_file(path):
                continue
            try:
                histories[path.stem] = _HISTORY_ADAPTER.validate_json(self._read(path))
            except ValidationError as e:
                logger.error(f"Skipping unreadable version history {path.name}: {e}")
        return histories

    def save_history(self, document_id: str, history: list[DocumentVersion]) -> None:
        payload = _HISTORY_ADAPTER.dump_json(history, indent=2).decode("utf-8")
        self._write(self.versions_path / f"{document_id}.json", payload)

    def delete_history(self, document_id: str) -> None:
        self._unlink(self.versions_path / f"{document_id}.json")

    # Archived snapshots

    def save_snapshot(self, document: StoredDocument) -> None:
        self._write(self._snapshot_path(document.id, document.metadata.version), document.model_dump_json(indent=2))

    def load_snapshot(self, document_id: str, version: str) -> StoredDocument | None:
        path = self._snapshot_path(document_id, version)
        if not path.exists():
            return None
        try:
            return StoredDocument.model_validate_json(self._read(path))
        except ValidationError as e:
            raise StorageError(f"Corrupt snapshot {path.name}: {e}") from e

    def list_snapshots(self, document_id: str) -> list[str]:
        prefix = f"{document_id}-"
        return sorted(
            path.stem[len(prefix):] for path in self.versions_path.glob(f"{prefix}*.json")
        )

    def delete_snapshot(self, document_id: str, version: str) -> None:
        self._unlink(self._snapshot_path(document_id, version))

    # Helpers

    def _snapshot_path(self, document_id: str, version: str) -> Path:
        return self.versions_path / f"{document_id}-{version}.json"

    @staticmethod
    def _is_history_file(path: Path) -> bool:
        # Snapshot names carry a version suffix after the id
        return "-" not in path.stem

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    @staticmethod
    def _write(path: Path, payload: str) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e

    @staticmethod
    def _unlink(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Could not delete {path}: {e}") from e


class InMemoryDocumentRepository:
    """Dictionary-backed repository, used in tests and ephemeral runs"""

    def __init__(self) -> None:
        self.documents: dict[str, StoredDocument] = {}
        self.histories: dict[str, list[DocumentVersion]] = {}
        self.snapshots: dict[tuple[str, str], StoredDocument] = {}

    def list_documents(self) -> list[StoredDocument]:
        return [doc.model_copy(deep=True) for doc in self.documents.values()]

    def save_document(self, document: StoredDocument) -> None:
        self.documents[document.id] = document.model_copy(deep=True)

    def delete_document(self, document_id: str) -> None:
        self.documents.pop(document_id, None)

    def list_histories(self) -> dict[str, list[DocumentVersion]]:
        return {doc_id: list(history) for doc_id, history in self.histories.items()}

    def save_history(self, document_id: str, history: list[DocumentVersion]) -> None:
        self.histories[document_id] = list(history)

    def delete_history(self, document_id: str) -> None:
        self.histories.pop(document_id, None)

    def save_snapshot(self, document: StoredDocument) -> None:
        self.snapshots[(document.id, document.metadata.version)] = document.model_copy(deep=True)

    def load_snapshot(self, document_id: str, version: str) -> StoredDocument | None:
        snapshot = self.snapshots.get((document_id, version))
        return snapshot.model_copy(deep=True) if snapshot else None

    def list_snapshots(self, document_id: str) -> list[str]:
        return sorted(version for doc_id, version in self.snapshots if doc_id == document_id)

    def delete_snapshot(self, document_id: str, version: str) -> None:
        self.snapshots.pop((document_id, version), None)
