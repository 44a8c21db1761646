"""
Versioned documentation store with an in-memory inverted index.

Documents are keyed by a generated id and unique by URL. Re-storing a URL is
a no-op when its content hash is unchanged; otherwise the prior state is
archived as a DocumentVersion and the patch version is bumped.
"""

import logging
import re
import uuid
from datetime import datetime, timedelta

from docweave.config import Settings, get_settings
from docweave.core import content_hash, make_snippet, stable_id, tokenize
from docweave.exceptions import StorageError
from docweave.models import (
    CrawledContent,
    DocumentMetadata,
    DocumentSearchResult,
    DocumentVersion,
    SearchOptions,
    StoredCodeExample,
    StoredDocument,
    StoredEndpoint,
    StoredSchema,
    StoreStats,
)
from docweave.models.content import utc_now
from docweave.utils import normalize_url

from .repository import DocumentRepository, FileDocumentRepository

logger = logging.getLogger(__name__)

INITIAL_VERSION = "1.0.0"


def bump_patch_version(version: str) -> str:
    """
    Increment the patch component of a ``MAJOR.MINOR.PATCH`` version.

    Examples:
        >>> bump_patch_version("1.0.9")
        '1.0.10'
    """
    try:
        major, minor, patch = (int(part) for part in version.split("."))
    except ValueError as e:
        raise ValueError(f"Invalid version label {version!r}") from e
    return f"{major}.{minor}.{patch + 1}"


def version_key(version: str) -> tuple[int, ...]:
    """Sort key comparing version labels numerically."""
    return tuple(int(part) for part in version.split("."))


def detect_changes(previous: StoredDocument, content: CrawledContent) -> list[str]:
    """
    Describe what differs between a stored document and newly fetched content.

    Returns:
        Human-readable change descriptions, content change first
    """
    changes = [f"Content updated ({len(previous.content)} -> {len(content.content)} characters)"]

    if previous.title != content.title:
        changes.append(f"Title changed from {previous.title!r} to {content.title!r}")

    old_endpoints = {f"{e.method.value} {e.path}" for e in previous.endpoints}
    new_endpoints = {f"{e.method.value} {e.path}" for e in content.endpoints}
    changes.extend(f"Added endpoint {e}" for e in sorted(new_endpoints - old_endpoints))
    changes.extend(f"Removed endpoint {e}" for e in sorted(old_endpoints - new_endpoints))

    old_schemas = {s.name for s in previous.schemas}
    new_schemas = {s.name for s in content.schemas}
    changes.extend(f"Added schema {s}" for s in sorted(new_schemas - old_schemas))
    changes.extend(f"Removed schema {s}" for s in sorted(old_schemas - new_schemas))

    if len(previous.code_examples) != len(content.code_examples):
        changes.append(
            f"Code examples changed from {len(previous.code_examples)} to {len(content.code_examples)}"
        )
    return changes


class DocumentationStore:
    """
    Content-addressed, versioned document store.

    All reads are served from memory; the repository is written before any
    in-memory state changes, so a failed write leaves the store untouched.

    Example:
        >>> store = DocumentationStore()
        >>> store.initialize()
        >>> doc = store.store(content)
        >>> results = store.search("assessment", SearchOptions(limit=5))
    """

    def __init__(
        self,
        repository: DocumentRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Args:
            repository: Persistence backend (defaults to JSON files under ``settings.store_path``)
            settings: Settings instance (defaults to the cached settings)
        """
        self.settings = settings or get_settings()
        self.repository = repository or FileDocumentRepository(self.settings.store_path)

        self._documents: dict[str, StoredDocument] = {}
        self._url_index: dict[str, str] = {}  # normalized URL -> document id
        self._versions: dict[str, list[DocumentVersion]] = {}
        self._searchable: dict[str, str] = {}
        self._search_index: dict[str, set[str]] = {}
        self.initialized = False

    def initialize(self) -> None:
        """Load documents and histories, then rebuild the inverted index."""
        self._documents.clear()
        self._url_index.clear()
        self._versions.clear()
        self._searchable.clear()
        self._search_index.clear()

        for document in self.repository.list_documents():
            self._put(document)
        for document_id, history in self.repository.list_histories().items():
            if document_id in self._documents:
                self._versions[document_id] = history

        self.initialized = True
        logger.info(
            f"Documentation store loaded {len(self._documents)} documents, "
            f"{len(self._search_index)} index terms"
        )

    # Writes

    def store(self, content: CrawledContent) -> StoredDocument:
        """
        Persist fetched content, creating or versioning its document.

        Args:
            content: Fetched content

        Returns:
            The new, updated or unchanged StoredDocument

        Raises:
            StorageError: If persisting failed; in-memory state is unchanged
        """
        new_hash = content_hash(content.content)
        existing = self.get_document_by_url(content.url)

        if existing is None:
            now = utc_now()
            document = self._build_document(
                uuid.uuid4().hex, content, new_hash, INITIAL_VERSION, crawled_at=now, last_updated=now
            )
            self.repository.save_document(document)
            self._put(document)
            logger.info(f"Stored new document {document.id} for {content.url}")
            return document

        if existing.metadata.content_hash == new_hash:
            logger.debug(f"Content unchanged for {content.url}, keeping version {existing.metadata.version}")
            return existing

        history = self._versions.get(existing.id, [])
        entry = DocumentVersion(
            version=existing.metadata.version,
            timestamp=existing.metadata.last_updated,
            content_hash=existing.metadata.content_hash,
            changes=detect_changes(existing, content),
            previous_version=history[-1].version if history else None,
        )
        new_history = [*history, entry]
        updated = self._build_document(
            existing.id,
            content,
            new_hash,
            bump_patch_version(existing.metadata.version),
            crawled_at=existing.metadata.crawled_at,
            last_updated=utc_now(),
        )

        try:
            self.repository.save_snapshot(existing)
            self.repository.save_history(existing.id, new_history)
            self.repository.save_document(updated)
        except StorageError:
            self._roll_back_update(existing, history)
            raise

        self._remove(existing.id)
        self._put(updated)
        self._versions[existing.id] = new_history
        logger.info(
            f"Updated document {existing.id} for {content.url}: "
            f"{existing.metadata.version} -> {updated.metadata.version}"
        )
        return updated

    def store_many(self, contents: list[CrawledContent]) -> list[StoredDocument]:
        """Store each item, skipping the ones whose persistence fails."""
        stored = []
        for content in contents:
            try:
                stored.append(self.store(content))
            except StorageError as e:
                logger.error(f"Failed to store {content.url}: {e}")
        return stored

    def delete_document(self, document_id: str) -> bool:
        """
        Delete a document, its version history, snapshots and index terms.

        Returns:
            True if the document existed
        """
        if document_id not in self._documents:
            return False

        self.repository.delete_document(document_id)
        self.repository.delete_history(document_id)
        for version in self.repository.list_snapshots(document_id):
            self.repository.delete_snapshot(document_id, version)

        self._remove(document_id)
        self._versions.pop(document_id, None)
        logger.info(f"Deleted document {document_id}")
        return True

    def clear(self) -> int:
        """Delete every document. Returns the number deleted."""
        return sum(1 for document_id in list(self._documents) if self.delete_document(document_id))

    def cleanup(self, older_than_days: int = 30) -> int:
        """
        Prune archived snapshots and history entries older than the cutoff.

        Returns:
            Number of versions removed
        """
        cutoff = utc_now() - timedelta(days=older_than_days)
        removed = 0

        for document_id, history in list(self._versions.items()):
            old = [v for v in history if v.timestamp < cutoff]
            if not old:
                continue
            for version in old:
                try:
                    self.repository.delete_snapshot(document_id, version.version)
                    removed += 1
                except StorageError as e:
                    logger.warning(f"Failed to clean up version {version.version} of {document_id}: {e}")

            remaining = [v for v in history if v.timestamp >= cutoff]
            self.repository.save_history(document_id, remaining)
            self._versions[document_id] = remaining

        logger.info(f"Cleaned up {removed} old document versions")
        return removed

    # Reads

    def get_document(self, document_id: str) -> StoredDocument | None:
        return self._documents.get(document_id)

    def get_document_by_url(self, url: str) -> StoredDocument | None:
        document_id = self._url_index.get(normalize_url(url))
        return self._documents.get(document_id) if document_id else None

    def get_documents_by_source(self, source: str) -> list[StoredDocument]:
        return [doc for doc in self._documents.values() if doc.source == source]

    def list_documents(self) -> list[StoredDocument]:
        return list(self._documents.values())

    def get_document_versions(self, document_id: str) -> list[DocumentVersion]:
        """Version history of a document, oldest first."""
        return list(self._versions.get(document_id, []))

    def get_document_at_version(self, document_id: str, version: str) -> StoredDocument | None:
        """The current document if ``version`` is current, else its archived snapshot."""
        current = self._documents.get(document_id)
        if current is not None and current.metadata.version == version:
            return current
        return self.repository.load_snapshot(document_id, version)

    def search(self, query: str, options: SearchOptions | None = None) -> list[DocumentSearchResult]:
        """
        Rank documents against a free-text query.

        Candidates come from the inverted index (union of token hits, or the
        intersection with ``match_all``), are filtered by source and
        last-updated range, then scored: 10 if the whole query occurs in the
        document text, plus 2 per occurrence of each query token.

        Args:
            query: Free-text query
            options: Filters and pagination

        Returns:
            Results sorted by descending score
        """
        options = options or SearchOptions()
        tokens = list(dict.fromkeys(tokenize(query)))
        if not tokens:
            return []

        hits = [self._search_index.get(token, set()) for token in tokens]
        candidates = set.intersection(*hits) if options.match_all else set.union(*hits)

        phrase = query.strip().lower()
        results: list[DocumentSearchResult] = []
        for document_id in candidates:
            document = self._documents[document_id]
            if options.sources and document.source not in options.sources:
                continue
            if options.date_from and document.metadata.last_updated < options.date_from:
                continue
            if options.date_to and document.metadata.last_updated > options.date_to:
                continue

            text = self._searchable[document_id]
            score = 10.0 if phrase and phrase in text else 0.0
            for token in tokens:
                score += 2 * len(re.findall(re.escape(token), text))
            if score <= 0:
                continue

            results.append(
                DocumentSearchResult(
                    document=document,
                    score=score,
                    matched_fields=self._matched_fields(document, tokens),
                    snippet=self._snippet(document, tokens),
                )
            )

        results.sort(key=lambda result: (-result.score, result.document.url))
        return results[options.offset : options.offset + options.limit]

    def get_stats(self) -> StoreStats:
        stats = StoreStats()
        for document in self._documents.values():
            stats.total_documents += 1
            stats.total_endpoints += len(document.endpoints)
            stats.total_schemas += len(document.schemas)
            stats.total_code_examples += len(document.code_examples)
            stats.source_breakdown[document.source] = stats.source_breakdown.get(document.source, 0) + 1
            stats.storage_size += document.metadata.size
            if stats.last_updated is None or document.metadata.last_updated > stats.last_updated:
                stats.last_updated = document.metadata.last_updated
        return stats

    # Internals

    def _build_document(
        self,
        document_id: str,
        content: CrawledContent,
        hash_: str,
        version: str,
        crawled_at: datetime,
        last_updated: datetime,
    ) -> StoredDocument:
        return StoredDocument(
            id=document_id,
            url=content.url,
            source=content.source,
            title=content.title,
            content=content.content,
            metadata=DocumentMetadata(
                content_hash=hash_,
                version=version,
                format=content.format,
                size=len(content.content.encode("utf-8")),
                crawled_at=crawled_at,
                last_updated=last_updated,
                extra=content.metadata,
            ),
            endpoints=[
                StoredEndpoint(
                    **e.model_dump(),
                    id=stable_id(document_id, "endpoint", e.method.value, e.path),
                    document_id=document_id,
                )
                for e in content.endpoints
            ],
            schemas=[
                StoredSchema(**s.model_dump(), id=stable_id(document_id, "schema", s.name), document_id=document_id)
                for s in content.schemas
            ],
            code_examples=[
                StoredCodeExample(
                    **c.model_dump(),
                    id=stable_id(document_id, "example", c.language, c.code),
                    document_id=document_id,
                )
                for c in content.code_examples
            ],
        )

    def _put(self, document: StoredDocument) -> None:
        self._documents[document.id] = document
        self._url_index[normalize_url(document.url)] = document.id
        text = self._searchable_text(document)
        self._searchable[document.id] = text
        for token in set(tokenize(text)):
            self._search_index.setdefault(token, set()).add(document.id)

    def _remove(self, document_id: str) -> None:
        document = self._documents.pop(document_id, None)
        if document is None:
            return
        url_key = normalize_url(document.url)
        if self._url_index.get(url_key) == document_id:
            del self._url_index[url_key]
        text = self._searchable.pop(document_id, "")
        for token in set(tokenize(text)):
            ids = self._search_index.get(token)
            if ids is None:
                continue
            ids.discard(document_id)
            if not ids:
                del self._search_index[token]

    def _roll_back_update(self, previous: StoredDocument, history: list[DocumentVersion]) -> None:
        try:
            self.repository.delete_snapshot(previous.id, previous.metadata.version)
            self.repository.save_history(previous.id, history)
        except StorageError as e:
            logger.error(f"Could not roll back update of {previous.id}: {e}")

    @staticmethod
    def _searchable_text(document: StoredDocument) -> str:
        parts = [document.title, document.source, document.content]
        parts.extend(
            f"{e.method.value} {e.path} {e.summary or ''} {e.description or ''}" for e in document.endpoints
        )
        parts.extend(f"{s.name} {s.description or ''}" for s in document.schemas)
        parts.extend(f"{c.language} {c.description or ''}" for c in document.code_examples)
        return " ".join(parts).lower()

    @staticmethod
    def _matched_fields(document: StoredDocument, tokens: list[str]) -> list[str]:
        fields = {
            "title": document.title.lower(),
            "content": document.content.lower(),
            "source": document.source.lower(),
            "endpoints": " ".join(
                f"{e.path} {e.summary or ''} {e.description or ''}" for e in document.endpoints
            ).lower(),
            "schemas": " ".join(s.name for s in document.schemas).lower(),
        }
        return [name for name, text in fields.items() if any(token in text for token in tokens)]

    @staticmethod
    def _snippet(document: StoredDocument, tokens: list[str]) -> str:
        content_lower = document.content.lower()
        term = next((token for token in tokens if token in content_lower), tokens[0])
        return make_snippet(document.content, term)
