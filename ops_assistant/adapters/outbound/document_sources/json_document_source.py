"""Document source backed by a JSON export file."""

import asyncio
import json
import logging
import threading
from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from ....common.utils import clean_text
from ....core.domain import Document, SourceKind
from ....core.domain.exceptions import SourceUnavailableError
from ....core.ports.document_source_port import DocumentSourcePort

logger = logging.getLogger(__name__)


class DocumentRecord(BaseModel):
    """One document as stored in a source export file."""

    id: str = Field(..., min_length=1, description="Stable identifier within the source")
    title: str = Field(..., description="Title or name shown to the user")
    content: str = Field(default="", description="Primary searchable text")
    keywords: list[str] = Field(default_factory=list, description="Curated search tags")
    embedding: list[float] = Field(default_factory=list, description="Precomputed embedding")
    source_link: str | None = Field(
        default=None,
        validation_alias=AliasChoices("source_link", "url", "link"),
        description="Link to the page or ticket form",
    )
    category: str | None = Field(default=None, description="Domain tag such as SAP or Network")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v

    @field_validator("title", "content")
    @classmethod
    def clean(cls, v: str) -> str:
        return clean_text(v).strip()

    def to_document(self) -> Document:
        return Document(
            id=self.id,
            title=self.title,
            content=self.content,
            keywords=tuple(self.keywords),
            embedding=tuple(self.embedding),
            source_link=self.source_link or None,
            category=self.category or None,
        )


class JsonDocumentSource(DocumentSourcePort):
    """Loads a whole JSON export into memory and serves it as a snapshot.

    The file holds either a list of documents or an object with a
    ``documents`` list. Invalid records are skipped with a warning; a
    missing file is an empty source. ``refresh()`` swaps in a new snapshot
    atomically, so concurrent searches see either the old or the new one.
    """

    def __init__(self, kind: SourceKind, path: str | Path) -> None:
        self.kind = kind
        self.path = Path(path)
        self._documents: list[Document] | None = None
        self._lock = threading.Lock()

    async def list_all(self) -> list[Document]:
        if self._documents is None:
            await asyncio.to_thread(self.refresh)
        return list(self._documents or [])

    def refresh(self) -> int:
        """Reload the file; returns the number of documents loaded."""
        documents = self._load()
        with self._lock:
            self._documents = documents
        logger.info(f"Loaded {len(documents)} documents into source '{self.name}' from {self.path}")
        return len(documents)

    def _load(self) -> list[Document]:
        if not self.path.exists():
            logger.warning(f"Source file not found for '{self.name}': {self.path}")
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8-sig"))
        except (OSError, json.JSONDecodeError) as e:
            raise SourceUnavailableError(
                f"Could not read source file for '{self.name}'",
                cause=e,
                context={"path": str(self.path)},
            ) from e

        items = raw.get("documents", []) if isinstance(raw, dict) else raw
        if not isinstance(items, list):
            raise SourceUnavailableError(
                f"Source file for '{self.name}' does not contain a document list",
                context={"path": str(self.path)},
            )

        documents: list[Document] = []
        seen: set[str] = set()
        for position, item in enumerate(items):
            try:
                record = DocumentRecord.model_validate(item)
            except ValidationError as e:
                logger.warning(
                    f"Skipping invalid record #{position} in {self.path.name}: "
                    f"{e.error_count()} validation errors"
                )
                continue
            if record.id in seen:
                logger.warning(f"Skipping duplicate id '{record.id}' in {self.path.name}")
                continue
            seen.add(record.id)
            documents.append(record.to_document())
        return documents
