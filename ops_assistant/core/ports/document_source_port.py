"""Document Source Port Interface."""

from abc import ABC, abstractmethod

from ..domain import Document, SourceKind


class DocumentSourcePort(ABC):
    """Read-only view over one document source.

    Implementations load their documents on their own schedule; the
    retrieval core only ever reads the current snapshot.
    """

    kind: SourceKind

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    async def list_all(self) -> list[Document]:
        """Return every document currently loaded."""
        ...
