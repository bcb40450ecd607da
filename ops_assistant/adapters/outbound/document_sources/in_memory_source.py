"""Document source holding a fixed list of documents."""

from collections.abc import Iterable

from ....core.domain import Document, SourceKind
from ....core.ports.document_source_port import DocumentSourcePort


class InMemoryDocumentSource(DocumentSourcePort):
    """Serves documents handed to it at construction or through ``replace``."""

    def __init__(self, kind: SourceKind, documents: Iterable[Document] = ()) -> None:
        self.kind = kind
        self._documents = list(documents)

    async def list_all(self) -> list[Document]:
        return list(self._documents)

    def replace(self, documents: Iterable[Document]) -> None:
        """Swap in a new snapshot."""
        self._documents = list(documents)
