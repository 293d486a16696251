"""Translation between ``Document`` objects and collection rows.

A row is a flat mapping: the id field, the content field, the ``$vector``
field, and every metadata key at the top level. Search results may also
carry ``$similarity``.
"""

import uuid
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from .base import Document, ReservedMetadataKeyError, VectorStoreQueryError

VECTOR_KEY = "$vector"
SIMILARITY_KEY = "$similarity"


class DocumentMapper:
    """Stateless, bidirectional document/row mapping."""

    def __init__(self, id_key: str = "_id", content_key: str = "content"):
        """Configure the field layout.

        Parameters
        - id_key: Row field holding the document id
        - content_key: Row field holding the document text
        """
        if id_key == content_key:
            raise ValueError("id_key and content_key must differ")
        self.id_key = id_key
        self.content_key = content_key

    @property
    def reserved_keys(self) -> Tuple[str, ...]:
        return (self.id_key, self.content_key, VECTOR_KEY, SIMILARITY_KEY)

    def to_row(
        self,
        document: Document,
        vector: Sequence[float],
        doc_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build the row stored for ``document``.

        A fresh UUID4 is used when ``doc_id`` is not given. Metadata keys that
        clash with the row layout raise ``ReservedMetadataKeyError``.
        """
        clashes = sorted(set(document.metadata).intersection(self.reserved_keys))
        if clashes:
            raise ReservedMetadataKeyError(
                f"Metadata keys {clashes} are reserved by the row layout"
            )

        row: Dict[str, Any] = {
            self.id_key: doc_id if doc_id is not None else str(uuid.uuid4()),
            self.content_key: document.page_content,
            VECTOR_KEY: np.asarray(vector, dtype=float).tolist(),
        }
        row.update(document.metadata)
        return row

    def from_row(self, row: Dict[str, Any]) -> Tuple[Document, Optional[float]]:
        """Turn a stored row back into a document and its similarity, if any."""
        if self.content_key not in row:
            raise VectorStoreQueryError(
                f"Row is missing content field '{self.content_key}'"
            )

        similarity = row.get(SIMILARITY_KEY)
        metadata = {
            key: value
            for key, value in row.items()
            if key not in self.reserved_keys
        }
        document = Document(page_content=row[self.content_key], metadata=metadata)
        return document, similarity
