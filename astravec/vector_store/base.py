"""Base vector store interface.

Defines the abstract contracts the adapter is built from, independent of the
backing service:

- ``VectorStore``: the generic document store interface consumed by the
  retrieval framework.
- ``CollectionClient``: the narrow set of calls a hosted database must
  answer (create/get a collection, insert rows, filtered vector search).

All methods are asynchronous.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .embeddings import Embeddings

# Filters are passed to the backend verbatim; their semantics are backend-defined.
CollectionFilter = Dict[str, Any]


@dataclass(frozen=True)
class Document:
    """A piece of text and its metadata."""

    page_content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class VectorStore(ABC):
    """Abstract base class for document vector stores.

    Subclasses provide insertion, scored vector search and MMR search; the
    plain text/vector search helpers are derived from those.
    """

    def __init__(self, embeddings: Embeddings):
        self.embeddings = embeddings

    @property
    @abstractmethod
    def vectorstore_type(self) -> str:
        """Short backend identifier, e.g. ``astradb``."""

    @abstractmethod
    def _require_collection(self) -> Any:
        """Raise if the store cannot serve inserts or queries yet.

        Runs before any embedding call so an unusable store never reaches the
        embedding provider.
        """

    @abstractmethod
    async def add_vectors(
        self,
        vectors: Sequence[Sequence[float]],
        documents: Sequence[Document],
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Store precomputed vectors alongside their documents.

        Returns the ids written, in input order.
        """

    @abstractmethod
    async def add_documents(
        self,
        documents: Sequence[Document],
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Embed and store documents."""

    @abstractmethod
    async def similarity_search_vector_with_score(
        self,
        query_vector: Sequence[float],
        k: int = 4,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Tuple[Document, float]]:
        """Search by vector.

        Returns ``(document, similarity)`` pairs in the backend's order
        (best first, higher similarity means closer).
        """

    @abstractmethod
    async def max_marginal_relevance_search_by_vector(
        self,
        query_vector: Sequence[float],
        k: int = 4,
        fetch_k: Optional[int] = None,
        lambda_mult: float = 0.5,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Document]:
        """Return documents selected by maximal marginal relevance."""

    async def add_texts(
        self,
        texts: Sequence[str],
        metadatas: Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None] = None,
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Wrap texts into documents and store them.

        ``metadatas`` is either one mapping shared by every text or a
        sequence aligned with ``texts``.
        """
        if metadatas is None:
            metadatas = [{} for _ in texts]
        elif isinstance(metadatas, Mapping):
            metadatas = [metadatas] * len(texts)
        if len(metadatas) != len(texts):
            raise ShapeMismatchError(
                f"Got {len(metadatas)} metadatas for {len(texts)} texts"
            )
        documents = [
            Document(page_content=text, metadata=dict(metadata))
            for text, metadata in zip(texts, metadatas)
        ]
        return await self.add_documents(documents, ids=ids)

    async def similarity_search_with_score(
        self,
        query: str,
        k: int = 4,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Tuple[Document, float]]:
        """Embed ``query`` and search by the resulting vector."""
        self._require_collection()
        query_vector = await self.embeddings.embed_query(query)
        return await self.similarity_search_vector_with_score(query_vector, k, filter)

    async def similarity_search(
        self,
        query: str,
        k: int = 4,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Document]:
        results = await self.similarity_search_with_score(query, k, filter)
        return [doc for doc, _ in results]

    async def similarity_search_by_vector(
        self,
        query_vector: Sequence[float],
        k: int = 4,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Document]:
        results = await self.similarity_search_vector_with_score(query_vector, k, filter)
        return [doc for doc, _ in results]

    async def max_marginal_relevance_search(
        self,
        query: str,
        k: int = 4,
        fetch_k: Optional[int] = None,
        lambda_mult: float = 0.5,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Document]:
        """Return documents selected using maximal marginal relevance.

        MMR optimizes for similarity to the query AND diversity among the
        selected documents.

        Parameters
        - query: Text to look up documents similar to
        - k: Number of documents to return
        - fetch_k: Number of candidates to fetch before reranking
        - lambda_mult: 0 for maximum diversity, 1 for minimum diversity
        - filter: Backend-defined metadata filter
        """
        self._require_collection()
        query_vector = await self.embeddings.embed_query(query)
        return await self.max_marginal_relevance_search_by_vector(
            query_vector,
            k=k,
            fetch_k=fetch_k,
            lambda_mult=lambda_mult,
            filter=filter,
        )


class CollectionClient(ABC):
    """Calls the store facade needs from a hosted vector database.

    Handles returned by ``get_collection`` are opaque to callers and only
    passed back into ``insert_many`` and ``vector_search``.
    """

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Create a collection.

        Raises ``CollectionAlreadyExistsError`` when ``name`` is taken.
        """

    @abstractmethod
    async def get_collection(self, name: str) -> Any:
        """Return a handle for an existing collection.

        Raises ``CollectionNotFoundError`` when ``name`` does not exist.
        """

    @abstractmethod
    async def insert_many(self, handle: Any, rows: List[Dict[str, Any]]) -> None:
        """Insert rows in one batched request."""

    @abstractmethod
    async def vector_search(
        self,
        handle: Any,
        filter: CollectionFilter,
        sort_vector: Sequence[float],
        limit: int,
        include_similarity: bool = True,
        include_vector: bool = False,
    ) -> List[Dict[str, Any]]:
        """Return up to ``limit`` rows ordered by proximity to ``sort_vector``.

        Rows carry ``$similarity`` and ``$vector`` when requested.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the database is reachable."""


class VectorStoreError(Exception):
    """Base exception for vector store operations."""
    pass


class CollectionNotBoundError(VectorStoreError):
    """Operation attempted before a collection was bound."""
    pass


class CollectionAlreadyBoundError(VectorStoreError):
    """Store already bound to a different collection."""
    pass


class CollectionAlreadyExistsError(VectorStoreError):
    """Collection creation hit an existing collection."""
    pass


class CollectionNotFoundError(VectorStoreError):
    """Collection does not exist."""
    pass


class VectorStoreQueryError(VectorStoreError):
    """Query error or malformed row returned by the store."""
    pass


class ShapeMismatchError(VectorStoreError, ValueError):
    """Parallel inputs (vectors, documents, ids, metadatas) differ in length."""
    pass


class ReservedMetadataKeyError(VectorStoreError, ValueError):
    """Document metadata uses a key reserved for the row layout."""
    pass
