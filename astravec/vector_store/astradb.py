"""Astra DB vector store implementation.

Documents are stored as flat rows in an Astra DB collection (see
``mapper``). Similarity search is delegated to the Data API's ``$vector``
sort; MMR search fetches a larger candidate pool with vectors included and
reranks it locally.

Collection lifecycle
- ``initialize()`` creates the collection if needed and binds it
- ``connect(name)`` binds an existing collection
- Every insert and query fails with ``CollectionNotBoundError`` until one of
  the two has run; a store stays bound to one collection for its lifetime
"""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from ..common.logging import log_performance
from .base import (
    CollectionAlreadyBoundError,
    CollectionAlreadyExistsError,
    CollectionClient,
    CollectionFilter,
    CollectionNotBoundError,
    Document,
    ShapeMismatchError,
    VectorStore,
    VectorStoreQueryError,
)
from .client import AstraDataAPIClient
from .embeddings import Embeddings
from .mapper import VECTOR_KEY, DocumentMapper
from .mmr import maximal_marginal_relevance

logger = structlog.get_logger("vector_store.astradb")

DEFAULT_FETCH_K = 20


class AstraDBVectorStore(VectorStore):
    """Vector store backed by an Astra DB collection."""

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        collection_name: str,
        token: Optional[str] = None,
        api_endpoint: Optional[str] = None,
        namespace: Optional[str] = None,
        id_key: str = "_id",
        content_key: str = "content",
        collection_options: Optional[Dict[str, Any]] = None,
        client: Optional[CollectionClient] = None,
    ):
        """Configure the store.

        Parameters
        - embeddings: Provider used for document and query embeddings
        - collection_name: Collection created/bound by ``initialize``
        - token: Astra DB application token
        - api_endpoint: Database API endpoint URL
        - namespace: Keyspace holding the collection
        - id_key: Row field holding document ids
        - content_key: Row field holding document text
        - collection_options: Definition used when creating the collection
          (vector dimension, metric); forwarded untouched
        - client: Alternative ``CollectionClient``; when omitted one is built
          from ``token`` and ``api_endpoint``
        """
        super().__init__(embeddings)

        if client is None:
            if not token or not api_endpoint:
                raise ValueError("Astra DB requires 'token' and 'api_endpoint'")
            client = AstraDataAPIClient(token, api_endpoint, namespace=namespace)

        self.client = client
        self.collection_name = collection_name
        self.namespace = namespace
        self.collection_options = collection_options
        self.mapper = DocumentMapper(id_key=id_key, content_key=content_key)

        self._collection: Any = None
        self._bound_name: Optional[str] = None
        self._bind_lock = asyncio.Lock()

    @property
    def vectorstore_type(self) -> str:
        return "astradb"

    @property
    def is_connected(self) -> bool:
        return self._collection is not None

    @property
    def bound_collection(self) -> Optional[str]:
        return self._bound_name

    def _bind(self, name: str, handle: Any) -> None:
        self._collection = handle
        self._bound_name = name
        logger.info("Connected to Astra DB collection", collection=name)

    def _check_rebind(self, name: str) -> bool:
        """Return True when already bound to ``name``; raise if bound elsewhere."""
        if self._collection is None:
            return False
        if self._bound_name != name:
            raise CollectionAlreadyBoundError(
                f"Store is bound to '{self._bound_name}', cannot bind '{name}'"
            )
        return True

    def _require_collection(self) -> Any:
        if self._collection is None:
            raise CollectionNotBoundError(
                "Must connect to a collection before adding or querying vectors"
            )
        return self._collection

    async def initialize(self) -> None:
        """Create the configured collection if missing and bind it.

        Safe to call repeatedly and concurrently; only the first call talks to
        the database.
        """
        async with self._bind_lock:
            if self._check_rebind(self.collection_name):
                return

            try:
                await self.client.create_collection(self.collection_name, self.collection_options)
            except CollectionAlreadyExistsError:
                logger.debug(
                    "Collection already exists, connecting",
                    collection=self.collection_name,
                )
            except Exception as e:
                logger.error(
                    "Failed to create Astra DB collection",
                    collection=self.collection_name,
                    error=str(e),
                )
                raise

            handle = await self.client.get_collection(self.collection_name)
            self._bind(self.collection_name, handle)

    async def connect(self, collection_name: str) -> None:
        """Bind an existing collection.

        Must run (or ``initialize``) before adding, deleting, or querying.
        """
        async with self._bind_lock:
            if self._check_rebind(collection_name):
                return
            handle = await self.client.get_collection(collection_name)
            self._bind(collection_name, handle)

    async def create(
        self,
        collection_name: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Create a new collection without binding it.

        Use ``connect`` afterwards to work with it. All errors, including an
        existing collection, propagate.
        """
        await self.client.create_collection(collection_name, options)
        logger.info("Created Astra DB collection", collection=collection_name)

    async def add_documents(
        self,
        documents: Sequence[Document],
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        self._require_collection()
        if ids is not None and len(ids) != len(documents):
            raise ShapeMismatchError(
                f"Got {len(ids)} ids for {len(documents)} documents"
            )
        vectors = await self.embeddings.embed_documents(
            [document.page_content for document in documents]
        )
        return await self.add_vectors(vectors, documents, ids=ids)

    async def add_vectors(
        self,
        vectors: Sequence[Sequence[float]],
        documents: Sequence[Document],
        ids: Optional[Sequence[str]] = None,
    ) -> List[str]:
        collection = self._require_collection()

        if len(vectors) != len(documents):
            raise ShapeMismatchError(
                f"Got {len(vectors)} vectors for {len(documents)} documents"
            )
        if ids is not None and len(ids) != len(documents):
            raise ShapeMismatchError(
                f"Got {len(ids)} ids for {len(documents)} documents"
            )
        if not documents:
            return []

        rows = [
            self.mapper.to_row(
                document,
                vector,
                doc_id=ids[idx] if ids is not None else None,
            )
            for idx, (vector, document) in enumerate(zip(vectors, documents))
        ]

        try:
            await self.client.insert_many(collection, rows)
        except Exception as e:
            logger.error(
                "Failed to insert documents into Astra DB",
                collection=self._bound_name,
                count=len(rows),
                error=str(e),
            )
            raise

        logger.info("Documents stored in Astra DB", collection=self._bound_name, count=len(rows))
        return [row[self.mapper.id_key] for row in rows]

    async def similarity_search_vector_with_score(
        self,
        query_vector: Sequence[float],
        k: int = 4,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Tuple[Document, float]]:
        collection = self._require_collection()
        if k <= 0:
            return []

        start_time = time.time()
        rows = await self.client.vector_search(
            collection,
            filter or {},
            sort_vector=list(query_vector),
            limit=k,
            include_similarity=True,
        )

        results = []
        for row in rows:
            document, similarity = self.mapper.from_row(row)
            results.append((document, similarity))

        log_performance(
            "astradb_similarity_search",
            (time.time() - start_time) * 1000,
            collection=self._bound_name,
            results_count=len(results),
        )
        return results

    async def max_marginal_relevance_search_by_vector(
        self,
        query_vector: Sequence[float],
        k: int = 4,
        fetch_k: Optional[int] = None,
        lambda_mult: float = 0.5,
        filter: Optional[CollectionFilter] = None,
    ) -> List[Document]:
        """Rerank up to ``max(k, fetch_k)`` candidates with MMR.

        ``fetch_k`` defaults to ``DEFAULT_FETCH_K``.
        """
        collection = self._require_collection()
        if k <= 0:
            return []

        limit = max(k, fetch_k if fetch_k is not None else DEFAULT_FETCH_K)
        start_time = time.time()
        rows = await self.client.vector_search(
            collection,
            filter or {},
            sort_vector=list(query_vector),
            limit=limit,
            include_similarity=True,
            include_vector=True,
        )
        if not rows:
            return []
        if any(VECTOR_KEY not in row for row in rows):
            raise VectorStoreQueryError("Candidate rows were returned without vectors")

        selected = maximal_marginal_relevance(
            query_vector,
            [row[VECTOR_KEY] for row in rows],
            lambda_mult=lambda_mult,
            k=k,
        )
        documents = [self.mapper.from_row(rows[idx])[0] for idx in selected]

        log_performance(
            "astradb_mmr_search",
            (time.time() - start_time) * 1000,
            collection=self._bound_name,
            candidates=len(rows),
            results_count=len(documents),
        )
        return documents

    async def health_check(self) -> bool:
        """Check if the backing database is reachable."""
        return await self.client.health_check()

    @classmethod
    async def from_texts(
        cls,
        texts: Sequence[str],
        embeddings: Embeddings,
        metadatas: Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None] = None,
        ids: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> "AstraDBVectorStore":
        """Create a store, initialize its collection and add ``texts``.

        ``metadatas`` is either one mapping shared by every text or a
        sequence aligned with ``texts``; ``kwargs`` go to the constructor.
        """
        if metadatas is not None and not isinstance(metadatas, Mapping) and len(metadatas) != len(texts):
            raise ShapeMismatchError(
                f"Got {len(metadatas)} metadatas for {len(texts)} texts"
            )
        if ids is not None and len(ids) != len(texts):
            raise ShapeMismatchError(f"Got {len(ids)} ids for {len(texts)} texts")
        store = cls(embeddings, **kwargs)
        await store.initialize()
        await store.add_texts(texts, metadatas=metadatas, ids=ids)
        return store

    @classmethod
    async def from_documents(
        cls,
        documents: Sequence[Document],
        embeddings: Embeddings,
        ids: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> "AstraDBVectorStore":
        """Create a store, initialize its collection and add ``documents``."""
        if ids is not None and len(ids) != len(documents):
            raise ShapeMismatchError(f"Got {len(ids)} ids for {len(documents)} documents")
        store = cls(embeddings, **kwargs)
        await store.initialize()
        await store.add_documents(documents, ids=ids)
        return store
