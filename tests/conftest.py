"""Shared fixtures: in-memory collection client and table-driven embeddings."""

import copy
from typing import Any, Dict, List, Optional, Sequence

import pytest

from astravec.vector_store.astradb import AstraDBVectorStore
from astravec.vector_store.base import (
    CollectionAlreadyExistsError,
    CollectionClient,
    CollectionNotFoundError,
)
from astravec.vector_store.embeddings import Embeddings
from astravec.vector_store.mmr import cosine_similarity

BIOLOGY_TEXTS = [
    "The powerhouse of the cell is the mitochondria",
    "Buildings are made out of brick",
    "Mitochondria are made out of lipids",
]

# The first and third texts sit close together; "biology" is nearest the first.
BIOLOGY_VECTORS = {
    "biology": [1.0, 0.0, 0.0],
    BIOLOGY_TEXTS[0]: [0.99, 0.141, 0.0],
    BIOLOGY_TEXTS[1]: [0.6, -0.8, 0.0],
    BIOLOGY_TEXTS[2]: [0.95, 0.312, 0.0],
}


class FakeEmbeddings(Embeddings):
    """Looks texts up in a fixed table."""

    def __init__(self, vectors: Dict[str, List[float]]):
        self.vectors = vectors
        self.document_calls: List[List[str]] = []
        self.query_calls: List[str] = []

    async def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        self.document_calls.append(list(texts))
        return [list(self.vectors[text]) for text in texts]

    async def embed_query(self, text: str) -> List[float]:
        self.query_calls.append(text)
        return list(self.vectors[text])


class InMemoryCollectionClient(CollectionClient):
    """Collections as lists of rows, searched by brute-force cosine similarity."""

    def __init__(
        self,
        existing: Sequence[str] = (),
        create_error: Optional[Exception] = None,
    ):
        self.collections: Dict[str, List[Dict[str, Any]]] = {name: [] for name in existing}
        self.create_error = create_error
        self.create_calls: List[tuple] = []
        self.insert_calls: List[List[Dict[str, Any]]] = []
        self.search_calls: List[Dict[str, Any]] = []

    async def create_collection(self, name, options=None):
        self.create_calls.append((name, options))
        if self.create_error is not None:
            raise self.create_error
        if name in self.collections:
            raise CollectionAlreadyExistsError(name)
        self.collections[name] = []

    async def get_collection(self, name):
        if name not in self.collections:
            raise CollectionNotFoundError(name)
        return name

    async def insert_many(self, handle, rows):
        self.insert_calls.append(copy.deepcopy(rows))
        self.collections[handle].extend(copy.deepcopy(rows))

    async def vector_search(
        self,
        handle,
        filter,
        sort_vector,
        limit,
        include_similarity=True,
        include_vector=False,
    ):
        self.search_calls.append({
            "handle": handle,
            "filter": filter,
            "limit": limit,
            "include_similarity": include_similarity,
            "include_vector": include_vector,
        })
        rows = [
            row for row in self.collections[handle]
            if all(row.get(key) == value for key, value in filter.items())
        ]
        if not rows:
            return []

        similarities = cosine_similarity([sort_vector], [row["$vector"] for row in rows])[0]
        ranked = sorted(zip(rows, similarities), key=lambda pair: -pair[1])[:limit]

        results = []
        for row, similarity in ranked:
            result = copy.deepcopy(row)
            if not include_vector:
                result.pop("$vector")
            if include_similarity:
                result["$similarity"] = float(similarity)
            results.append(result)
        return results

    async def health_check(self):
        return True


@pytest.fixture
def embeddings():
    return FakeEmbeddings(BIOLOGY_VECTORS)


@pytest.fixture
def fake_client():
    return InMemoryCollectionClient()


@pytest.fixture
def store(embeddings, fake_client):
    """An unbound store over the in-memory client."""
    return AstraDBVectorStore(
        embeddings,
        collection_name="test_collection",
        client=fake_client,
        collection_options={"vector": {"dimension": 3, "metric": "cosine"}},
    )
