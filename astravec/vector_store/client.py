"""Astra DB Data API client.

Implements ``CollectionClient`` on top of ``astrapy``'s async database
object. Only the calls the store facade needs are exposed; connection
handling, authentication and request retries are left to ``astrapy``.
"""

from typing import Any, Dict, List, Optional, Sequence

import structlog
from astrapy import DataAPIClient
from astrapy.exceptions import DataAPIResponseException

from .base import (
    CollectionAlreadyExistsError,
    CollectionClient,
    CollectionFilter,
    CollectionNotFoundError,
)
from .mapper import VECTOR_KEY

logger = structlog.get_logger("vector_store.client")


class AstraDataAPIClient(CollectionClient):
    """``CollectionClient`` for Astra DB collections."""

    def __init__(
        self,
        token: str,
        api_endpoint: str,
        namespace: Optional[str] = None,
    ):
        """Initialize the Data API client.

        Args:
            token: Astra DB application token
            api_endpoint: Database API endpoint URL
            namespace: Keyspace holding the collections; the database
                default is used when omitted
        """
        self.api_endpoint = api_endpoint
        self.namespace = namespace
        self._client = DataAPIClient(token)
        self._database = self._client.get_async_database(api_endpoint, keyspace=namespace)

    async def _collection_exists(self, name: str) -> bool:
        return name in await self._database.list_collection_names()

    async def create_collection(
        self,
        name: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            await self._database.create_collection(name, definition=options)
        except DataAPIResponseException as e:
            if await self._collection_exists(name):
                raise CollectionAlreadyExistsError(
                    f"Collection '{name}' already exists"
                ) from e
            raise
        logger.info("Astra DB collection created", collection=name, namespace=self.namespace)

    async def get_collection(self, name: str) -> Any:
        if not await self._collection_exists(name):
            raise CollectionNotFoundError(f"Collection '{name}' does not exist")
        return self._database.get_collection(name)

    async def insert_many(self, handle: Any, rows: List[Dict[str, Any]]) -> None:
        await handle.insert_many(rows)

    async def vector_search(
        self,
        handle: Any,
        filter: CollectionFilter,
        sort_vector: Sequence[float],
        limit: int,
        include_similarity: bool = True,
        include_vector: bool = False,
    ) -> List[Dict[str, Any]]:
        cursor = handle.find(
            filter,
            sort={VECTOR_KEY: list(sort_vector)},
            limit=limit,
            include_similarity=include_similarity,
            projection={"*": True} if include_vector else None,
        )

        rows = []
        async for row in cursor:
            row = dict(row)
            # astrapy may hand back DataAPIVector objects
            if VECTOR_KEY in row:
                row[VECTOR_KEY] = [float(value) for value in row[VECTOR_KEY]]
            rows.append(row)
        return rows

    async def health_check(self) -> bool:
        """Check the database answers a metadata request."""
        try:
            await self._database.list_collection_names()
            return True
        except Exception as e:
            logger.error("Astra DB health check failed", api_endpoint=self.api_endpoint, error=str(e))
            return False
