"""Vector store factory.

Centralizes construction of the Astra DB store and the embedding client so
callers depend on configuration, not on constructor details.
"""

from typing import Dict, Optional

import structlog

from ..common.config import AstraDBConfig, EmbeddingConfig
from .astradb import AstraDBVectorStore
from .embeddings import Embeddings, EmbeddingServiceClient

logger = structlog.get_logger("vector_store.factory")


def create_vector_store(
    embeddings: Embeddings,
    config: Optional[AstraDBConfig] = None,
) -> AstraDBVectorStore:
    """Create a store from typed configuration.

    The returned store is not yet bound; call ``initialize()`` or
    ``connect()`` before using it.
    """
    config = config or AstraDBConfig()

    if not config.astra_db_application_token:
        raise ValueError("Astra DB requires 'astra_db_application_token' in config")
    if not config.astra_db_api_endpoint:
        raise ValueError("Astra DB requires 'astra_db_api_endpoint' in config")

    logger.info(
        "Creating Astra DB vector store",
        api_endpoint=config.astra_db_api_endpoint,
        collection=config.astra_db_collection,
        namespace=config.astra_db_namespace,
    )
    return AstraDBVectorStore(
        embeddings,
        token=config.astra_db_application_token,
        api_endpoint=config.astra_db_api_endpoint,
        collection_name=config.astra_db_collection,
        namespace=config.astra_db_namespace,
        id_key=config.astra_db_id_key,
        content_key=config.astra_db_content_key,
        collection_options=config.collection_options(),
    )


def create_vector_store_from_env(
    embeddings: Embeddings,
    env_config: Dict[str, str],
) -> AstraDBVectorStore:
    """Create a store from environment-style configuration.

    Parameters
    - embeddings: Provider used by the store
    - env_config: A flat mapping of environment variable names to values
      (e.g. ``dict(os.environ)`` or ``load_env_file()``)
    """
    token = env_config.get("ASTRA_DB_APPLICATION_TOKEN")
    api_endpoint = env_config.get("ASTRA_DB_API_ENDPOINT")
    if not token:
        raise ValueError("ASTRA_DB_APPLICATION_TOKEN environment variable is required")
    if not api_endpoint:
        raise ValueError("ASTRA_DB_API_ENDPOINT environment variable is required")

    dimension = env_config.get("ASTRA_DB_VECTOR_DIMENSION")
    config = AstraDBConfig(
        astra_db_application_token=token,
        astra_db_api_endpoint=api_endpoint,
        astra_db_collection=env_config.get("ASTRA_DB_COLLECTION", "documents"),
        astra_db_namespace=env_config.get("ASTRA_DB_NAMESPACE"),
        astra_db_id_key=env_config.get("ASTRA_DB_ID_KEY", "_id"),
        astra_db_content_key=env_config.get("ASTRA_DB_CONTENT_KEY", "content"),
        astra_db_vector_dimension=int(dimension) if dimension else None,
        astra_db_vector_metric=env_config.get("ASTRA_DB_VECTOR_METRIC", "cosine"),
    )
    return create_vector_store(embeddings, config)


def create_embeddings_from_config(
    config: Optional[EmbeddingConfig] = None,
) -> EmbeddingServiceClient:
    """Create the HTTP embedding client from typed configuration."""
    config = config or EmbeddingConfig()
    return EmbeddingServiceClient(
        base_url=config.astra_embedding_service_url,
        model=config.astra_embedding_model,
        timeout=config.astra_embedding_timeout,
        max_attempts=config.astra_embedding_retry_attempts,
        base_delay=config.astra_embedding_retry_base_delay,
        max_delay=config.astra_embedding_retry_max_delay,
    )
