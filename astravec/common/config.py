"""Configuration management for the Astra DB vector store adapter.

Settings are environment driven and built on ``pydantic_settings.BaseSettings``
so they can be provided via environment variables, ``.env`` files, or
defaults. Field names double as environment variable names (matching is
case-insensitive), e.g. ``astra_db_api_endpoint`` reads
``ASTRA_DB_API_ENDPOINT``.

Usage
- ``config = AstraDBConfig()`` then ``create_vector_store(embeddings, config)``
- Or select dynamically: ``config = get_config("astradb")``
"""

import os
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration shared by every component.

    Notes
    - Add new shared settings here so the specialised configs inherit them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    astra_env: str = Field(default="local")

    # Logging
    astra_log_level: str = Field(default="INFO")
    astra_log_format: str = Field(default="json")


class AstraDBConfig(BaseConfig):
    """Connection and collection settings for the Astra DB backend.

    ``astra_db_vector_dimension`` and ``astra_db_vector_metric`` are only used
    when the collection has to be created; they are forwarded to the Data API
    untouched.
    """

    astra_db_application_token: Optional[str] = Field(default=None)
    astra_db_api_endpoint: Optional[str] = Field(default=None)
    astra_db_collection: str = Field(default="documents")
    astra_db_namespace: Optional[str] = Field(default=None)
    astra_db_id_key: str = Field(default="_id")
    astra_db_content_key: str = Field(default="content")
    astra_db_vector_dimension: Optional[int] = Field(default=None)
    astra_db_vector_metric: str = Field(default="cosine")

    def collection_options(self) -> Optional[Dict[str, Any]]:
        """Collection definition used when creating the collection.

        Returns ``None`` when no dimension is configured, leaving the
        definition to the service defaults.
        """
        if self.astra_db_vector_dimension is None:
            return None
        return {
            "vector": {
                "dimension": self.astra_db_vector_dimension,
                "metric": self.astra_db_vector_metric,
            }
        }


class EmbeddingConfig(BaseConfig):
    """Settings for the HTTP embedding service client."""

    astra_embedding_service_url: str = Field(default="http://localhost:9006")
    astra_embedding_model: str = Field(default="default")
    astra_embedding_timeout: float = Field(default=30.0)
    astra_embedding_retry_attempts: int = Field(default=3)
    astra_embedding_retry_base_delay: float = Field(default=1.0)
    astra_embedding_retry_max_delay: float = Field(default=8.0)


def get_config(name: str) -> BaseConfig:
    """Get configuration for a named component.

    Parameters
    - name: ``astradb`` or ``embedding``

    Returns
    - A concrete ``BaseConfig`` subclass reading the right env vars.
    """
    config_map = {
        "astradb": AstraDBConfig,
        "embedding": EmbeddingConfig,
    }

    # Unknown names fall back to the shared settings.
    config_class = config_map.get(name, BaseConfig)
    return config_class()


def load_env_file(env_file: str = ".env") -> Dict[str, Any]:
    """Load environment variables from a file.

    Parses a simple ``KEY=VALUE`` file, ignoring blank lines and comments.
    The process environment is not modified, which makes the result suitable
    for ``create_vector_store_from_env``.
    """
    env_vars = {}
    if os.path.exists(env_file):
        with open(env_file, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    env_vars[key.strip()] = value.strip()
    return env_vars
