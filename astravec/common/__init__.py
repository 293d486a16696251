"""Common utilities shared across the adapter.

Includes:
- ``config``: Pydantic-based configuration from environment variables.
- ``logging``: structured logging setup with structlog.

Import pattern:
- from astravec.common.config import AstraDBConfig
- from astravec.common.logging import configure_logging
"""
