"""Astra DB vector store adapter.

Subpackages:
- ``astravec.common``: configuration and structured logging.
- ``astravec.vector_store``: the vector store interface, the Astra DB
  backend, document mapping, and MMR reranking.

Usage:
- ``from astravec.vector_store.astradb import AstraDBVectorStore``
"""

__version__ = "0.1.0"
