"""Vector store adapters and utilities.

Primary components:
- ``base``: abstract ``VectorStore``/``CollectionClient`` interfaces, the
  ``Document`` type and common exceptions.
- ``astradb``: Astra DB implementation of the interface.
- ``client``: ``astrapy``-backed Data API client.
- ``mapper``: document/row translation.
- ``mmr``: maximal marginal relevance reranking.
- ``embeddings``: embedding provider contract and HTTP client.
- ``factory``: helpers to construct a store from typed config or env.

Guidance:
- Prefer constructing via ``factory.create_vector_store`` so callers stay
  decoupled from connection details.
"""
