"""Tests for the Astra DB vector store adapter.

Unit tests run against in-memory fakes of the collection client and the
embedding provider (see ``conftest``). Live tests live in ``integration``.
"""
