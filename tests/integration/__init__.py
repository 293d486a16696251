"""Integration tests against a live Astra DB database.

Skipped unless ``ASTRA_DB_APPLICATION_TOKEN`` and ``ASTRA_DB_API_ENDPOINT``
are set. Each run works in a throwaway collection.
"""
