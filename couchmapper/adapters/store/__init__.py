"""Document store adapters.

Implementations support multiple backends:
- CouchDB (HTTP API via httpx)
- In-memory (zero-config, single process)
"""
