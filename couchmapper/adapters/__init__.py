"""External adapters for couchmapper.

This package contains all external dependencies (httpx, the CouchDB HTTP
API, the command line) and provides implementations of the core port
interfaces.

Adapter Organization:

- store/: Document store adapters (CouchDB over HTTP, in-memory)
- cli/: Command-line handler for raw document operations
"""
