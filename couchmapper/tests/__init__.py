"""Test suite for couchmapper.

Organized into three categories:

1. core/: Unit tests for core logic
   - No network, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Tests for adapter implementations
   - CouchDB adapter against a stubbed httpx transport
   - In-memory store and CLI handler behavior

3. fakes/: Port implementations and sample resources for testing
"""
