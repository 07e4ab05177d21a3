"""Fake implementations of core ports for testing.

- FakeDocumentStorePort: In-memory store that records calls and can fail on demand
- User: Sample resource mirroring a typical user document
"""

from .resources import User
from .store import FakeDocumentStorePort

__all__ = [
    "FakeDocumentStorePort",
    "User",
]
