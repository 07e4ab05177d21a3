"""couchmapper: a thin object-document mapper for CouchDB."""

__version__ = "0.3.0"
