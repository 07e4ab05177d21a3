"""Command-line interface adapters.

- commands.py: JSON-returning handlers for raw database and document operations
"""
