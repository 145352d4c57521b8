"""
Fridgelist offline-first shopping list client.

The package mirrors the shopping list of a remote fridge inventory service in a local
SQLite cache and reconciles local purchase edits with the server.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
