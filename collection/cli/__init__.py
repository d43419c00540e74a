"""
Command-line tools for the collection registry.

    python -m collection.cli.main --help
"""

from .main import app

__all__ = ["app"]
