"""
Top‑level package for the Book Search API.

This file makes ``book_search_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``book_search_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
