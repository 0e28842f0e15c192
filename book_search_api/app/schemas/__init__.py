"""
Pydantic schema definitions for API payloads.

Field names on the wire follow the camelCase contract of the
operations (``bookId``, ``savedBooks``, ``bookCount``); the Python
attributes stay snake_case and are mapped through aliases.
"""
