"""
Version 1 of the API.

Breaking changes to the operation contract should be introduced in a
new version subpackage (e.g. ``v2``).
"""
