"""
Top‑level router for version 1 of the API.

Aggregates the operation endpoint and the info endpoint under a
unified prefix.
"""

from fastapi import APIRouter

from .endpoints import info, operations

router = APIRouter()

router.include_router(operations.router, prefix="/operations", tags=["operations"])
router.include_router(info.router, prefix="/info", tags=["info"])
