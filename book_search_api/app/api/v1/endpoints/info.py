"""
Information endpoint for API v1.

Returns the service name and version so that clients and load
balancers can check that the API is up.  Publicly accessible.
"""

from typing import Dict

from fastapi import APIRouter

from book_search_api.app.core.config import settings

router = APIRouter()


@router.get("/", response_model=Dict[str, str])
async def get_info() -> Dict[str, str]:
    return {"name": settings.project_name, "version": settings.api_version, "status": "ok"}
