"""
Pydantic models for the operation endpoint.

Every call to ``POST /api/v1/operations`` names an operation and passes
its arguments in ``variables``.  The per‑operation variable models
below validate those arguments before the service layer sees them.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .book import BookInput


class OperationRequest(BaseModel):
    operation: str = Field(..., examples=["login"])
    variables: Dict[str, Any] = Field(default_factory=dict)
    token: Optional[str] = Field(None, description="Session token, if not sent in the Authorization header")


class OperationResponse(BaseModel):
    data: Any = None


class _Variables(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class NoVariables(_Variables):
    pass


class GetUserVariables(_Variables):
    id: str = Field(..., alias="_id")


class LoginVariables(_Variables):
    email: str
    password: str


class RegisterVariables(_Variables):
    username: Optional[str] = None
    email: str
    password: str


class SaveBookVariables(_Variables):
    user_id: str
    input: BookInput


class RemoveBookVariables(_Variables):
    user_id: str
    book_id: str


class SearchBooksVariables(_Variables):
    query: str = ""
