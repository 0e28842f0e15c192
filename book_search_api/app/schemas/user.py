"""
Pydantic models for user data.

``UserRead`` is the public view of a user: its saved books and the
derived ``bookCount``.  ``UserInDB`` adds the stored password hash and
never leaves the service layer; the hash is excluded from
serialisation.
"""

from typing import List

from pydantic import BaseModel, Field, computed_field
from pydantic.alias_generators import to_camel

from .book import BookRead


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: str = Field(..., alias="_id")
    username: str
    email: str
    saved_books: List[BookRead] = Field(default_factory=list)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @computed_field(alias="bookCount")
    @property
    def book_count(self) -> int:
        return len(self.saved_books)


class UserInDB(UserRead):
    password: str = Field(..., exclude=True)
