"""
Pydantic models for saved books.

A book only exists inside a user's saved list.  ``BookInput`` is what
a client sends to ``saveBook``; ``BookRead`` is what comes back as part
of a user.  Both carry the same fields.
"""

from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class BookBase(BaseModel):
    book_id: str = Field(..., min_length=1, examples=["zyTCAlFPjgYC"])
    title: str = Field(..., examples=["The Google Story"])
    authors: List[str] = Field(default_factory=list, examples=[["David A. Vise", "Mark Malseed"]])
    description: str = Field(..., examples=["Here is the story behind one of the most remarkable Internet successes"])
    image: Optional[str] = Field(None, examples=["http://books.google.com/books/content?id=zyTCAlFPjgYC&zoom=0"])
    link: Optional[str] = Field(None, examples=["http://books.google.com/books?id=zyTCAlFPjgYC"])

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class BookInput(BookBase):
    """Schema for a book sent to ``saveBook``."""
    pass


class BookRead(BookBase):
    """Schema for a saved book as stored for a user."""
    pass
