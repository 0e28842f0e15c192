"""Response payload of ``register`` and ``login``."""

from pydantic import BaseModel

from .user import UserRead


class Auth(BaseModel):
    token: str
    user: UserRead
