"""
Operation endpoint for API v1.

All reads and writes go through ``POST /api/v1/operations``.  The body
names the operation and carries its ``variables``; the session token
may be sent in the ``Authorization`` header, as a ``token`` query
parameter or as a ``token`` field of the body.  An invalid token makes
the request anonymous.  Operations that need a user (``getMe``,
``listSavedBooks``) reject anonymous requests with 401.

The result is returned as ``{"data": ...}``; ``data`` is ``null`` when
the requested user does not exist.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from fastapi import APIRouter, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from book_search_api.app.core.errors import ValidationError, ValidationErrorFromPydantic
from book_search_api.app.core.security import extract_token, resolve_identity
from book_search_api.app.schemas.operation import (
    GetUserVariables,
    LoginVariables,
    NoVariables,
    OperationRequest,
    OperationResponse,
    RegisterVariables,
    RemoveBookVariables,
    SaveBookVariables,
    SearchBooksVariables,
)
from book_search_api.app.services.mutation_service import MutationService
from book_search_api.app.services.query_service import QueryService


logger = logging.getLogger(__name__)

router = APIRouter()

Identity = Optional[Dict[str, Any]]


@dataclass(frozen=True)
class Operation:
    variables: Type[BaseModel]
    handler: Callable[[Any, Identity], Awaitable[Any]]


OPERATIONS: Dict[str, Operation] = {
    "listUsers": Operation(NoVariables, lambda v, identity: QueryService.list_users()),
    "getUser": Operation(GetUserVariables, lambda v, identity: QueryService.get_user(v.id)),
    "getMe": Operation(NoVariables, lambda v, identity: QueryService.get_me(identity)),
    "listSavedBooks": Operation(NoVariables, lambda v, identity: QueryService.list_saved_books(identity)),
    "searchBooks": Operation(SearchBooksVariables, lambda v, identity: QueryService.search_books(v.query)),
    "register": Operation(
        RegisterVariables,
        lambda v, identity: MutationService.register(v.username, v.email, v.password),
    ),
    "login": Operation(LoginVariables, lambda v, identity: MutationService.login(v.email, v.password)),
    "saveBook": Operation(SaveBookVariables, lambda v, identity: MutationService.save_book(v.user_id, v.input)),
    "removeBook": Operation(
        RemoveBookVariables,
        lambda v, identity: MutationService.remove_book(v.user_id, v.book_id),
    ),
}

# Names used by older clients.
ALIASES = {
    "users": "listUsers",
    "singleUser": "getUser",
    "me": "getMe",
    "savedBooks": "listSavedBooks",
    "addUser": "register",
    "googleBooks": "searchBooks",
}


def _serialise(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True)
    if isinstance(result, list):
        return [_serialise(item) for item in result]
    return result


def _parse_variables(model: Type[BaseModel], variables: Dict[str, Any]) -> BaseModel:
    try:
        return model.model_validate(variables)
    except PydanticValidationError as exc:
        raise ValidationErrorFromPydantic(exc.errors()) from exc


@router.post("", response_model=OperationResponse)
async def run_operation(payload: OperationRequest, request: Request) -> OperationResponse:
    """Execute one named operation and return its result."""
    name = ALIASES.get(payload.operation, payload.operation)
    operation = OPERATIONS.get(name)
    if operation is None:
        raise ValidationError(f"Unknown operation '{payload.operation}'", "operation")
    variables = _parse_variables(operation.variables, payload.variables)
    identity = resolve_identity(extract_token(request, {"token": payload.token}))
    logger.debug("Running %s (authenticated=%s)", name, identity is not None)
    result = await operation.handler(variables, identity)
    return OperationResponse(data=_serialise(result))
