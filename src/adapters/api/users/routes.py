"""User CRUD endpoints.

Every endpoint requires a bearer token and counts against the api tier;
mutations additionally count against the writes tier.
"""

import re
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from src.adapters.api.envelope import success_response
from src.adapters.api.operations import guarded_operation
from src.adapters.api.schemas import UserOut, UserPayload
from src.core.dependencies.auth import CurrentUser, get_auth_context, resolve_bearer_token
from src.core.exceptions import UserNotFoundError
from src.core.rate_limit import rate_limit
from src.core.rate_limiting import API_TIER, WRITES_TIER
from src.domain.value_objects.pagination import PageRequest, SortSpec, UserFilters
from src.infrastructure.dependency_injection.auth_dependencies import UserServiceDep

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[
        Depends(resolve_bearer_token),
        Depends(rate_limit(API_TIER)),
        Depends(get_auth_context),
    ],
)

writes = [Depends(rate_limit(WRITES_TIER))]

_INTEGER = re.compile(r"\s*[+-]?\d+\s*")


def _as_int(value: Optional[str]) -> Optional[int]:
    if value is None or not _INTEGER.fullmatch(value):
        return None
    return int(value)


def _user_id(raw: Any) -> int:
    """Path ids that are not positive integers name no user."""
    user_id = _as_int(str(raw))
    if user_id is None or user_id <= 0:
        raise UserNotFoundError()
    return user_id


@router.get("", summary="List users")
@guarded_operation("list_users", "Failed to retrieve users")
async def list_users(
    user_service: UserServiceDep,
    role: Optional[str] = Query(default=None, examples=["3"]),
    search: Optional[str] = Query(default=None),
    sort_by: Optional[str] = Query(default=None, examples=["last_name"]),
    sort_order: Optional[str] = Query(default=None, examples=["asc"]),
    per_page: Optional[str] = Query(default=None, examples=["15"]),
    page: Optional[str] = Query(default=None, examples=["1"]),
) -> JSONResponse:
    filters = UserFilters(
        role=_as_int(role),
        search=search or None,
    )
    result = await user_service.list(
        filters,
        SortSpec.parse(sort_by, sort_order),
        PageRequest.parse(_as_int(page), _as_int(per_page)),
    )
    return success_response(
        [UserOut.from_entity(user).model_dump(mode="json") for user in result.items],
        message="Users retrieved successfully",
        pagination=result.metadata(),
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a user", dependencies=writes)
@guarded_operation("create_user", "Failed to create user")
async def create_user(
    current_user: CurrentUser,
    user_service: UserServiceDep,
    payload: Optional[UserPayload] = None,
) -> JSONResponse:
    user = await user_service.create(
        payload.submitted() if payload else {}, actor_id=current_user.id
    )
    return success_response(
        UserOut.from_entity(user).model_dump(mode="json"),
        message="User created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/{user_id}", summary="Show a user")
@guarded_operation("show_user", "Failed to retrieve user")
async def show_user(user_id: str, user_service: UserServiceDep) -> JSONResponse:
    user = await user_service.get(_user_id(user_id))
    return success_response(
        UserOut.from_entity(user).model_dump(mode="json"),
        message="User retrieved successfully",
    )


@router.api_route(
    "/{user_id}",
    methods=["PUT", "PATCH"],
    summary="Update a user",
    dependencies=writes,
)
@guarded_operation("update_user", "Failed to update user")
async def update_user(
    user_id: str,
    current_user: CurrentUser,
    user_service: UserServiceDep,
    payload: Optional[UserPayload] = None,
) -> JSONResponse:
    user = await user_service.update(
        _user_id(user_id), payload.submitted() if payload else {}, actor_id=current_user.id
    )
    return success_response(
        UserOut.from_entity(user).model_dump(mode="json"),
        message="User updated successfully",
    )


@router.delete("/{user_id}", summary="Delete a user", dependencies=writes)
@guarded_operation("delete_user", "Failed to delete user")
async def delete_user(
    user_id: str,
    current_user: CurrentUser,
    user_service: UserServiceDep,
) -> JSONResponse:
    await user_service.delete(_user_id(user_id), actor_id=current_user.id)
    return success_response(message="User deleted successfully")
