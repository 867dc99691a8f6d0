"""Profile of the authenticated user."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.adapters.api.envelope import success_response
from src.adapters.api.operations import guarded_operation
from src.adapters.api.schemas import UserOut
from src.core.dependencies.auth import CurrentUser
from src.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.get("", summary="Return the authenticated user")
@guarded_operation("me", "Failed to retrieve user data")
async def read_current_user(current_user: CurrentUser, auth_service: AuthServiceDep) -> JSONResponse:
    user = await auth_service.me(current_user)
    return success_response(
        UserOut.from_entity(user).model_dump(mode="json"),
        message="User data retrieved successfully",
    )
