"""Logout endpoint: revokes the token the request was made with."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.adapters.api.envelope import success_response
from src.adapters.api.operations import guarded_operation
from src.core.dependencies.auth import CurrentAuth
from src.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Logout current user",
    responses={401: {"description": "Missing, unknown or already revoked token"}},
)
@guarded_operation("logout", "Logout failed")
async def logout_user(auth: CurrentAuth, auth_service: AuthServiceDep) -> JSONResponse:
    await auth_service.logout(auth.user, auth.token)
    return success_response(message="Logout successful")
