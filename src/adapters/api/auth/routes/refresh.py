"""Token refresh endpoint."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.adapters.api.envelope import success_response
from src.adapters.api.operations import guarded_operation
from src.adapters.api.schemas import AuthData
from src.core.dependencies.auth import CurrentUser
from src.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Replace the current token",
    description="Issues a new token; the token used for this request stops working.",
    responses={401: {"description": "Missing, unknown or revoked token"}},
)
@guarded_operation("refresh_token", "Token refresh failed")
async def refresh_token(current_user: CurrentUser, auth_service: AuthServiceDep) -> JSONResponse:
    session = await auth_service.refresh(current_user)
    return success_response(
        AuthData.from_session(session).model_dump(mode="json"),
        message="Token refreshed successfully",
    )
