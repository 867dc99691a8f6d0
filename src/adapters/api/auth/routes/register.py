"""Registration endpoint: creates a user and signs them in."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.adapters.api.envelope import success_response
from src.adapters.api.operations import guarded_operation
from src.adapters.api.schemas import AuthData, UserPayload
from src.core.rate_limit import rate_limit
from src.core.rate_limiting import AUTH_TIER
from src.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    dependencies=[Depends(rate_limit(AUTH_TIER))],
    responses={
        422: {"description": "Validation failed or email already taken"},
        429: {"description": "Too many authentication attempts"},
    },
)
@guarded_operation("register", "Registration failed")
async def register_user(
    auth_service: AuthServiceDep,
    payload: Optional[UserPayload] = None,
) -> JSONResponse:
    session = await auth_service.register(payload.submitted() if payload else {})
    return success_response(
        AuthData.from_session(session).model_dump(mode="json"),
        message="Registration successful",
        status_code=status.HTTP_201_CREATED,
    )
