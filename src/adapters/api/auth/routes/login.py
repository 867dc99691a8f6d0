"""Login endpoint.

Exchanges an email and password for a bearer token. The response never
reveals whether the email exists: an unknown address and a wrong password
produce the same 422 on the ``email`` field.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from slowapi.util import get_remote_address

from src.adapters.api.envelope import success_response
from src.adapters.api.operations import guarded_operation
from src.adapters.api.schemas import AuthData, LoginRequest
from src.core.rate_limit import rate_limit
from src.core.rate_limiting import AUTH_TIER
from src.infrastructure.dependency_injection.auth_dependencies import AuthServiceDep

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_200_OK,
    summary="Authenticate a user",
    description="Checks the credentials and issues a new token, revoking any previous one.",
    dependencies=[Depends(rate_limit(AUTH_TIER))],
    responses={
        422: {"description": "Missing fields or incorrect credentials"},
        429: {"description": "Too many authentication attempts"},
    },
)
@guarded_operation("login", "Login failed")
async def login_user(
    request: Request,
    auth_service: AuthServiceDep,
    payload: Optional[LoginRequest] = None,
) -> JSONResponse:
    credentials = payload.model_dump() if payload else {}
    session = await auth_service.login(
        credentials.get("email"),
        credentials.get("password"),
        client_ip=get_remote_address(request),
        user_agent=request.headers.get("user-agent"),
    )
    return success_response(
        AuthData.from_session(session).model_dump(mode="json"),
        message="Login successful",
    )
