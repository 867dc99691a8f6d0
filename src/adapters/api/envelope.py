"""JSON envelope shared by every response.

Success: ``{"status": "success", "message", "data"?, "pagination"?}``.
Error: ``{"status": "error", "message", "errors"?}`` plus any extra keys such
as ``retry_after``.
"""

from typing import Any, Dict, List, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette import status


def success_response(
    data: Any = None,
    message: str = "Success",
    status_code: int = status.HTTP_200_OK,
    pagination: Optional[Mapping[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {"status": "success", "message": message}
    if data is not None:
        content["data"] = data
    if pagination is not None:
        content["pagination"] = dict(pagination)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def error_response(
    message: str,
    status_code: int,
    errors: Optional[Mapping[str, List[str]]] = None,
    headers: Optional[Mapping[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    content: Dict[str, Any] = {"status": "error", "message": message}
    if errors:
        content["errors"] = dict(errors)
    content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers=dict(headers) if headers else None,
    )
