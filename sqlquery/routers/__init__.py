from fastapi import HTTPException

from sqlquery.core.errors import (
    InvalidArgument,
    Misconfigured,
    MissingArgument,
    NoResultSet,
    QueryRejected,
    RequestFailed,
)
from sqlquery.tools import ToolExecutionError


def to_http_exception(exc: Exception) -> HTTPException:
    """Map the error taxonomy onto HTTP status codes."""
    if isinstance(exc, ToolExecutionError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (MissingArgument, InvalidArgument)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, QueryRejected):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, Misconfigured):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (RequestFailed, NoResultSet)):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=f"Unexpected error: {exc}")
