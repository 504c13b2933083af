"""Function-tool endpoints for hosts that call over HTTP"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from sqlquery.core.errors import SQLQueryToolError
from sqlquery.deps import ServiceContainer, get_services
from sqlquery.routers import to_http_exception
from sqlquery.smart_logger import SmartLogger
from sqlquery.tools import ToolExecutionError


router = APIRouter(prefix="/tools", tags=["Tools"])


class ToolCallRequest(BaseModel):
    arguments: Optional[Dict[str, Any]] = Field(default=None, description="Tool arguments matching its schema")


class ToolCallResponse(BaseModel):
    name: str
    result: Any = None


@router.get("")
async def list_tools(services: ServiceContainer = Depends(get_services)) -> List[Dict[str, Any]]:
    """Registered tools with their JSON schemas."""
    return services.tools.describe()


@router.post("/{name}", response_model=ToolCallResponse)
async def call_tool(
    name: str,
    request: ToolCallRequest,
    services: ServiceContainer = Depends(get_services),
) -> ToolCallResponse:
    try:
        result = await services.tools.call(name, request.arguments)
    except (SQLQueryToolError, ToolExecutionError) as exc:
        SmartLogger.log(
            "WARNING",
            "tools.call.error",
            category="tools.call",
            params={"tool": name, "error_type": type(exc).__name__, "error": str(exc)},
        )
        raise to_http_exception(exc)
    return ToolCallResponse(name=name, result=result)
