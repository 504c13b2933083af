"""Slash-command endpoints"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from sqlquery.core.errors import SQLQueryToolError
from sqlquery.deps import ServiceContainer, get_services
from sqlquery.routers import to_http_exception
from sqlquery.smart_logger import SmartLogger
from sqlquery.tools import ToolExecutionError


router = APIRouter(prefix="/commands", tags=["Commands"])


class CommandRequest(BaseModel):
    value: str = Field(default="", description="Unnamed argument text")
    args: Dict[str, Any] = Field(default_factory=dict, description="Named arguments")


class CommandResponse(BaseModel):
    name: str
    output: str


@router.get("")
async def list_commands(services: ServiceContainer = Depends(get_services)) -> List[Dict[str, Any]]:
    return [command.to_dict() for command in services.commands.list_commands()]


@router.post("/{name}", response_model=CommandResponse)
async def run_command(
    name: str,
    request: CommandRequest,
    services: ServiceContainer = Depends(get_services),
) -> CommandResponse:
    try:
        output = await services.commands.execute(name, request.args, request.value)
    except (SQLQueryToolError, ToolExecutionError) as exc:
        SmartLogger.log(
            "WARNING",
            "commands.execute.error",
            category="commands.execute",
            params={"command": name, "error_type": type(exc).__name__, "error": str(exc)},
        )
        raise to_http_exception(exc)
    return CommandResponse(name=name, output=output)
