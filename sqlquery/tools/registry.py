"""Function-tool registration: the narrow interface a chat host needs"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Type

from pydantic import BaseModel, ValidationError

from sqlquery.core.errors import InvalidArgument, MissingArgument
from sqlquery.smart_logger import SmartLogger


class ToolExecutionError(Exception):
    """Raised for tools or commands that are not registered."""


def _no_message(arguments: Dict[str, Any]) -> str:
    return ""


@dataclass
class FunctionTool:
    """A callable action: argument model (its JSON schema), handler and display formatter."""

    name: str
    display_name: str
    description: str
    parameters: Type[BaseModel]
    action: Callable[[Any], Awaitable[Any]]
    format_message: Callable[[Dict[str, Any]], str] = field(default=_no_message)

    def schema(self) -> Dict[str, Any]:
        return self.parameters.model_json_schema()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "parameters": self.schema(),
        }


class ToolRegistrar(Protocol):
    def register(self, tool: FunctionTool) -> None:
        ...


def parse_arguments(model: Type[BaseModel], arguments: Optional[Dict[str, Any]]) -> BaseModel:
    """
    Validate raw tool arguments against ``model``.

    Raises:
        MissingArgument: no arguments, or a required field is absent.
        InvalidArgument: any other validation failure.
    """
    if arguments is None:
        raise MissingArgument("No arguments provided")
    try:
        return model.model_validate(arguments)
    except ValidationError as exc:
        missing = [
            ".".join(str(part) for part in error["loc"])
            for error in exc.errors()
            if error["type"] == "missing"
        ]
        if missing:
            raise MissingArgument(f"Missing required argument(s): {', '.join(missing)}") from exc
        raise InvalidArgument(str(exc)) from exc


class ToolRegistry:
    """In-process registrar and dispatcher for function tools"""

    def __init__(self):
        self._tools: Dict[str, FunctionTool] = {}

    def register(self, tool: FunctionTool) -> None:
        if tool.name in self._tools:
            SmartLogger.log("WARNING", "tools.register.replaced", category="tools.registry", params={"name": tool.name})
        self._tools[tool.name] = tool

    def get(self, name: str) -> FunctionTool:
        if name not in self._tools:
            raise ToolExecutionError(f"Unsupported tool: {name}")
        return self._tools[name]

    def list_tools(self) -> List[FunctionTool]:
        return list(self._tools.values())

    def describe(self) -> List[Dict[str, Any]]:
        return [tool.to_dict() for tool in self._tools.values()]

    async def call(self, name: str, arguments: Optional[Dict[str, Any]]) -> Any:
        tool = self.get(name)
        parsed = parse_arguments(tool.parameters, arguments)
        SmartLogger.log(
            "INFO",
            tool.format_message(arguments or {}) or f"tools.call.{name}",
            category="tools.call",
            params={"tool": name},
        )
        return await tool.action(parsed)
