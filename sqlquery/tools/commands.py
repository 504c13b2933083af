"""Slash-command registration and dispatch"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlquery.core.errors import MissingArgument
from sqlquery.smart_logger import SmartLogger
from sqlquery.tools.registry import ToolExecutionError


@dataclass
class SlashCommandArgument:
    description: str
    name: Optional[str] = None
    is_required: bool = False
    type_list: List[str] = field(default_factory=lambda: ["string"])
    default_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "description": self.description,
            "isRequired": self.is_required,
            "typeList": list(self.type_list),
        }
        if self.name is not None:
            data["name"] = self.name
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        return data


CommandCallback = Callable[[Dict[str, str], str], Awaitable[str]]


@dataclass
class SlashCommand:
    name: str
    callback: CommandCallback
    help_string: str = ""
    returns: str = ""
    unnamed_argument_list: List[SlashCommandArgument] = field(default_factory=list)
    named_argument_list: List[SlashCommandArgument] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "helpString": self.help_string,
            "returns": self.returns,
            "unnamedArgumentList": [a.to_dict() for a in self.unnamed_argument_list],
            "namedArgumentList": [a.to_dict() for a in self.named_argument_list],
        }


class SlashCommandRegistry:
    """Parses nothing itself: the host hands over named args and the unnamed value."""

    def __init__(self):
        self._commands: Dict[str, SlashCommand] = {}

    def add_command_object(self, command: SlashCommand) -> None:
        self._commands[command.name] = command

    def get(self, name: str) -> SlashCommand:
        if name not in self._commands:
            raise ToolExecutionError(f"Unsupported command: {name}")
        return self._commands[name]

    def list_commands(self) -> List[SlashCommand]:
        return list(self._commands.values())

    async def execute(self, name: str, named_args: Optional[Dict[str, Any]] = None, value: str = "") -> str:
        command = self.get(name)
        value = "" if value is None else str(value)

        for argument in command.unnamed_argument_list:
            if argument.is_required and not value.strip():
                raise MissingArgument(f"/{name}: {argument.description} is required")

        resolved: Dict[str, str] = {}
        for key, raw in (named_args or {}).items():
            if raw is not None:
                resolved[key] = str(raw)
        for argument in command.named_argument_list:
            if argument.name in resolved:
                continue
            if argument.default_value is not None:
                resolved[argument.name] = argument.default_value
            elif argument.is_required:
                raise MissingArgument(f"/{name}: named argument '{argument.name}' is required")

        SmartLogger.log(
            "INFO",
            f"commands.execute.{name}",
            category="commands.execute",
            params={"named": sorted(resolved.keys()), "value_chars": len(value)},
        )
        return await command.callback(resolved, value)
