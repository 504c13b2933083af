from .registry import FunctionTool, ToolExecutionError, ToolRegistrar, ToolRegistry, parse_arguments
from .commands import SlashCommand, SlashCommandArgument, SlashCommandRegistry
from .definitions import ToolServices, register_function_tools, register_slash_commands


__all__ = [
    "FunctionTool",
    "ToolExecutionError",
    "ToolRegistrar",
    "ToolRegistry",
    "parse_arguments",
    "SlashCommand",
    "SlashCommandArgument",
    "SlashCommandRegistry",
    "ToolServices",
    "register_function_tools",
    "register_slash_commands",
]
