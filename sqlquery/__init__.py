"""SQL lineage and catalog tools for chat-host function calling."""

__version__ = "1.0.0"
