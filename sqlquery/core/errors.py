"""Error taxonomy shared by transports, services and tools"""


class SQLQueryToolError(Exception):
    """Base class for errors raised to the tool or command caller"""
    pass


class RequestFailed(SQLQueryToolError):
    """Raised when the transport call fails or returns a non-success status"""

    def __init__(self, message: str = "Failed to get query", *, status: int | None = None):
        super().__init__(message)
        self.status = status


class NoResultSet(SQLQueryToolError):
    """Raised when the decoded payload is absent or has an unexpected shape"""

    def __init__(self, message: str = "No result set"):
        super().__init__(message)


class MissingArgument(SQLQueryToolError):
    """Raised when a required tool or command argument is absent"""
    pass


class Misconfigured(SQLQueryToolError):
    """Raised when required connection settings are unset"""
    pass


class QueryRejected(SQLQueryToolError):
    """Raised when the read-only guard refuses a raw query"""
    pass


class InvalidArgument(SQLQueryToolError):
    """Raised when a tool or command argument has the wrong type or value"""
    pass
