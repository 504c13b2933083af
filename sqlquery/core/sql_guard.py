"""Read-only guard for raw SQL submitted through the query tool"""
import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError

from sqlquery.core.errors import MissingArgument, QueryRejected


FORBIDDEN_NODES = (
    exp.Insert, exp.Update, exp.Delete, exp.Drop,
    exp.Create, exp.Alter, exp.Merge, exp.Command,
)


class SQLGuard:
    """Validates raw SQL; only enforces read-only when asked to"""

    def __init__(self, read_only: bool = False, dialect: str = "postgres"):
        self.read_only = read_only
        self.dialect = dialect

    def validate(self, sql: str) -> str:
        """
        Returns the stripped SQL.

        Raises:
            MissingArgument: empty query.
            QueryRejected: read-only mode and the SQL is not a single query.
        """
        sql = (sql or "").strip()
        if not sql:
            raise MissingArgument("query is required")
        if not self.read_only:
            return sql

        try:
            statements = [s for s in sqlglot.parse(sql, read=self.dialect) if s is not None]
        except ParseError as e:
            raise QueryRejected(f"Failed to parse SQL: {e}")

        if len(statements) != 1:
            raise QueryRejected(f"Only a single statement is allowed, got {len(statements)}")

        parsed = statements[0]
        if not isinstance(parsed, exp.Query):
            raise QueryRejected(f"Only read-only queries are allowed, got {parsed.key.upper()}")

        for node in parsed.walk():
            if isinstance(node, FORBIDDEN_NODES):
                raise QueryRejected(f"Forbidden operation: {type(node).__name__}")

        return sql
