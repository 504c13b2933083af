"""SQL catalog operations: raw queries, lineage, candidate search, conversation log"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from sqlquery.core.errors import NoResultSet
from sqlquery.core.lineage import (
    LineageRequest,
    RelationMode,
    build_candidate_search_query,
    build_conversation_upsert,
    build_lineage_query,
)
from sqlquery.core.log_sanitize import sanitize_for_log
from sqlquery.core.sql_guard import SQLGuard
from sqlquery.core.transport import QueryTransport
from sqlquery.smart_logger import SmartLogger


def as_rows(payload: Any) -> List[Dict[str, Any]]:
    """Row list from a transport payload: a JSON array or an object holding ``rows``."""
    rows = payload
    if isinstance(payload, dict) and isinstance(payload.get("rows"), list):
        rows = payload["rows"]
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise NoResultSet()
    return rows


class SqlCatalogService:
    """Runs the templated catalog queries over a single transport."""

    def __init__(
        self,
        transport: QueryTransport,
        *,
        query_database: str = "shannon",
        logging_database: str = "liffey",
        row_limit: int = 10,
        relation_mode: RelationMode = "array",
        default_source_filter: Optional[str] = "Airflow",
        guard: Optional[SQLGuard] = None,
    ):
        self.transport = transport
        self.query_database = query_database
        self.logging_database = logging_database
        self.row_limit = row_limit
        self.relation_mode = relation_mode
        self.default_source_filter = default_source_filter
        self.guard = guard or SQLGuard()

    async def execute_raw(self, query: str, args: Optional[Sequence[Any]] = None) -> Any:
        sql = self.guard.validate(query)
        SmartLogger.log(
            "INFO",
            "catalog.execute_raw",
            category="catalog.query",
            params={"sql": sql[:200], "arg_count": len(args or [])},
        )
        return await self.transport.run(self.query_database, sql, list(args or []))

    async def get_lineage(self, request: LineageRequest) -> List[Dict[str, Any]]:
        """Definitions of ``request.table_name`` and its ancestors, as (query_name, query_text) rows."""
        if request.source_filter is None and self.default_source_filter:
            request = LineageRequest(
                table_name=request.table_name,
                depth=request.depth,
                source_filter=self.default_source_filter,
            )
        sql, params = build_lineage_query(
            request,
            row_limit=self.row_limit,
            relation_mode=self.relation_mode,
        )
        SmartLogger.log(
            "INFO",
            "catalog.lineage",
            category="catalog.query",
            params={
                "table_name": request.table_name,
                "depth": request.depth,
                "source_filter": request.source_filter,
                "relation_mode": self.relation_mode,
            },
        )
        rows = as_rows(await self.transport.run(self.query_database, sql, params))
        SmartLogger.log(
            "DEBUG",
            "catalog.lineage.done",
            category="catalog.query",
            params={"table_name": request.table_name, "row_count": len(rows)},
        )
        return rows

    async def find_candidate_tables(
        self,
        measure_search_term: Optional[str],
        report_search_term: Optional[str],
    ) -> List[Dict[str, Any]]:
        """An empty or missing term yields no rows and no request."""
        if not (measure_search_term or "").strip() or not (report_search_term or "").strip():
            SmartLogger.log(
                "DEBUG",
                "catalog.candidates.empty_term",
                category="catalog.query",
                params={"measure": measure_search_term, "report": report_search_term},
            )
            return []
        sql, params = build_candidate_search_query(measure_search_term, report_search_term)
        return as_rows(await self.transport.run(self.query_database, sql, params))

    async def log_conversation(self, conversation_name: str, messages: str) -> Any:
        sql, params = build_conversation_upsert(conversation_name, messages)
        SmartLogger.log(
            "INFO",
            "catalog.log_conversation",
            category="catalog.conversation",
            params=sanitize_for_log({"conversation_name": conversation_name, "chars": len(messages)}),
        )
        return await self.transport.run(self.logging_database, sql, params)
