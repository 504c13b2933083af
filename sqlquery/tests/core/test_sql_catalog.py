# python -m pytest sqlquery/tests/core/test_sql_catalog.py -v

import pytest

from sqlquery.core.errors import NoResultSet, QueryRejected, RequestFailed
from sqlquery.core.lineage import LineageRequest
from sqlquery.core.sql_catalog import SqlCatalogService, as_rows
from sqlquery.core.sql_guard import SQLGuard


class DummyTransport:
    def __init__(self, payload=None, error=None):
        self.payload = [] if payload is None else payload
        self.error = error
        self.calls = []

    async def run(self, database, query, params=()):
        self.calls.append((database, query, list(params)))
        if self.error is not None:
            raise self.error
        return self.payload


class TestAsRows:
    def test_list_of_objects(self):
        assert as_rows([{"a": 1}]) == [{"a": 1}]

    def test_empty_list(self):
        assert as_rows([]) == []

    def test_object_with_rows(self):
        assert as_rows({"rows": [{"a": 1}], "row_count": 1}) == [{"a": 1}]

    @pytest.mark.parametrize("payload", [{"status": "ok"}, [1, 2], "text", None])
    def test_not_rows(self, payload):
        with pytest.raises(NoResultSet):
            as_rows(payload)


class TestGetLineage:
    @pytest.mark.asyncio
    async def test_runs_against_query_database(self):
        rows = [{"query_name": "orders", "query_text": "SELECT 1"}]
        transport = DummyTransport(rows)
        service = SqlCatalogService(transport, query_database="shannon")

        result = await service.get_lineage(LineageRequest(table_name="orders", depth=2))

        assert result == rows
        database, sql, params = transport.calls[0]
        assert database == "shannon"
        assert "WITH RECURSIVE" in sql
        assert params[:3] == ["orders", 2, "Airflow"]

    @pytest.mark.asyncio
    async def test_explicit_empty_filter_overrides_default(self):
        transport = DummyTransport([])
        service = SqlCatalogService(transport, default_source_filter="Airflow")

        await service.get_lineage(LineageRequest(table_name="orders", source_filter=""))

        _, sql, params = transport.calls[0]
        assert "fsc.query_source =" not in sql
        assert "Airflow" not in params

    @pytest.mark.asyncio
    async def test_row_limit_and_mode_forwarded(self):
        transport = DummyTransport([])
        service = SqlCatalogService(transport, row_limit=100, relation_mode="regex")

        await service.get_lineage(LineageRequest(table_name="orders"))

        _, sql, _ = transport.calls[0]
        assert "LIMIT 100;" in sql
        assert "regexp_matches" in sql

    @pytest.mark.asyncio
    async def test_identical_requests_issue_identical_queries(self):
        transport = DummyTransport([{"query_name": "a", "query_text": "x"}])
        service = SqlCatalogService(transport)
        request = LineageRequest(table_name="orders", depth=1)

        first = await service.get_lineage(request)
        second = await service.get_lineage(request)

        assert first == second
        assert transport.calls[0] == transport.calls[1]

    @pytest.mark.asyncio
    async def test_transport_failure_propagates(self):
        service = SqlCatalogService(DummyTransport(error=RequestFailed()))
        with pytest.raises(RequestFailed, match="Failed to get query"):
            await service.get_lineage(LineageRequest(table_name="orders"))

    @pytest.mark.asyncio
    async def test_non_row_payload(self):
        service = SqlCatalogService(DummyTransport({"status": "ok"}))
        with pytest.raises(NoResultSet):
            await service.get_lineage(LineageRequest(table_name="orders"))


class TestFindCandidateTables:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "measure, report",
        [("", "sales"), ("revenue", ""), ("  ", "sales"), (None, "sales"), ("revenue", None), (None, None)],
    )
    async def test_empty_term_returns_empty_without_request(self, measure, report):
        transport = DummyTransport([{"query_name": "everything"}])
        service = SqlCatalogService(transport)

        assert await service.find_candidate_tables(measure, report) == []
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_search_binds_terms(self):
        rows = [{"query_name": "sales_weekly", "query_source": "Airflow"}]
        transport = DummyTransport(rows)
        service = SqlCatalogService(transport)

        assert await service.find_candidate_tables("revenue", "sales") == rows
        _, sql, params = transport.calls[0]
        assert "websearch_to_tsquery" in sql
        assert params[:2] == ["revenue", "sales"]


class TestExecuteRaw:
    @pytest.mark.asyncio
    async def test_passes_args_through(self):
        transport = DummyTransport({"rows": []})
        service = SqlCatalogService(transport)

        result = await service.execute_raw("SELECT * FROM t WHERE a = $1", ["x"])

        assert result == {"rows": []}
        assert transport.calls[0] == ("shannon", "SELECT * FROM t WHERE a = $1", ["x"])

    @pytest.mark.asyncio
    async def test_read_only_guard_blocks_writes(self):
        transport = DummyTransport([])
        service = SqlCatalogService(transport, guard=SQLGuard(read_only=True))

        with pytest.raises(QueryRejected):
            await service.execute_raw("DELETE FROM t")
        assert transport.calls == []


class TestLogConversation:
    @pytest.mark.asyncio
    async def test_upsert_goes_to_logging_database(self):
        transport = DummyTransport([])
        service = SqlCatalogService(transport, logging_database="liffey")

        await service.log_conversation("standup", "[]")

        database, sql, params = transport.calls[0]
        assert database == "liffey"
        assert sql.startswith("INSERT INTO sillytavern_logging")
        assert params == ["standup", "[]"]
