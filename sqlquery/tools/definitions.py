"""The function tools and slash commands this service contributes to a host."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlquery.core.blob_storage import BlobUrlClient
from sqlquery.core.errors import InvalidArgument
from sqlquery.core.lineage import LineageRequest, format_definitions_markdown
from sqlquery.core.sql_catalog import SqlCatalogService
from sqlquery.core.weather import WeatherClient, format_conditions
from sqlquery.tools.commands import SlashCommand, SlashCommandArgument, SlashCommandRegistry
from sqlquery.tools.registry import FunctionTool, ToolRegistrar
from sqlquery.tools.schemas import (
    DEPTH_DESCRIPTION,
    BlobUrlArgs,
    CandidateSearchArgs,
    SqlQueryArgs,
    TableDefinitionArgs,
    WeatherArgs,
)


@dataclass
class ToolServices:
    catalog: SqlCatalogService
    blobs: BlobUrlClient
    weather: Optional[WeatherClient] = None


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _parse_depth(raw: str) -> int:
    try:
        depth = int(str(raw).strip())
    except ValueError:
        raise InvalidArgument(f"recursive_depth must be an integer, got {raw!r}")
    if depth < 0:
        raise InvalidArgument(f"recursive_depth must be non-negative, got {depth}")
    return depth


def _parse_query_args(raw: Optional[str]) -> List[Any]:
    if raw is None or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        raise InvalidArgument("args must be a JSON array")
    if not isinstance(parsed, list):
        raise InvalidArgument("args must be a JSON array")
    return parsed


def register_function_tools(registrar: ToolRegistrar, services: ToolServices) -> None:
    catalog = services.catalog

    async def get_blob_url(args: BlobUrlArgs) -> str:
        return await services.blobs.get_blob_url(args.blobName)

    registrar.register(FunctionTool(
        name="getAzureBlobUrl",
        display_name="Get Azure Blob URL",
        description="Given a blob prefix, return an SAS secured URL that allows the file at that blob "
                    "to be downloaded. The container is hard-coded and cannot be changed.",
        parameters=BlobUrlArgs,
        action=get_blob_url,
        format_message=lambda a: "Resolving blob URL..." if a.get("blobName") else "",
    ))

    async def execute_sql_query(args: SqlQueryArgs) -> Any:
        return await catalog.execute_raw(args.query, args.args)

    registrar.register(FunctionTool(
        name="ExecuteSqlQuery",
        display_name="Execute SQL Query",
        description="Execute a SQL query against the configured database.",
        parameters=SqlQueryArgs,
        action=execute_sql_query,
        format_message=lambda a: "Executing SQL query..." if a.get("query") else "",
    ))

    async def get_table_ddl(args: TableDefinitionArgs) -> List[Dict[str, Any]]:
        request = LineageRequest(
            table_name=args.table_name,
            depth=args.recursive_depth,
            source_filter=args.source_filter,
        )
        return await catalog.get_lineage(request)

    registrar.register(FunctionTool(
        name="getSQLTableDDLRecursively",
        display_name="Retrieve the definition for the table of interest and ancestor tables",
        description="Given a SQL Table name, return the `CREATE TABLE AS` DDL used to generate the data "
                    "stored in that table along with ancestor tables up to `recursive_depth` levels of "
                    "provenance.",
        parameters=TableDefinitionArgs,
        action=get_table_ddl,
        format_message=lambda a: "Retrieving SQL table definition..." if a.get("table_name") else "",
    ))

    async def find_candidate_tables(args: CandidateSearchArgs) -> List[Dict[str, Any]]:
        return await catalog.find_candidate_tables(args.measure_search_term, args.report_search_term)

    registrar.register(FunctionTool(
        name="findCandidateTableNames",
        display_name="Find Candidate Tables related to Measure and Report search terms",
        description="Given a search term for both a measure and a report, this will return a list of "
                    "potential source tables along with whether they are constructed in Airflow or "
                    "Retool. Both search terms are parsed using the PostgreSQL function "
                    "`websearch_to_tsquery`. If only one argument is provided, or an empty string is "
                    "given for one argument, this will return an empty result.",
        parameters=CandidateSearchArgs,
        action=find_candidate_tables,
        format_message=lambda a: (
            f"Searching for tables that may contain {a.get('measure_search_term')} "
            f"within a table responsible for {a.get('report_search_term')}..."
        ),
    ))

    if services.weather is not None:
        weather = services.weather

        async def get_current_weather(args: WeatherArgs) -> Dict[str, Any]:
            return await weather.current_conditions(args.location)

        registrar.register(FunctionTool(
            name="getCurrentWeather",
            display_name="Get Current Weather",
            description="Return the current weather conditions for a city, or for the configured "
                        "preferred location when none is given.",
            parameters=WeatherArgs,
            action=get_current_weather,
            format_message=lambda a: f"Checking the weather in {a.get('location') or 'the preferred location'}...",
        ))


def register_slash_commands(parser: SlashCommandRegistry, services: ToolServices) -> None:
    catalog = services.catalog

    async def get_blob_url(named: Dict[str, str], value: str) -> str:
        return _to_json(await services.blobs.get_blob_url(value))

    parser.add_command_object(SlashCommand(
        name="get-blob-url",
        help_string="This is the blob prefix",
        callback=get_blob_url,
        unnamed_argument_list=[
            SlashCommandArgument(description="Blob name", is_required=True),
        ],
        returns="The URL of a signed Azure Blob",
    ))

    async def log_conversation(named: Dict[str, str], value: str) -> str:
        await catalog.log_conversation(value, named["messages"])
        return ""

    parser.add_command_object(SlashCommand(
        name="log-conversation",
        help_string="Log the current conversation to the logging database",
        callback=log_conversation,
        returns="Nothing",
        unnamed_argument_list=[
            SlashCommandArgument(description="Conversation name", is_required=True),
        ],
        named_argument_list=[
            SlashCommandArgument(
                name="messages",
                description="These are the messages to log.",
                is_required=True,
            ),
        ],
    ))

    async def sql_query(named: Dict[str, str], value: str) -> str:
        results = await catalog.execute_raw(value, _parse_query_args(named.get("args")))
        return _to_json(results)

    parser.add_command_object(SlashCommand(
        name="sqlquery",
        help_string="This is the SQL query to be run",
        callback=sql_query,
        unnamed_argument_list=[
            SlashCommandArgument(description="Query text", is_required=True),
        ],
        named_argument_list=[
            SlashCommandArgument(
                name="args",
                description="JSON array of positional parameters ($1, $2, ...).",
            ),
        ],
        returns="a JSON with the result of the SQL query execution",
    ))

    async def get_sql_definitions(named: Dict[str, str], value: str) -> str:
        request = LineageRequest(
            table_name=value.strip(),
            depth=_parse_depth(named.get("recursive_depth", "1")),
            source_filter=named.get("source_filter"),
        )
        rows = await catalog.get_lineage(request)
        return format_definitions_markdown(rows)

    parser.add_command_object(SlashCommand(
        name="get-sql-definitions",
        help_string="Get definitions for all code contributing towards generating the named table.",
        callback=get_sql_definitions,
        unnamed_argument_list=[
            SlashCommandArgument(
                description="This is the name of the table for which the definition is sought.",
                is_required=True,
            ),
        ],
        named_argument_list=[
            SlashCommandArgument(
                name="recursive_depth",
                description=DEPTH_DESCRIPTION,
                type_list=["number"],
                default_value="1",
            ),
            SlashCommandArgument(
                name="source_filter",
                description="Only follow ancestors produced by this pipeline tool.",
            ),
        ],
        returns="Markdown with all code used to generate the requested table",
    ))

    async def find_candidate_table_names(named: Dict[str, str], value: str) -> str:
        results = await catalog.find_candidate_tables(
            named.get("measure_search_term"),
            named.get("report_search_term"),
        )
        return _to_json(results)

    parser.add_command_object(SlashCommand(
        name="find-candidate-table-names",
        help_string="Given a search term for a measure and a report, this will return a list of potential "
                    "tables in the database, along with whether they are constructed in Airflow or Retool.",
        callback=find_candidate_table_names,
        named_argument_list=[
            SlashCommandArgument(
                name="measure_search_term",
                description="A whole or partial name of a measure for which the table name to which it "
                            "belongs is sought.",
                is_required=True,
            ),
            SlashCommandArgument(
                name="report_search_term",
                description="A whole or partial name of the report to which the measure belongs.",
                is_required=True,
            ),
        ],
        returns="a JSON with the result of the SQL query execution",
    ))

    if services.weather is not None:
        weather = services.weather

        async def current_weather(named: Dict[str, str], value: str) -> str:
            return format_conditions(await weather.current_conditions(value or None))

        parser.add_command_object(SlashCommand(
            name="weather",
            help_string="Current conditions for a city (defaults to the preferred location).",
            callback=current_weather,
            unnamed_argument_list=[
                SlashCommandArgument(description="City name"),
            ],
            returns="A one-line weather summary",
        ))
