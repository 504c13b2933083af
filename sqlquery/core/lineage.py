"""
Lineage and catalog query builders over the ``frc_sql_code`` definitions table.

Every caller-supplied value is bound as a positional parameter ($1, $2, ...);
only the query shape is fixed text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from sqlquery.core.errors import MissingArgument


# Report-facing, document-model and permission tables never appear in lineage.
DENYLIST_PATTERNS: Tuple[str, ...] = ("rpt__%", "%_docmodel_%", "f%", "%permissions")

# Contributing relation extracted from free-form definition text.
RELATION_REGEX = r'(?:FROM|JOIN)\s+([A-Za-z0-9_."]+)'

DATA_MUTATION_MARKER = "INSERT INTO"

RelationMode = Literal["array", "regex"]


@dataclass
class LineageRequest:
    table_name: str
    depth: int = 1
    source_filter: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.table_name, str) or not self.table_name.strip():
            raise MissingArgument("table_name is required")
        if isinstance(self.depth, bool) or not isinstance(self.depth, int):
            raise ValueError(f"depth must be an integer, got {self.depth!r}")
        if self.depth < 0:
            raise ValueError(f"depth must be non-negative, got {self.depth}")


@dataclass
class LineageRow:
    query_name: str
    query_text: str
    query_source: Optional[str] = None
    depth: Optional[int] = None
    prior_relation: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "LineageRow":
        return cls(
            query_name=str(record.get("query_name") or ""),
            query_text=str(record.get("query_text") or ""),
            query_source=record.get("query_source"),
            depth=record.get("recursive_depth"),
            prior_relation=record.get("prior_relation"),
        )


class _Binder:
    """Collects positional parameters and hands out their placeholders."""

    def __init__(self):
        self.params: List[Any] = []

    def bind(self, value: Any, cast: str = "text") -> str:
        self.params.append(value)
        return f"${len(self.params)}::{cast}"


def _denylist_clause(binder: _Binder, column: str) -> str:
    return "\n".join(
        f"AND {column} NOT LIKE {binder.bind(pattern)}" for pattern in DENYLIST_PATTERNS
    )


def _relation_join(alias: str, mode: RelationMode) -> str:
    """Outer lateral join exposing ``rel.contributing_table``; rows without relations keep a NULL."""
    prefix = f"{alias}." if alias else ""
    if mode == "array":
        source = f"UNNEST({prefix}query_relations)"
    elif mode == "regex":
        source = f"(SELECT (regexp_matches({prefix}query_text, '{RELATION_REGEX}', 'gi'))[1])"
    else:
        raise ValueError(f"Unsupported relation mode: {mode!r}")
    return f"LEFT JOIN LATERAL {source} AS rel(contributing_table) ON true"


def build_lineage_query(
    request: LineageRequest,
    *,
    row_limit: int = 10,
    relation_mode: RelationMode = "array",
) -> Tuple[str, List[Any]]:
    """
    Build the recursive traversal for ``request.table_name``.

    The expansion step runs while the frontier depth is strictly below
    ``request.depth``, so depth 0 yields only the seed definition and depth N
    reaches ancestors N joins away.

    Returns:
        (sql, params) with params in placeholder order.
    """
    binder = _Binder()
    seed_name = binder.bind(request.table_name)
    depth_bound = binder.bind(request.depth, "int")

    filters = []
    if request.source_filter:
        filters.append(f"AND fsc.query_source = {binder.bind(request.source_filter)}")
    filters.append(_denylist_clause(binder, "fsc.query_name"))
    filter_sql = "\n".join(filters)

    sql = f"""WITH RECURSIVE res AS (
SELECT DISTINCT
    0 AS recursive_depth
,   NULL::text AS prior_relation
,   query_name
,   query_text
,   query_source
,   rel.contributing_table
FROM frc_sql_code
{_relation_join("", relation_mode)}
WHERE query_name = {seed_name}

UNION ALL

SELECT DISTINCT
    res.recursive_depth + 1 AS recursive_depth
,   res.query_name AS prior_relation
,   fsc.query_name
,   fsc.query_text
,   fsc.query_source
,   rel.contributing_table
FROM res
JOIN frc_sql_code fsc
ON res.contributing_table = fsc.query_name
AND res.query_name != fsc.query_name
{_relation_join("fsc", relation_mode)}
WHERE res.recursive_depth < {depth_bound}
{filter_sql}
)

SELECT DISTINCT
    res.query_name
,   res.query_text
FROM res
LIMIT {int(row_limit)};
"""
    return sql, binder.params


def build_candidate_search_query(
    measure_search_term: str,
    report_search_term: str,
) -> Tuple[str, List[Any]]:
    """Full-text search for tables whose definition mentions a measure and whose name matches a report."""
    binder = _Binder()
    measure = binder.bind(measure_search_term)
    report = binder.bind(report_search_term)
    sql = f"""SELECT query_name
, query_source
FROM frc_sql_code
WHERE query_text @@ websearch_to_tsquery({measure})
AND query_name @@ websearch_to_tsquery({report})
{_denylist_clause(binder, "query_name")}
;
"""
    return sql, binder.params


def build_conversation_upsert(conversation_name: str, messages: str) -> Tuple[str, List[Any]]:
    binder = _Binder()
    sql = f"""INSERT INTO sillytavern_logging (conversation_name, updated_at, messages)
VALUES ({binder.bind(conversation_name)}, CURRENT_TIMESTAMP, {binder.bind(messages)})
ON CONFLICT (conversation_name)
DO UPDATE
SET messages = EXCLUDED.messages
, updated_at = CURRENT_TIMESTAMP
"""
    return sql, binder.params


def clean_definition_text(query_text: str) -> str:
    """Collapse doubled newlines and drop everything from the first INSERT INTO."""
    collapsed = query_text.replace("\n\n", "\n")
    return collapsed.split(DATA_MUTATION_MARKER)[0].strip()


def format_definition(row: LineageRow) -> str:
    return f"###{row.query_name}\n\n```sql\n{clean_definition_text(row.query_text)}\n```\n\n"


def format_definitions_markdown(rows: Iterable[Dict[str, Any]]) -> str:
    return "\n".join(format_definition(LineageRow.from_record(row)) for row in rows)
