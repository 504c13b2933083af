"""Argument models for the function tools; their JSON schemas are what the host sees."""
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


DEPTH_DESCRIPTION = (
    "This is the number of levels of provenance to pull the CREATE TABLE AS definition. "
    "If the value is 2, it will pull the DDL of the original table, parent tables, and "
    "grandparent tables. If the value is 0, it will pull the DDL of the original table only. "
    "The default value is 1."
)


class SqlQueryArgs(BaseModel):
    query: str = Field(..., description="The SQL query to execute against the configured database.")
    args: List[Optional[str]] = Field(
        default_factory=list,
        description="The arguments for parameterized SQL queries.",
    )

    @field_validator("args", mode="before")
    @classmethod
    def _stringify_args(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [v if isinstance(v, str) or v is None else str(v) for v in value]
        return value


class TableDefinitionArgs(BaseModel):
    table_name: str = Field(..., description="The SQL table for which the source code is sought.")
    recursive_depth: int = Field(
        default=1,
        ge=0,
        validation_alias=AliasChoices("recursive_depth", "depth"),
        description=DEPTH_DESCRIPTION,
    )
    source_filter: Optional[str] = Field(
        default=None,
        description="Only follow ancestors produced by this pipeline tool (e.g. 'Airflow'). "
                    "Empty string disables the filter; omitted uses the configured default.",
    )

    @field_validator("recursive_depth", mode="before")
    @classmethod
    def _default_depth(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 1
        return value


class CandidateSearchArgs(BaseModel):
    # Absent terms are tolerated and yield an empty result.
    model_config = ConfigDict(
        json_schema_extra={"required": ["measure_search_term", "report_search_term"]}
    )

    measure_search_term: Optional[str] = Field(
        default=None,
        description="A whole or partial name of a measure for which the table name to which it "
                    "belongs is sought. Cannot be empty",
    )
    report_search_term: Optional[str] = Field(
        default=None,
        description="A whole or partial name of the report to which the measure belongs. Cannot be empty.",
    )


class BlobUrlArgs(BaseModel):
    blobName: str = Field(..., description="The blob prefix at which the file is located.")


class WeatherArgs(BaseModel):
    location: Optional[str] = Field(
        default=None,
        description="City name to report on. Defaults to the configured preferred location.",
    )
