"""
Data models for mysqlgate.

Defines the values passed between the connection resolver, the statement
guard, the executor and the CSV encoder.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.engine import URL

# Closed set of values a result cell may hold after conversion.
RowValue = Union[str, int, float, Decimal, bool, None]


def coerce_value(value: Any) -> RowValue:
    """Convert a driver-native column value to a RowValue.

    Byte sequences are decoded as UTF-8 text. Types outside the closed set
    (datetime, date, timedelta, set...) are rendered with ``str()``.
    """
    if value is None or isinstance(value, (str, bool, int, float, Decimal)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


class StatementIntent(str, Enum):
    """Statement category declared by a tool before execution."""

    UNCHECKED = ""
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @property
    def is_mutation(self) -> bool:
        return self in MUTATION_INTENTS


MUTATION_INTENTS = frozenset(
    {StatementIntent.INSERT, StatementIntent.UPDATE, StatementIntent.DELETE}
)


class PlanRow(BaseModel):
    """
    One row of MySQL EXPLAIN output.

    ``select_type`` is the plan's own statement-shape label; for DML it is
    INSERT, UPDATE or DELETE, for queries SIMPLE, PRIMARY, SUBQUERY, ...
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    select_type: str | None = None
    table: str | None = None
    partitions: str | None = None
    type: str | None = None
    possible_keys: str | None = None
    key: str | None = None
    key_len: str | None = None
    ref: str | None = None
    rows: str | None = None
    filtered: str | None = None
    extra: str | None = Field(default=None, alias="Extra")

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str | None:
        if v is None:
            return None
        return str(coerce_value(v))

    @property
    def classification(self) -> str | None:
        return self.select_type


@dataclass
class ResultSet:
    """Ordered headers plus rows mapping each header to a value."""

    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, RowValue]] = field(default_factory=list)


@dataclass
class ExecSummary:
    """Outcome of a mutating statement."""

    rows_affected: int
    last_insert_id: int | None = None

    def to_text(self) -> str:
        if self.last_insert_id is None:
            return f"{self.rows_affected} rows affected"
        return f"{self.rows_affected} rows affected, last insert id: {self.last_insert_id}"


@dataclass(frozen=True)
class ConnectionDescriptor:
    """A resolved SQLAlchemy URL and where it came from (tool, config, params)."""

    url: URL
    source: str

    def masked(self) -> str:
        return self.url.render_as_string(hide_password=True)
