"""Statement and schema types produced by the SQL front end."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

Value = Union[int, str]


class ColumnType(enum.Enum):
    """Column data types; the values are the on-disk type tags."""

    INTEGER = 0
    TEXT = 1

    def accepts(self, value: object) -> bool:
        """Return True if ``value`` is a literal of this column type."""
        if self is ColumnType.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        return isinstance(value, str)


@dataclass
class ColumnDefinition:
    name: str
    type: ColumnType
    primary_key: bool = False


@dataclass
class CreateTableStatement:
    table_name: str
    columns: list[ColumnDefinition] = field(default_factory=list)


@dataclass
class InsertStatement:
    table_name: str
    values: list[Value] = field(default_factory=list)


@dataclass
class SelectStatement:
    table_name: str


@dataclass
class Assignment:
    column_name: str
    value: Value = 0


@dataclass
class EqualityPredicate:
    column_name: str
    value: Value = 0


@dataclass
class UpdateStatement:
    table_name: str
    assignment: Assignment
    predicate: EqualityPredicate


@dataclass
class DeleteStatement:
    table_name: str
    predicate: EqualityPredicate


Statement = Union[
    CreateTableStatement,
    InsertStatement,
    SelectStatement,
    UpdateStatement,
    DeleteStatement,
]