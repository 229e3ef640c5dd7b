"""In-memory table catalog holding schemas, rows and index definitions."""

from __future__ import annotations

import string
from dataclasses import dataclass, field

from atlasdb.ast import (
    ColumnDefinition,
    ColumnType,
    CreateTableStatement,
    DeleteStatement,
    InsertStatement,
    SelectStatement,
    UpdateStatement,
    Value,
)

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def normalize_identifier(identifier: str) -> str:
    """Fold ASCII letters to lower case for case-insensitive name lookup."""
    return identifier.translate(_ASCII_LOWER)


class CatalogError(Exception):
    """A catalog operation failed; ``code`` identifies the failure."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


@dataclass
class SelectResult:
    message: str
    columns: list[ColumnDefinition]
    rows: list[list[Value]]


@dataclass(frozen=True)
class SecondaryIndexDefinition:
    name: str
    column_name: str


@dataclass
class TableSnapshot:
    name: str
    columns: list[ColumnDefinition]
    secondary_indexes: list[SecondaryIndexDefinition]
    rows: list[list[Value]]


@dataclass
class _Table:
    name: str
    columns: list[ColumnDefinition]
    primary_key_index: int | None
    rows: list[list[Value]] = field(default_factory=list)
    primary_key_values: set = field(default_factory=set)
    secondary_indexes: list[SecondaryIndexDefinition] = field(default_factory=list)
    secondary_index_names: set[str] = field(default_factory=set)
    secondary_indexed_columns: set[str] = field(default_factory=set)

    def column_index(self, column_name: str) -> int | None:
        wanted = normalize_identifier(column_name)
        return next(
            (i for i, c in enumerate(self.columns) if normalize_identifier(c.name) == wanted),
            None,
        )

    def find_row(self, column_index: int, value: Value) -> int | None:
        return next(
            (i for i, row in enumerate(self.rows) if _literal_equals(row[column_index], value)),
            None,
        )


def _literal_equals(lhs: Value, rhs: Value) -> bool:
    return type(lhs) is type(rhs) and lhs == rhs


def _check_type(value: Value, column: ColumnDefinition) -> None:
    if not column.type.accepts(value):
        raise CatalogError(
            "E2005", f"type mismatch at column '{column.name}': expected {column.type.name}"
        )


def _index_sort_key(index: SecondaryIndexDefinition) -> str:
    return normalize_identifier(index.name)


class MemoryCatalog:
    """Tables keyed by case-insensitive name, with rows kept in insertion order."""

    def __init__(self) -> None:
        self._tables: dict[str, _Table] = {}

    def _table(self, table_name: str) -> _Table:
        table = self._tables.get(normalize_identifier(table_name))
        if table is None:
            raise CatalogError("E2003", f"table not found: {table_name}")
        return table

    def clear(self) -> None:
        """Remove every table."""
        self._tables.clear()

    def create_table(self, statement: CreateTableStatement) -> str:
        key = normalize_identifier(statement.table_name)
        if key in self._tables:
            raise CatalogError("E2001", f"table already exists: {statement.table_name}")

        seen: set[str] = set()
        primary_key_index: int | None = None
        for index, column in enumerate(statement.columns):
            normalized = normalize_identifier(column.name)
            if normalized in seen:
                raise CatalogError("E2002", f"duplicate column name: {column.name}")
            seen.add(normalized)
            if column.primary_key:
                if primary_key_index is not None:
                    raise CatalogError("E2010", "multiple PRIMARY KEY columns are not supported")
                primary_key_index = index

        self._tables[key] = _Table(
            name=statement.table_name,
            columns=[ColumnDefinition(c.name, c.type, c.primary_key) for c in statement.columns],
            primary_key_index=primary_key_index,
        )
        return f"created table '{statement.table_name}'"

    def insert_row(self, statement: InsertStatement) -> str:
        table = self._table(statement.table_name)
        if len(statement.values) != len(table.columns):
            raise CatalogError(
                "E2004",
                f"value count mismatch: expected {len(table.columns)} but got {len(statement.values)}",
            )
        for column, value in zip(table.columns, statement.values):
            _check_type(value, column)

        if table.primary_key_index is not None:
            key = statement.values[table.primary_key_index]
            if key in table.primary_key_values:
                raise CatalogError("E2006", f"duplicate primary key for table '{table.name}'")
            table.primary_key_values.add(key)

        table.rows.append(list(statement.values))
        return f"inserted 1 row into '{table.name}'"

    def select_all(self, statement: SelectStatement) -> SelectResult:
        table = self._table(statement.table_name)
        return SelectResult(
            message=f"selected {len(table.rows)} row(s) from '{table.name}'",
            columns=list(table.columns),
            rows=[list(row) for row in table.rows],
        )

    def create_secondary_index(self, table_name: str, index_name: str, column_name: str) -> str:
        table = self._table(table_name)
        normalized_index = normalize_identifier(index_name)
        if not normalized_index:
            raise CatalogError("E2011", "secondary index name is empty")
        if normalized_index in table.secondary_index_names:
            raise CatalogError("E2013", f"secondary index already exists: {index_name}")

        column_index = table.column_index(column_name)
        if column_index is None:
            raise CatalogError("E2012", f"secondary index column not found: {column_name}")

        column = table.columns[column_index]
        normalized_column = normalize_identifier(column.name)
        if normalized_column in table.secondary_indexed_columns:
            raise CatalogError("E2014", f"secondary index already exists on column: {column.name}")

        table.secondary_indexes.append(SecondaryIndexDefinition(index_name, column.name))
        table.secondary_index_names.add(normalized_index)
        table.secondary_indexed_columns.add(normalized_column)
        return f"created secondary index '{index_name}' on '{table.name}.{column.name}'"

    def list_secondary_indexes(self, table_name: str) -> list[SecondaryIndexDefinition]:
        table = self._table(table_name)
        return sorted(table.secondary_indexes, key=_index_sort_key)

    def _primary_key_column(self, table: _Table, column_name: str) -> int:
        index = table.column_index(column_name)
        if index is None:
            raise CatalogError("E2007", f"unknown column: {column_name}")
        if index != table.primary_key_index:
            raise CatalogError("E2008", f"WHERE column must be PRIMARY KEY: {column_name}")
        return index

    def update_where_equals(self, statement: UpdateStatement) -> str:
        table = self._table(statement.table_name)
        assignment_index = table.column_index(statement.assignment.column_name)
        if assignment_index is None:
            raise CatalogError("E2007", f"unknown column: {statement.assignment.column_name}")
        predicate_index = self._primary_key_column(table, statement.predicate.column_name)

        _check_type(statement.assignment.value, table.columns[assignment_index])
        _check_type(statement.predicate.value, table.columns[predicate_index])

        row_index = table.find_row(predicate_index, statement.predicate.value)
        if row_index is None:
            raise CatalogError("E2009", f"row not found for key match in table '{table.name}'")

        row = table.rows[row_index]
        if assignment_index == table.primary_key_index:
            current = row[assignment_index]
            replacement = statement.assignment.value
            if not _literal_equals(current, replacement):
                if replacement in table.primary_key_values:
                    raise CatalogError("E2006", f"duplicate primary key for table '{table.name}'")
                table.primary_key_values.discard(current)
                table.primary_key_values.add(replacement)

        row[assignment_index] = statement.assignment.value
        return f"updated 1 row in '{table.name}'"

    def delete_where_equals(self, statement: DeleteStatement) -> str:
        table = self._table(statement.table_name)
        predicate_index = self._primary_key_column(table, statement.predicate.column_name)
        _check_type(statement.predicate.value, table.columns[predicate_index])

        row_index = table.find_row(predicate_index, statement.predicate.value)
        if row_index is None:
            raise CatalogError("E2009", f"row not found for key match in table '{table.name}'")

        removed = table.rows.pop(row_index)
        if table.primary_key_index is not None:
            table.primary_key_values.discard(removed[table.primary_key_index])
        return f"deleted 1 row from '{table.name}'"

    def snapshot_tables(self) -> list[TableSnapshot]:
        """Copies of every table, ordered by normalized table name."""
        return [
            TableSnapshot(
                name=table.name,
                columns=list(table.columns),
                secondary_indexes=sorted(table.secondary_indexes, key=_index_sort_key),
                rows=[list(row) for row in table.rows],
            )
            for _, table in sorted(self._tables.items())
        ]

    def has_table(self, table_name: str) -> bool:
        return normalize_identifier(table_name) in self._tables

    def row_count(self, table_name: str) -> int:
        table = self._tables.get(normalize_identifier(table_name))
        return 0 if table is None else len(table.rows)


__all__ = [
    "CatalogError",
    "ColumnType",
    "MemoryCatalog",
    "SecondaryIndexDefinition",
    "SelectResult",
    "TableSnapshot",
    "normalize_identifier",
]