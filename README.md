# atlasdb

An in-memory table catalog for a small embedded database engine. It keeps
table schemas, typed rows, primary-key uniqueness and secondary index
definitions. It can write the whole catalog out as a compact binary
snapshot and read it back.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Statements

Statements are plain dataclasses in `atlasdb.ast`:

- `ColumnType`: `INTEGER` or `TEXT`; `ColumnType.accepts(value)` tells
  whether a Python value fits the type (`bool` is not accepted as an
  integer).
- `ColumnDefinition`: a name, a type and a primary-key flag.
- `CreateTableStatement`, `InsertStatement`, `SelectStatement`,
  `UpdateStatement` (with an `Assignment` and an `EqualityPredicate`) and
  `DeleteStatement` (with an `EqualityPredicate`).

Values are Python `int` or `str`.

## The catalog

```python
from atlasdb.ast import (
    Assignment, ColumnDefinition, ColumnType, CreateTableStatement,
    EqualityPredicate, InsertStatement, SelectStatement, UpdateStatement,
)
from atlasdb.catalog import MemoryCatalog, CatalogError

catalog = MemoryCatalog()
catalog.create_table(CreateTableStatement("users", [
    ColumnDefinition("id", ColumnType.INTEGER, primary_key=True),
    ColumnDefinition("name", ColumnType.TEXT),
]))
catalog.insert_row(InsertStatement("users", [1, "alice"]))
catalog.update_where_equals(UpdateStatement(
    "users", Assignment("name", "alicia"), EqualityPredicate("id", 1)))

result = catalog.select_all(SelectStatement("users"))
print(result.message)  # selected 1 row(s) from 'users'
print(result.rows)     # [[1, 'alicia']]

try:
    catalog.insert_row(InsertStatement("users", [1, "bob"]))
except CatalogError as error:
    print(error.code)  # E2006
```

Table, column and index names are compared without regard to ASCII case
(`normalize_identifier`). Every failure raises `CatalogError`, whose
`code` and `message` attributes carry a stable error code, such as
`E2003` (table not found) or `E2005` (type mismatch), and its
description. Each successful change returns a short message that
describes what was done.

A table may have at most one primary-key column. `update_where_equals`
and `delete_where_equals` find a row by an equality test on that column;
a `WHERE` on any other column raises `E2008`.

Secondary index definitions are recorded with
`create_secondary_index(table, index, column)` and listed, sorted by
name, with `list_secondary_indexes(table)`. Only the definitions are
kept; no index data is built.

Other members of `MemoryCatalog`:

- `snapshot_tables()` returns a copy of every table, sorted by name, as a
  `TableSnapshot` (name, columns, secondary indexes, rows).
- `has_table(name)` and `row_count(name)` (0 for an unknown table).
- `clear()` removes every table.

## Snapshots

```python
from atlasdb.snapshot import serialize_catalog, deserialize_catalog, load_into

data = serialize_catalog(catalog)     # bytes
restored = deserialize_catalog(data)  # a new MemoryCatalog
load_into(catalog, data)              # replaces the contents of an existing one
```

The snapshot format is little-endian. It starts with the magic
`ATLCAT1\0` (`atlasdb.snapshot.MAGIC`) and a version number; versions 1
and 2 are read, and version 2 (`atlasdb.snapshot.VERSION`) is written.
Integers are stored as signed 64-bit values. An empty byte string loads
as an empty catalog. A value or name that does not fit the format, or a
damaged, truncated or inconsistent snapshot, raises `SnapshotError`,
which also carries a `code` and a `message`.

## What it does not do

atlasdb does not parse SQL text: statements are built directly from the
dataclasses in `atlasdb.ast`. It has no command-line program, and it does
not store anything on disk by itself; a snapshot is a `bytes` value, and
writing it to a file and reading it back is left to the caller.