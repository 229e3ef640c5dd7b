"""Binary snapshot format for the in-memory catalog."""

from __future__ import annotations

import struct

from atlasdb.ast import (
    ColumnDefinition,
    ColumnType,
    CreateTableStatement,
    InsertStatement,
    Value,
)
from atlasdb.catalog import CatalogError, MemoryCatalog

MAGIC = b"ATLCAT1\x00"
VERSION = 2
SUPPORTED_VERSIONS = (1, VERSION)

_TAG_INTEGER = 1
_TAG_TEXT = 2
_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFFFFFF
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class SnapshotError(Exception):
    """A snapshot could not be written or read; ``code`` identifies the failure."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


def _encode_text(text: str) -> bytes:
    return text.encode(_ENCODING, _ERRORS)


def _write_sized(out: bytearray, text: str, length_format: str, limit: int, what: str) -> None:
    raw = _encode_text(text)
    if len(raw) > limit:
        raise SnapshotError("E2020", f"{what} exceeds snapshot format limit")
    out += struct.pack(length_format, len(raw))
    out += raw


def _write_str16(out: bytearray, text: str, what: str) -> None:
    _write_sized(out, text, "<H", _U16_MAX, what)


def _write_value(out: bytearray, value: Value) -> None:
    if isinstance(value, int) and not isinstance(value, bool):
        if not _I64_MIN <= value <= _I64_MAX:
            raise SnapshotError("E2020", "integer literal exceeds snapshot format limit")
        out += struct.pack("<Bq", _TAG_INTEGER, value)
        return
    out += struct.pack("<B", _TAG_TEXT)
    _write_sized(out, value, "<I", _U32_MAX, "text literal")


def serialize_catalog(catalog: MemoryCatalog) -> bytes:
    """Encode every table of ``catalog`` into snapshot bytes."""
    tables = catalog.snapshot_tables()
    if len(tables) > _U32_MAX:
        raise SnapshotError("E2020", "table count exceeds snapshot format limit")

    out = bytearray(MAGIC)
    out += struct.pack("<II", VERSION, len(tables))

    for table in tables:
        _write_str16(out, table.name, "table name")
        if len(table.columns) > _U16_MAX:
            raise SnapshotError("E2020", "column count exceeds snapshot format limit")
        if len(table.rows) > _U32_MAX:
            raise SnapshotError("E2020", "row count exceeds snapshot format limit")
        if len(table.secondary_indexes) > _U16_MAX:
            raise SnapshotError("E2020", "secondary index count exceeds snapshot format limit")

        out += struct.pack("<HI", len(table.columns), len(table.rows))
        for column in table.columns:
            _write_str16(out, column.name, "column name")
            out += struct.pack("<BB", column.type.value, 1 if column.primary_key else 0)

        out += struct.pack("<H", len(table.secondary_indexes))
        for index in table.secondary_indexes:
            _write_str16(out, index.name, "secondary index name")
            _write_str16(out, index.column_name, "secondary index column name")

        for row in table.rows:
            if len(row) != len(table.columns):
                raise SnapshotError(
                    "E2020", "internal row width mismatch during snapshot serialization"
                )
            for value in row:
                _write_value(out, value)

    return bytes(out)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.offset = 0

    @property
    def exhausted(self) -> bool:
        return self.offset == len(self._data)

    def unpack(self, fmt: str, what: str) -> tuple:
        size = struct.calcsize(fmt)
        if self.offset + size > len(self._data):
            raise SnapshotError("E2021", what)
        values = struct.unpack_from(fmt, self._data, self.offset)
        self.offset += size
        return values

    def text(self, length_format: str, what: str) -> str:
        (length,) = self.unpack(length_format, what)
        end = self.offset + length
        if end > len(self._data):
            raise SnapshotError("E2021", what)
        raw = self._data[self.offset:end]
        self.offset = end
        return raw.decode(_ENCODING, _ERRORS)


def _read_value(reader: _Reader) -> Value:
    (tag,) = reader.unpack("<B", "catalog snapshot row payload is truncated")
    if tag == _TAG_INTEGER:
        (value,) = reader.unpack("<q", "catalog snapshot integer literal is truncated")
        return value
    if tag == _TAG_TEXT:
        return reader.text("<I", "catalog snapshot text literal is truncated")
    raise SnapshotError("E2025", "catalog snapshot has unknown literal tag")


def _read_table(reader: _Reader, version: int, catalog: MemoryCatalog) -> None:
    table_name = reader.text("<H", "catalog snapshot table name is truncated")
    column_count, row_count = reader.unpack(
        "<HI", "catalog snapshot table metadata is truncated"
    )

    columns = []
    for _ in range(column_count):
        column_name = reader.text("<H", "catalog snapshot column definition is truncated")
        type_byte, primary_key_byte = reader.unpack(
            "<BB", "catalog snapshot column definition is truncated"
        )
        try:
            column_type = ColumnType(type_byte)
        except ValueError:
            raise SnapshotError("E2023", "catalog snapshot has unknown column type") from None
        columns.append(ColumnDefinition(column_name, column_type, primary_key_byte != 0))

    indexes = []
    if version >= 2:
        (index_count,) = reader.unpack(
            "<H", "catalog snapshot secondary index metadata is truncated"
        )
        what = "catalog snapshot secondary index definition is truncated"
        for _ in range(index_count):
            index_name = reader.text("<H", what)
            index_column = reader.text("<H", what)
            indexes.append((index_name, index_column))

    try:
        catalog.create_table(CreateTableStatement(table_name, columns))
    except CatalogError:
        raise SnapshotError("E2024", "invalid table definition in catalog snapshot") from None

    for index_name, index_column in indexes:
        try:
            catalog.create_secondary_index(table_name, index_name, index_column)
        except CatalogError:
            raise SnapshotError(
                "E2024", "invalid secondary index definition in catalog snapshot"
            ) from None

    for _ in range(row_count):
        values = [_read_value(reader) for _ in range(column_count)]
        try:
            catalog.insert_row(InsertStatement(table_name, values))
        except CatalogError:
            raise SnapshotError("E2026", "invalid row data in catalog snapshot") from None


def load_into(catalog: MemoryCatalog, data: bytes) -> None:
    """Replace the contents of ``catalog`` with the tables held in ``data``."""
    catalog.clear()
    if not data:
        return
    if len(data) < len(MAGIC) + 8:
        raise SnapshotError("E2021", "catalog snapshot is truncated")
    if data[: len(MAGIC)] != MAGIC:
        raise SnapshotError("E2021", "invalid catalog snapshot magic")

    reader = _Reader(bytes(data))
    reader.offset = len(MAGIC)
    (version,) = reader.unpack("<I", "catalog snapshot is truncated")
    if version not in SUPPORTED_VERSIONS:
        raise SnapshotError("E2022", "unsupported catalog snapshot version")
    (table_count,) = reader.unpack("<I", "catalog snapshot is truncated")

    for _ in range(table_count):
        _read_table(reader, version, catalog)

    if not reader.exhausted:
        raise SnapshotError("E2027", "catalog snapshot contains trailing bytes")


def deserialize_catalog(data: bytes) -> MemoryCatalog:
    """Build a new catalog from snapshot bytes."""
    catalog = MemoryCatalog()
    load_into(catalog, data)
    return catalog


__all__ = [
    "MAGIC",
    "VERSION",
    "SnapshotError",
    "deserialize_catalog",
    "load_into",
    "serialize_catalog",
]