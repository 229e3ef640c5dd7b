import struct

import pytest

from atlasdb.ast import (
    ColumnDefinition,
    ColumnType,
    CreateTableStatement,
    InsertStatement,
    SelectStatement,
)
from atlasdb.catalog import MemoryCatalog, SecondaryIndexDefinition
from atlasdb.snapshot import (
    SnapshotError,
    deserialize_catalog,
    load_into,
    serialize_catalog,
)

MAGIC = b"ATLCAT1\x00"


def _users_catalog():
    catalog = MemoryCatalog()
    catalog.create_table(
        CreateTableStatement(
            "Users",
            [
                ColumnDefinition("id", ColumnType.INTEGER, True),
                ColumnDefinition("name", ColumnType.TEXT, False),
            ],
        )
    )
    catalog.insert_row(InsertStatement("users", [1, "alice"]))
    catalog.insert_row(InsertStatement("users", [-7, "bob's"]))
    catalog.create_secondary_index("users", "idx_name", "name")
    return catalog


def _str16(text):
    raw = text.encode()
    return struct.pack("<H", len(raw)) + raw


def _single_int_table(version, type_byte=0, row_payload=b"", row_count=0):
    body = _str16("t") + struct.pack("<HI", 1, row_count)
    body += _str16("id") + struct.pack("<BB", type_byte, 1)
    if version >= 2:
        body += struct.pack("<H", 0)
    body += row_payload
    return MAGIC + struct.pack("<II", version, 1) + body


def test_empty_catalog_serializes_to_header_only():
    data = serialize_catalog(MemoryCatalog())
    assert data == MAGIC + struct.pack("<II", 2, 0)


def test_snapshot_starts_with_magic_and_version():
    data = serialize_catalog(_users_catalog())
    assert data[:8] == MAGIC
    assert struct.unpack_from("<II", data, 8) == (2, 1)


def test_round_trip_preserves_tables_rows_and_indexes():
    original = _users_catalog()
    restored = deserialize_catalog(serialize_catalog(original))
    assert restored.snapshot_tables() == original.snapshot_tables()
    result = restored.select_all(SelectStatement("USERS"))
    assert result.rows == [[1, "alice"], [-7, "bob's"]]
    assert restored.list_secondary_indexes("users") == [
        SecondaryIndexDefinition("idx_name", "name")
    ]


def test_round_trip_is_stable():
    data = serialize_catalog(_users_catalog())
    assert serialize_catalog(deserialize_catalog(data)) == data


def test_round_trip_extreme_integers_and_unicode():
    catalog = MemoryCatalog()
    catalog.create_table(
        CreateTableStatement(
            "nums",
            [
                ColumnDefinition("k", ColumnType.INTEGER, True),
                ColumnDefinition("label", ColumnType.TEXT),
            ],
        )
    )
    catalog.insert_row(InsertStatement("nums", [-(1 << 63), "żółw"]))
    catalog.insert_row(InsertStatement("nums", [(1 << 63) - 1, ""]))
    restored = deserialize_catalog(serialize_catalog(catalog))
    assert restored.select_all(SelectStatement("nums")).rows == [
        [-(1 << 63), "żółw"],
        [(1 << 63) - 1, ""],
    ]


def test_restored_catalog_enforces_primary_key():
    restored = deserialize_catalog(serialize_catalog(_users_catalog()))
    from atlasdb.catalog import CatalogError

    with pytest.raises(CatalogError) as info:
        restored.insert_row(InsertStatement("users", [1, "again"]))
    assert info.value.code == "E2006"


def test_empty_bytes_load_empty_catalog():
    catalog = deserialize_catalog(b"")
    assert catalog.snapshot_tables() == []


def test_load_into_replaces_existing_tables():
    catalog = _users_catalog()
    load_into(catalog, serialize_catalog(MemoryCatalog()))
    assert not catalog.has_table("users")


def test_version_one_snapshot_without_index_section_loads():
    row = struct.pack("<Bq", 1, 5)
    catalog = deserialize_catalog(_single_int_table(1, row_payload=row, row_count=1))
    assert catalog.select_all(SelectStatement("t")).rows == [[5]]
    assert catalog.list_secondary_indexes("t") == []


def test_rejects_truncated_header():
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(MAGIC + b"\x02\x00")
    assert info.value.code == "E2021"
    assert info.value.message == "catalog snapshot is truncated"


def test_rejects_bad_magic():
    data = b"XXXXXXXX" + struct.pack("<II", 2, 0)
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(data)
    assert info.value.code == "E2021"
    assert info.value.message == "invalid catalog snapshot magic"


def test_rejects_unsupported_version():
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(MAGIC + struct.pack("<II", 3, 0))
    assert info.value.code == "E2022"


def test_rejects_trailing_bytes():
    data = serialize_catalog(_users_catalog()) + b"\x00"
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(data)
    assert info.value.code == "E2027"


def test_rejects_truncated_payload():
    data = serialize_catalog(_users_catalog())[:-1]
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(data)
    assert info.value.code == "E2021"


def test_rejects_unknown_column_type():
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(_single_int_table(2, type_byte=9))
    assert info.value.code == "E2023"


def test_rejects_unknown_literal_tag():
    data = _single_int_table(2, row_payload=b"\x07", row_count=1)
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(data)
    assert info.value.code == "E2025"


def test_rejects_duplicate_primary_key_rows():
    rows = struct.pack("<Bq", 1, 4) * 2
    data = _single_int_table(2, row_payload=rows, row_count=2)
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(data)
    assert info.value.code == "E2026"


def test_rejects_row_of_wrong_type():
    row = b"\x02" + struct.pack("<I", 1) + b"a"
    data = _single_int_table(2, row_payload=row, row_count=1)
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(data)
    assert info.value.code == "E2026"


def test_rejects_duplicate_table_definition():
    table = _single_int_table(2)[16:]
    data = MAGIC + struct.pack("<II", 2, 2) + table + table
    with pytest.raises(SnapshotError) as info:
        deserialize_catalog(data)
    assert info.value.code == "E2024"


def test_serialize_rejects_overlong_table_name():
    catalog = MemoryCatalog()
    catalog.create_table(
        CreateTableStatement("t" * 70000, [ColumnDefinition("id", ColumnType.INTEGER)])
    )
    with pytest.raises(SnapshotError) as info:
        serialize_catalog(catalog)
    assert info.value.code == "E2020"
    assert info.value.message == "table name exceeds snapshot format limit"