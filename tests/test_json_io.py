from uuid import uuid4

import pytest

from core.exceptions import BackendError, NotFoundError, ParseError, ValidationError
from model.dao.enums import ColumnKind
from model.dto.tables import ImportColumnDTO, LegacyPayloadDTO, TableImportDTO
from service.json_io import JsonIOService, parse_legacy_payload, parse_normalized_bundle


CRM = LegacyPayloadDTO(
    name="crm",
    columns=["name", "email", "score"],
    rows=[
        {"name": "Jane", "email": "jane@example.com", "score": 10},
        {"name": "Bob", "email": "bob@example.com", "score": 7.5},
        {"name": "Alice", "email": "alice@example.com", "score": 0},
    ],
)


async def test_legacy_payload_round_trip(json_io: JsonIOService) -> None:
    table = await json_io.import_legacy_payload(CRM)
    exported = await json_io.export_legacy_payload(table.id)

    assert exported.name == "crm"
    assert exported.columns == CRM.columns
    assert exported.rows == CRM.rows

    again = await json_io.import_legacy_payload(exported, name="crm-copy")
    assert await json_io.export_legacy_payload(again.id) == exported.model_copy(
        update={"name": "crm-copy"}
    )


async def test_legacy_import_creates_text_columns(
    json_io: JsonIOService, columns_repository
) -> None:
    table = await json_io.import_legacy_payload(CRM)
    columns = await columns_repository.list_columns(table.id)

    assert [(c.key, c.name, c.position) for c in columns] == [
        ("name", "name", 0),
        ("email", "email", 1),
        ("score", "score", 2),
    ]
    assert {column.type for column in columns} == {ColumnKind.TEXT}


async def test_legacy_import_skips_unlisted_fields(json_io: JsonIOService) -> None:
    payload = LegacyPayloadDTO(
        name="sparse",
        columns=["name", "email"],
        rows=[{"name": "Jane", "phone": "555"}, {}],
    )

    table = await json_io.import_legacy_payload(payload)
    exported = await json_io.export_legacy_payload(table.id)

    assert exported.rows == [{"name": "Jane"}, {}]


async def test_normalized_import_carries_cells(json_io: JsonIOService) -> None:
    source = await json_io.import_legacy_payload(CRM)
    bundle = await json_io.export_normalized(source.id)

    copy = await json_io.import_normalized(bundle, name="crm-normalized")
    copied_bundle = await json_io.export_normalized(copy.id)

    assert copy.id != source.id
    assert {row.id for row in copied_bundle.rows}.isdisjoint(
        row.id for row in bundle.rows
    )
    assert [c.key for c in copied_bundle.columns] == [c.key for c in bundle.columns]
    assert [c.position for c in copied_bundle.columns] == [0, 1, 2]
    assert len(copied_bundle.cells) == len(bundle.cells) == 9

    exported = await json_io.export_legacy_payload(copy.id)
    assert exported.columns == CRM.columns
    assert exported.rows == CRM.rows


async def test_export_import_chain_preserves_values(json_io: JsonIOService) -> None:
    source = await json_io.import_legacy_payload(CRM)
    bundle = await json_io.export_normalized(source.id)
    normalized = await json_io.import_normalized(bundle, name="chain-1")

    legacy = await json_io.export_legacy_payload(normalized.id)
    restored = await json_io.import_legacy_payload(legacy, name="chain-2")

    assert (await json_io.export_legacy_payload(restored.id)).rows == CRM.rows


async def test_export_unknown_table(json_io: JsonIOService) -> None:
    with pytest.raises(NotFoundError):
        await json_io.export_normalized(uuid4())
    with pytest.raises(NotFoundError):
        await json_io.export_legacy_payload(uuid4())


def test_parse_rejects_malformed_json() -> None:
    with pytest.raises(ParseError):
        parse_legacy_payload('{"name": "crm", "columns": [')
    with pytest.raises(ParseError):
        parse_normalized_bundle("not json")


def test_parse_rejects_wrong_shape() -> None:
    with pytest.raises(ValidationError, match="columns"):
        parse_legacy_payload('{"name": "crm", "rows": []}')


def test_parse_legacy_payload() -> None:
    payload = parse_legacy_payload(
        '{"name": "crm", "columns": ["a"], "rows": [{"a": 1}], "updated_at": "2024-01-01"}'
    )

    assert payload.rows == [{"a": 1}]
    assert payload.updated_at == "2024-01-01"


async def test_push_and_pull(json_io: JsonIOService) -> None:
    table = await json_io.push_legacy_payload(CRM)
    pulled = await json_io.pull_legacy_payload("crm")

    assert table.name == "crm"
    assert pulled.rows == CRM.rows
    assert pulled.updated_at is not None

    changed = CRM.model_copy(update={"rows": CRM.rows[:1]})
    second = await json_io.push_legacy_payload(changed)

    assert second.id == table.id
    assert (await json_io.pull_legacy_payload("crm")).rows == CRM.rows[:1]


async def test_pull_missing_and_corrupt_payloads(
    json_io: JsonIOService, tables_repository
) -> None:
    with pytest.raises(NotFoundError):
        await json_io.pull_legacy_payload("nowhere")

    await tables_repository.upsert_payload("broken", {"rows": "nope"})
    with pytest.raises(ParseError):
        await json_io.pull_legacy_payload("broken")


async def test_imports_reject_duplicate_column_keys(
    json_io: JsonIOService, tables_repository
) -> None:
    payload = LegacyPayloadDTO(name="twins", columns=["a", "a"], rows=[{"a": 1}])
    with pytest.raises(ValidationError, match="Duplicate column key `a`"):
        await json_io.import_legacy_payload(payload)

    bundle = await json_io.export_normalized(
        (await json_io.import_legacy_payload(CRM)).id
    )
    bundle.columns[1] = bundle.columns[1].model_copy(update={"key": "name"})
    with pytest.raises(ValidationError, match="Duplicate column key `name`"):
        await json_io.import_normalized(bundle, name="crm-twins")

    assert await tables_repository.get_table_by_name("twins") is None
    assert await tables_repository.get_table_by_name("crm-twins") is None


@pytest.mark.parametrize("row_count", [4, 5])
async def test_exports_read_every_page(
    row_count: int,
    tables_repository,
    columns_repository,
    rows_repository,
    cells_repository,
) -> None:
    json_io = JsonIOService(
        tables_repository=tables_repository,
        columns_repository=columns_repository,
        rows_repository=rows_repository,
        cells_repository=cells_repository,
        export_page_size=2,
    )
    rows = [{"n": str(index)} for index in range(row_count)]
    table = await json_io.import_legacy_payload(
        LegacyPayloadDTO(name="paged", columns=["n"], rows=rows)
    )

    bundle = await json_io.export_normalized(table.id)
    legacy = await json_io.export_legacy_payload(table.id)

    assert [row.position for row in bundle.rows] == list(range(row_count))
    assert len(bundle.cells) == row_count
    assert legacy.rows == rows


async def test_failed_import_leaves_nothing_behind(
    json_io: JsonIOService, tables_repository
) -> None:
    broken = TableImportDTO(
        name="crm",
        columns=[ImportColumnDTO(key="name", name="Name")] * 2,
        rows=[{"name": "Jane"}],
    )

    with pytest.raises(BackendError):
        await tables_repository.import_table(broken)

    assert await tables_repository.get_table_by_name("crm") is None
    assert await tables_repository.list_tables() == []

    table = await json_io.import_legacy_payload(CRM)
    assert table.name == "crm"


async def test_bulk_import_rejects_values_for_unknown_columns(tables_repository) -> None:
    with pytest.raises(ValidationError, match="unknown column `phone`"):
        await tables_repository.import_table(
            TableImportDTO(
                name="crm",
                columns=[ImportColumnDTO(key="name", name="Name")],
                rows=[{"name": "Jane", "phone": "555"}],
            )
        )
