import pytest

from core.exceptions import ValidationError
from model.dto.builder import BuilderConfig, PreviewQueryDTO
from service.builder import BuilderService


ROWS = [
    {"name": "Jane", "age": 31, "gender": "f", "email": "jane@example.com"},
    {"name": "bob", "age": 9, "gender": "m", "email": "bob@example.com"},
    {"name": "Alice", "age": None, "gender": "f", "email": "alice@example.com"},
    {"name": "Carl", "age": 54, "gender": "m", "email": "carl@example.com"},
]


def test_default_config(builder_service: BuilderService) -> None:
    config = builder_service.default_config()

    assert config.table_name == "users"
    assert [column.key for column in config.columns] == ["name", "age", "gender", "email"]
    assert config.features.sorting and config.features.multi_delete
    assert not config.features.columns_panel


def test_parse_config_accepts_camel_case(builder_service: BuilderService) -> None:
    config = builder_service.parse_config(
        {
            "tableName": "orders",
            "columns": [{"key": "total", "name": "Total", "kind": "number"}],
            "features": {"multiDelete": True, "columnsPanel": True},
        }
    )

    assert config.table_name == "orders"
    assert config.features.multi_delete is True
    assert config.features.columns_panel is True


def test_parse_config_rejects_unknown_kind(builder_service: BuilderService) -> None:
    with pytest.raises(ValidationError, match="columns.0.kind"):
        builder_service.parse_config(
            {"tableName": "orders", "columns": [{"key": "a", "name": "A", "kind": "money"}]}
        )


def test_validate_rejects_duplicate_keys(builder_service: BuilderService) -> None:
    config = BuilderConfig.model_validate(
        {
            "tableName": "orders",
            "columns": [{"key": "a", "name": "A"}, {"key": "a", "name": "Again"}],
        }
    )

    with pytest.raises(ValidationError, match="Duplicate column key `a`"):
        builder_service.validate_config(config)


def test_editor_operations_return_new_configs(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    before = users_config.model_dump()

    renamed = builder_service.set_table_name(users_config, "  orders ")
    added = builder_service.add_column(users_config)
    updated = builder_service.update_column(users_config, 1, kind="text", name="Years")
    removed = builder_service.remove_column(users_config, 0)
    toggled = builder_service.toggle_feature(users_config, "columnsPanel")

    assert users_config.model_dump() == before
    assert renamed.table_name == "orders"
    assert added.columns[-1].key == "field_5"
    assert updated.columns[1].name == "Years"
    assert [column.key for column in removed.columns] == ["age", "gender", "email"]
    assert toggled.features.columns_panel is True


def test_editor_rejects_bad_arguments(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    with pytest.raises(ValidationError, match="No column at index 9"):
        builder_service.remove_column(users_config, 9)
    with pytest.raises(ValidationError, match="Unknown feature"):
        builder_service.toggle_feature(users_config, "export")
    with pytest.raises(ValidationError):
        builder_service.update_column(users_config, 0, kind="money")


def test_generate_artifacts(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    artifacts = builder_service.generate_artifacts(users_config)

    assert "export function GeneratedTable" in artifacts.ui
    assert artifacts.types.startswith("export interface UsersRow {")
    assert artifacts.sql.count("\nunion all\n") == 3
    assert 'create table if not exists public."users"' in artifacts.ddl


def test_new_row_uses_kind_defaults(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    assert builder_service.new_row(users_config) == {
        "name": "",
        "age": 0,
        "gender": "",
        "email": "",
    }


def test_coerce_row(builder_service: BuilderService, users_config: BuilderConfig) -> None:
    row = builder_service.coerce_row(users_config, {"age": "42", "extra": "kept"})

    assert row == {"age": 42, "extra": "kept"}


def test_preview_searches_sorts_and_pages(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    query = PreviewQueryDTO(
        filter_text="example", sort_by="age", descending=True, page_size=2
    )
    preview = builder_service.preview(users_config, ROWS, query)

    assert preview.total == 4
    assert preview.page_count == 2
    assert [row["name"] for row in preview.rows] == ["Carl", "Jane"]

    last_page = builder_service.preview(
        users_config, ROWS, query.model_copy(update={"page_index": 7})
    )
    # Rows without a value sort last
    assert last_page.page_index == 1
    assert [row["name"] for row in last_page.rows] == ["bob", "Alice"]


def test_preview_text_sort_is_case_insensitive(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    preview = builder_service.preview(
        users_config, ROWS, PreviewQueryDTO(sort_by="name", page_size=10)
    )

    assert [row["name"] for row in preview.rows] == ["Alice", "bob", "Carl", "Jane"]


def test_preview_ignores_disabled_features(builder_service: BuilderService) -> None:
    config = BuilderConfig.model_validate(
        {"tableName": "users", "columns": [{"key": "name", "name": "Name"}]}
    )
    preview = builder_service.preview(
        config, ROWS, PreviewQueryDTO(filter_text="jane", sort_by="name", page_size=1)
    )

    assert preview.total == 4
    assert preview.page_count == 1
    assert [row["name"] for row in preview.rows] == ["Jane", "bob", "Alice", "Carl"]
    assert [column.id for column in preview.columns] == ["name"]


def test_preview_columns_follow_flags(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    columns = builder_service.preview_columns(users_config)

    assert columns[0].id == "select"
    assert columns[-1].id == "actions"
    assert columns[-1].actions == ["edit", "delete"]
    assert all(column.sortable for column in columns[1:-1])


def test_preview_rejects_unknown_sort_column(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    with pytest.raises(ValidationError, match="unknown column"):
        builder_service.preview(users_config, ROWS, PreviewQueryDTO(sort_by="salary"))


def test_blank_table_name_is_rejected(
    builder_service: BuilderService, users_config: BuilderConfig
) -> None:
    with pytest.raises(ValidationError, match="Table name"):
        builder_service.set_table_name(users_config, "   ")
