from logging import Logger
from math import ceil
from typing import Any, Iterable, Mapping

import pydantic

from core.exceptions import ValidationError
from core.logger import app_logger
from core.utils import format_validation_errors
from model.dao.enums import ColumnKind
from model.dto.builder import (
    ArtifactsDTO,
    BuilderColumn,
    BuilderConfig,
    BuilderFeatures,
    PreviewColumnDTO,
    PreviewDTO,
    PreviewQueryDTO,
    default_builder_config,
)
from service.codegen import (
    ensure_generatable,
    generate_sql_ddl,
    generate_sql_normalized,
    generate_types,
    generate_ui,
    row_type_name,
)
from service.filters import build_global_filter
from service.kinds import coerce_value, default_value, validate_column


def _sort_key(kind: ColumnKind):
    def key(value: Any):
        if kind == ColumnKind.NUMBER:
            try:
                return (0, float(value), "")
            except (TypeError, ValueError):
                return (1, 0.0, str(value).lower())
        if kind == ColumnKind.BOOLEAN:
            return (0, float(bool(value)), "")
        return (0, 0.0, str(value).lower())

    return key


class BuilderService:
    """Editing, validation, code generation and live preview of table definitions."""

    def __init__(self, logger: Logger = app_logger):
        self._logger = logger

    def default_config(self) -> BuilderConfig:
        return default_builder_config()

    def parse_config(self, data: Mapping[str, Any]) -> BuilderConfig:
        try:
            config = BuilderConfig.model_validate(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(format_validation_errors(exc))

        self.validate_config(config)
        return config

    def validate_config(self, config: BuilderConfig) -> None:
        ensure_generatable(config)
        row_type_name(config.table_name)

        seen: set[str] = set()
        for column in config.columns:
            if column.key in seen:
                raise ValidationError(f"Duplicate column key `{column.key}`")
            seen.add(column.key)
            validate_column(column)

    # Editor operations; each returns a new config and leaves its input untouched
    def set_table_name(self, config: BuilderConfig, name: str) -> BuilderConfig:
        if not name.strip():
            raise ValidationError("Table name must not be empty")
        return config.model_copy(update={"table_name": name.strip()})

    def add_column(self, config: BuilderConfig) -> BuilderConfig:
        keys = {column.key for column in config.columns}
        index = len(config.columns) + 1
        while f"field_{index}" in keys:
            index += 1

        column = BuilderColumn(key=f"field_{index}", name=f"Field {index}")
        return config.model_copy(update={"columns": [*config.columns, column]})

    def update_column(
        self, config: BuilderConfig, index: int, **changes: Any
    ) -> BuilderConfig:
        current = self._column_at(config, index)
        try:
            column = BuilderColumn.model_validate({**current.model_dump(), **changes})
        except pydantic.ValidationError as exc:
            raise ValidationError(format_validation_errors(exc))

        columns = list(config.columns)
        columns[index] = column
        return config.model_copy(update={"columns": columns})

    def remove_column(self, config: BuilderConfig, index: int) -> BuilderConfig:
        self._column_at(config, index)
        columns = [c for i, c in enumerate(config.columns) if i != index]
        return config.model_copy(update={"columns": columns})

    def toggle_feature(self, config: BuilderConfig, feature: str) -> BuilderConfig:
        field = self._feature_field(feature)
        features = config.features.model_copy(
            update={field: not getattr(config.features, field)}
        )
        return config.model_copy(update={"features": features})

    # Artifacts
    def generate_artifacts(self, config: BuilderConfig) -> ArtifactsDTO:
        self.validate_config(config)
        self._logger.debug(f"Generating artifacts for `{config.table_name}`")

        return ArtifactsDTO(
            ui=generate_ui(config),
            types=generate_types(config),
            sql=generate_sql_normalized(config),
            ddl=generate_sql_ddl(config),
        )

    # Rows
    def new_row(self, config: BuilderConfig) -> dict[str, Any]:
        return {column.key: default_value(column.kind) for column in config.columns}

    def coerce_row(
        self, config: BuilderConfig, values: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Convert raw editor input to the stored value of each known column."""
        kinds = {column.key: column.kind for column in config.columns}
        return {
            key: coerce_value(kinds[key], value) if key in kinds else value
            for key, value in values.items()
        }

    # Preview
    def preview_columns(self, config: BuilderConfig) -> list[PreviewColumnDTO]:
        features = config.features
        columns: list[PreviewColumnDTO] = []

        if features.multi_delete:
            columns.append(PreviewColumnDTO(id="select", header=""))

        columns += [
            PreviewColumnDTO(
                id=column.key,
                header=column.name,
                kind=column.kind,
                sortable=features.sorting,
            )
            for column in config.columns
        ]

        actions = [
            action
            for action, enabled in (("edit", features.edit), ("delete", features.delete))
            if enabled
        ]
        if actions:
            columns.append(PreviewColumnDTO(id="actions", header="", actions=actions))

        return columns

    def preview(
        self,
        config: BuilderConfig,
        rows: Iterable[Mapping[str, Any]],
        query: PreviewQueryDTO | None = None,
    ) -> PreviewDTO:
        query = query or PreviewQueryDTO()
        features = config.features
        result = [dict(row) for row in rows]

        if features.search and query.filter_text:
            matches = build_global_filter(config, query.search_keys)
            result = [row for row in result if matches(row, query.filter_text)]

        if features.sorting and query.sort_by:
            result = self._sorted(config, result, query.sort_by, query.descending)

        total = len(result)
        page_index, page_count = 0, 1
        if features.pagination:
            page_count = max(1, ceil(total / query.page_size))
            page_index = min(query.page_index, page_count - 1)
            start = page_index * query.page_size
            result = result[start : start + query.page_size]

        return PreviewDTO(
            columns=self.preview_columns(config),
            rows=result,
            total=total,
            page_index=page_index,
            page_count=page_count,
        )

    def _sorted(
        self,
        config: BuilderConfig,
        rows: list[dict[str, Any]],
        sort_by: str,
        descending: bool,
    ) -> list[dict[str, Any]]:
        column = next((c for c in config.columns if c.key == sort_by), None)
        if column is None:
            raise ValidationError(f"Cannot sort by unknown column `{sort_by}`")

        # Rows without a value stay last in both directions
        present = [row for row in rows if row.get(sort_by) is not None]
        missing = [row for row in rows if row.get(sort_by) is None]
        key = _sort_key(column.kind)
        present.sort(key=lambda row: key(row[sort_by]), reverse=descending)

        return present + missing

    def _column_at(self, config: BuilderConfig, index: int) -> BuilderColumn:
        if not 0 <= index < len(config.columns):
            raise ValidationError(f"No column at index {index}")
        return config.columns[index]

    def _feature_field(self, feature: str) -> str:
        for name, field in BuilderFeatures.model_fields.items():
            if feature in (name, field.alias):
                return name
        raise ValidationError(f"Unknown feature `{feature}`")
