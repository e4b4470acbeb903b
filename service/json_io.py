import asyncio
from logging import Logger
from typing import Any
from uuid import UUID

import pydantic

from core.environment import settings
from core.exceptions import NotFoundError, ParseError, ValidationError
from core.logger import app_logger
from core.utils import parse_json_model, utc_now
from model.dao.enums import ColumnKind
from model.dto.tables import (
    ImportColumnDTO,
    LegacyPayloadDTO,
    NormalizedExportDTO,
    TableDTO,
    TableImportDTO,
    TableRowDTO,
)
from model.repositories import (
    CellsRepository,
    ColumnsRepository,
    RowsRepository,
    TablesRepository,
)


def parse_legacy_payload(raw: str | bytes) -> LegacyPayloadDTO:
    return parse_json_model(LegacyPayloadDTO, raw)


def parse_normalized_bundle(raw: str | bytes) -> NormalizedExportDTO:
    return parse_json_model(NormalizedExportDTO, raw)


def _ensure_unique_keys(keys: list[str]) -> None:
    seen: set[str] = set()
    for key in keys:
        if key in seen:
            raise ValidationError(f"Duplicate column key `{key}`")
        seen.add(key)


class JsonIOService:
    """Moves tables in and out of the normalized store as JSON documents.

    Two shapes are supported: the normalized bundle (table, columns, rows and
    cells with their ids) and the legacy flat payload (`name`, column keys and
    one value mapping per row).
    """

    def __init__(
        self,
        tables_repository: TablesRepository,
        columns_repository: ColumnsRepository,
        rows_repository: RowsRepository,
        cells_repository: CellsRepository,
        export_page_size: int = settings.EXPORT_PAGE_SIZE,
        logger: Logger = app_logger,
    ):
        if export_page_size < 1:
            raise ValidationError("export_page_size must be at least 1")

        self._tables = tables_repository
        self._columns = columns_repository
        self._rows = rows_repository
        self._cells = cells_repository
        self._export_page_size = export_page_size
        self._logger = logger

    async def _list_all_rows(self, table_id: UUID) -> list[TableRowDTO]:
        rows: list[TableRowDTO] = []
        while True:
            page = await self._rows.list_rows(
                table_id, limit=self._export_page_size, offset=len(rows)
            )
            rows.extend(page)
            if len(page) < self._export_page_size:
                return rows

    async def export_normalized(self, table_id: UUID) -> NormalizedExportDTO:
        """Snapshot every column, row and cell of a table."""
        table = await self._tables.get_table_by_id(table_id)
        if table is None:
            raise NotFoundError(f"Table `{table_id}` not found")

        columns, rows = await asyncio.gather(
            self._columns.list_columns(table_id), self._list_all_rows(table_id)
        )
        cells = await self._cells.list_cells_by_rows([row.id for row in rows])

        return NormalizedExportDTO(table=table, columns=columns, rows=rows, cells=cells)

    async def import_normalized(
        self, bundle: NormalizedExportDTO, name: str | None = None
    ) -> TableDTO:
        """Recreate a bundle as a new table with fresh ids.

        Cell values are carried over by (row ordinal, column key). The table is
        written in one transaction.
        """
        _ensure_unique_keys([column.key for column in bundle.columns])

        source_column_keys = {column.id: column.key for column in bundle.columns}
        values_by_row: dict[UUID, dict[str, Any]] = {row.id: {} for row in bundle.rows}
        skipped = 0
        for cell in bundle.cells:
            values = values_by_row.get(cell.row_id)
            column_key = source_column_keys.get(cell.column_id)
            if values is None or column_key is None:
                skipped += 1
                continue
            values[column_key] = cell.value

        if skipped:
            self._logger.warning(
                f"Skipped {skipped} cells of `{bundle.table.name}` without a matching row or column"
            )

        created = await self._tables.import_table(
            TableImportDTO(
                name=name or bundle.table.name,
                columns=[
                    ImportColumnDTO(
                        key=column.key,
                        name=column.name,
                        type=column.type,
                        width=column.width,
                        meta=column.meta,
                    )
                    for column in bundle.columns
                ],
                rows=[values_by_row[row.id] for row in bundle.rows],
            )
        )

        self._logger.info(
            f"Imported `{created.name}`: {len(bundle.columns)} columns, "
            f"{len(bundle.rows)} rows, {len(bundle.cells) - skipped} cells"
        )
        return created

    async def export_legacy_payload(self, table_id: UUID) -> LegacyPayloadDTO:
        bundle = await self.export_normalized(table_id)

        column_keys = {column.id: column.key for column in bundle.columns}
        values_by_row: dict[UUID, dict[str, Any]] = {row.id: {} for row in bundle.rows}
        for cell in bundle.cells:
            key = column_keys.get(cell.column_id)
            if key is not None:
                values_by_row[cell.row_id][key] = cell.value

        return LegacyPayloadDTO(
            name=bundle.table.name,
            columns=[column.key for column in bundle.columns],
            rows=[values_by_row[row.id] for row in bundle.rows],
        )

    async def import_legacy_payload(
        self, payload: LegacyPayloadDTO, name: str | None = None
    ) -> TableDTO:
        """Create a table of text columns from a flat payload, in one transaction."""
        _ensure_unique_keys(payload.columns)

        listed = set(payload.columns)
        ignored = {key for values in payload.rows for key in values if key not in listed}
        if ignored:
            self._logger.warning(
                f"Ignored fields not listed in columns of `{payload.name}`: {sorted(ignored)}"
            )

        return await self._tables.import_table(
            TableImportDTO(
                name=name or payload.name,
                columns=[
                    ImportColumnDTO(key=key, name=key, type=ColumnKind.TEXT)
                    for key in payload.columns
                ],
                rows=[
                    {key: value for key, value in values.items() if key in listed}
                    for values in payload.rows
                ],
            )
        )

    # Sync of the legacy payload stored on the table record
    async def push_legacy_payload(self, payload: LegacyPayloadDTO) -> TableDTO:
        stamped = payload.model_copy(
            update={"updated_at": utc_now().isoformat(timespec="seconds")}
        )
        return await self._tables.upsert_payload(
            payload.name, stamped.model_dump(mode="json")
        )

    async def pull_legacy_payload(self, name: str) -> LegacyPayloadDTO:
        payload = await self._tables.get_payload(name)
        if payload is None:
            raise NotFoundError(f"No remote payload for table `{name}`")

        try:
            return LegacyPayloadDTO.model_validate(payload)
        except pydantic.ValidationError as exc:
            raise ParseError(f"Stored payload of `{name}` is corrupt: {exc}")
