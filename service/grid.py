import asyncio
from logging import Logger
from typing import Any
from uuid import UUID

from core.environment import settings
from core.exceptions import NotFoundError, ValidationError
from core.logger import app_logger
from model.dto.tables import GridColumnVM, GridDataVM, GridRowVM
from model.repositories import (
    CellsRepository,
    ColumnsRepository,
    RowsRepository,
    TablesRepository,
)


class GridQueryService:
    """Assembles the editable grid projection of one table's normalized data."""

    def __init__(
        self,
        tables_repository: TablesRepository,
        columns_repository: ColumnsRepository,
        rows_repository: RowsRepository,
        cells_repository: CellsRepository,
        logger: Logger = app_logger,
    ):
        self._tables = tables_repository
        self._columns = columns_repository
        self._rows = rows_repository
        self._cells = cells_repository
        self._logger = logger

    async def load_grid(
        self,
        table_id: UUID,
        limit: int = settings.DEFAULT_PAGE_LIMIT,
        offset: int = 0,
    ) -> GridDataVM:
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        if offset < 0:
            raise ValidationError("offset must not be negative")

        table, columns, rows = await asyncio.gather(
            self._tables.get_table_by_id(table_id),
            self._columns.list_columns(table_id),
            self._rows.list_rows(table_id, limit=limit, offset=offset),
        )
        if table is None:
            raise NotFoundError(f"Table `{table_id}` not found")

        cells = await self._cells.list_cells_by_rows([row.id for row in rows])

        column_key_to_id: dict[str, UUID] = {}
        column_id_to_key: dict[UUID, str] = {}
        grid_columns: list[GridColumnVM] = []
        for column in columns:
            column_key_to_id[column.key] = column.id
            column_id_to_key[column.id] = column.key
            grid_columns.append(
                GridColumnVM(
                    id=column.id, key=column.key, header=column.name, type=column.type
                )
            )

        values_by_row: dict[UUID, dict[str, Any]] = {}
        dropped = 0
        for cell in cells:
            key = column_id_to_key.get(cell.column_id)
            if key is None:
                # Orphaned cell, e.g. its column was removed
                dropped += 1
                continue
            values_by_row.setdefault(cell.row_id, {})[key] = cell.value

        if dropped:
            self._logger.debug(f"Dropped {dropped} cells without a column in {table_id}")

        return GridDataVM(
            table=table,
            columns=grid_columns,
            rows=[
                GridRowVM(row_id=row.id, values=values_by_row.get(row.id, {}))
                for row in rows
            ],
            column_key_to_id=column_key_to_id,
            column_id_to_key=column_id_to_key,
        )


def apply_cell_patch(
    grid: GridDataVM, row_id: UUID, column_key: str, value: Any
) -> GridDataVM:
    """Return a grid where only `values[column_key]` of row `row_id` changed.

    Untouched rows are shared with the input grid, which is left as it was.
    """
    if not any(row.row_id == row_id for row in grid.rows):
        raise NotFoundError(f"Row `{row_id}` is not part of the loaded grid")

    rows = [
        row
        if row.row_id != row_id
        else row.model_copy(update={"values": {**row.values, column_key: value}})
        for row in grid.rows
    ]
    return grid.model_copy(update={"rows": rows})
