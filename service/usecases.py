import asyncio
from logging import Logger
from typing import Any
from uuid import UUID

from core.environment import settings
from core.exceptions import NotFoundError, ValidationError
from core.logger import app_logger
from model.dao.enums import ColumnKind
from model.dto.tables import (
    CellInputDTO,
    ColumnPatchDTO,
    GridDataVM,
    NewColumnDTO,
    NewRowDTO,
    TableColumnDTO,
    TableDTO,
    TableRowDTO,
)
from model.repositories import (
    CellsRepository,
    ColumnsRepository,
    RowsRepository,
    TablesRepository,
)
from service.grid import GridQueryService, apply_cell_patch


class LoadGridUseCase:
    def __init__(self, grid_service: GridQueryService):
        self._grid_service = grid_service

    async def execute(
        self,
        table_id: UUID,
        limit: int = settings.DEFAULT_PAGE_LIMIT,
        offset: int = 0,
    ) -> GridDataVM:
        return await self._grid_service.load_grid(table_id, limit=limit, offset=offset)


class UpdateCellUseCase:
    """Upserts one cell keyed by (row_id, column_id); the last write wins.

    The row and the column must both belong to `table_id`.
    """

    def __init__(
        self,
        cells_repository: CellsRepository,
        rows_repository: RowsRepository,
        columns_repository: ColumnsRepository,
    ):
        self._cells = cells_repository
        self._rows = rows_repository
        self._columns = columns_repository

    async def execute(
        self, table_id: UUID, row_id: UUID, column_id: UUID, value: Any
    ) -> None:
        row, column = await asyncio.gather(
            self._rows.get_row(row_id), self._columns.get_column(column_id)
        )
        if row is None:
            raise NotFoundError(f"Row `{row_id}` not found")
        if column is None:
            raise NotFoundError(f"Column `{column_id}` not found")
        if row.table_id != table_id or column.table_id != table_id:
            raise ValidationError(
                f"Row `{row_id}` and column `{column_id}` do not both belong to table `{table_id}`"
            )

        await self._cells.upsert_cell(
            CellInputDTO(row_id=row_id, column_id=column_id, value=value)
        )


class AddRowUseCase:
    def __init__(self, rows_repository: RowsRepository):
        self._rows = rows_repository

    async def execute(self, table_id: UUID, position: int | None = None) -> TableRowDTO:
        if position is None:
            position = await self._rows.count_rows(table_id)
        return await self._rows.add_row(NewRowDTO(table_id=table_id, position=position))


class AddColumnUseCase:
    def __init__(self, columns_repository: ColumnsRepository):
        self._columns = columns_repository

    async def execute(
        self,
        table_id: UUID,
        key: str,
        name: str | None = None,
        position: int | None = None,
        type: ColumnKind = ColumnKind.TEXT,
        width: int | None = None,
        meta: dict[str, Any] | None = None,
    ) -> TableColumnDTO:
        columns = await self._columns.list_columns(table_id)
        if any(column.key == key for column in columns):
            raise ValidationError(f"Duplicate column key `{key}`")
        if position is None:
            position = len(columns)
        elif not 0 <= position <= len(columns):
            raise ValidationError(
                f"Column position must be between 0 and {len(columns)}, got {position}"
            )

        return await self._columns.add_column(
            NewColumnDTO(
                table_id=table_id,
                key=key,
                name=name or key,
                type=type,
                position=position,
                width=width,
                meta=meta or {},
            )
        )


class UpdateColumnUseCase:
    def __init__(self, columns_repository: ColumnsRepository):
        self._columns = columns_repository

    async def execute(
        self, table_id: UUID, column_id: UUID, patch: ColumnPatchDTO
    ) -> None:
        column = await self._columns.get_column(column_id)
        if column is None or column.table_id != table_id:
            raise NotFoundError(f"Column `{column_id}` not found in table `{table_id}`")

        if patch.position is not None:
            count = await self._columns.count_columns(table_id)
            if not 0 <= patch.position < count:
                raise ValidationError(
                    f"Column position must be between 0 and {count - 1}, got {patch.position}"
                )

        await self._columns.update_column(column_id, patch)


class CreateTableUseCase:
    def __init__(self, tables_repository: TablesRepository):
        self._tables = tables_repository

    async def execute(self, name: str) -> TableDTO:
        if not name.strip():
            raise ValidationError("Table name must not be empty")
        return await self._tables.create_table(name)


class ListTablesUseCase:
    def __init__(self, tables_repository: TablesRepository):
        self._tables = tables_repository

    async def execute(self) -> list[TableDTO]:
        return await self._tables.list_tables()


class DeleteRowUseCase:
    """Deletes a row together with its cells."""

    def __init__(self, rows_repository: RowsRepository):
        self._rows = rows_repository

    async def execute(self, table_id: UUID, row_id: UUID) -> None:
        row = await self._rows.get_row(row_id)
        if row is None or row.table_id != table_id:
            raise NotFoundError(f"Row `{row_id}` not found in table `{table_id}`")

        if not await self._rows.delete_row(row_id):
            raise NotFoundError(f"Row `{row_id}` not found")


class DeleteTableUseCase:
    """Deletes a table together with its columns, rows and cells."""

    def __init__(self, tables_repository: TablesRepository):
        self._tables = tables_repository

    async def execute(self, table_id: UUID) -> None:
        if not await self._tables.delete_table(table_id):
            raise NotFoundError(f"Table `{table_id}` not found")


class GridEditor:
    """Persists a single cell edit and patches the caller's grid without reloading it."""

    def __init__(self, update_cell: UpdateCellUseCase, logger: Logger = app_logger):
        self._update_cell = update_cell
        self._logger = logger

    async def edit_cell(
        self, grid: GridDataVM, row_id: UUID, column_key: str, value: Any
    ) -> GridDataVM:
        column_id = grid.column_key_to_id.get(column_key)
        if column_id is None:
            raise ValidationError(f"Unknown column key `{column_key}`")
        if not any(row.row_id == row_id for row in grid.rows):
            raise NotFoundError(f"Row `{row_id}` is not part of the loaded grid")

        await self._update_cell.execute(grid.table.id, row_id, column_id, value)
        self._logger.debug(f"Updated cell ({row_id}, {column_key})")

        return apply_cell_patch(grid, row_id, column_key, value)
