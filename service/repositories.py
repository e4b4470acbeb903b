from logging import Logger
from typing import Any
from uuid import UUID

from core.database import SQLDatabase
from core.exceptions import NotFoundError, ValidationError
from core.logger import app_logger
from core.utils import utc_now
from model.dao.enums import SortOrder
from model.dao.tables import TableCellDAO, TableColumnDAO, TableDAO, TableRowDAO
from model.dto.tables import (
    CellInputDTO,
    ColumnPatchDTO,
    NewColumnDTO,
    NewRowDTO,
    TableCellDTO,
    TableColumnDTO,
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


class SQLTablesRepository(TablesRepository):
    def __init__(self, pg_database: SQLDatabase, logger: Logger = app_logger):
        self._db = pg_database
        self._logger = logger

    async def create_table(self, name: str) -> TableDTO:
        table = TableDAO(name=name)
        await table.save(self._db)

        self._logger.debug(f"Created table `{table.name}` ({table.id})")
        return table.to_dto()

    async def get_table_by_id(self, id: UUID) -> TableDTO | None:
        table = await TableDAO.get(id, db_resource=self._db)
        return table.to_dto() if table is not None else None

    async def get_table_by_name(self, name: str) -> TableDTO | None:
        table = (await TableDAO.filter(name=name, db_resource=self._db)).first()
        return table.to_dto() if table is not None else None

    async def list_tables(self) -> list[TableDTO]:
        return [table.to_dto() for table in await TableDAO.filter(db_resource=self._db)]

    async def delete_table(self, id: UUID) -> bool:
        deleted = await TableDAO.delete_cascade(id, db_resource=self._db)
        self._logger.debug(f"Deleted table {id}: {deleted}")
        return deleted

    async def get_payload(self, name: str) -> dict[str, Any] | None:
        table = (await TableDAO.filter(name=name, db_resource=self._db)).first()
        return table.payload if table is not None else None

    async def upsert_payload(self, name: str, payload: dict[str, Any]) -> TableDTO:
        table = (await TableDAO.filter(name=name, db_resource=self._db)).first()
        if table is None:
            table = TableDAO(name=name)

        table.payload = payload
        table.updated_at = utc_now()
        await table.save(self._db)

        return table.to_dto()

    async def import_table(self, table: TableImportDTO) -> TableDTO:
        dao = TableDAO(name=table.name)
        columns = [
            TableColumnDAO(
                table_id=dao.id,
                key=column.key,
                name=column.name,
                type=column.type,
                position=position,
                width=column.width,
                meta=column.meta,
            )
            for position, column in enumerate(table.columns)
        ]
        key_to_id = {column.key: column.id for column in columns}

        rows: list[TableRowDAO] = []
        cells: list[TableCellDAO] = []
        for position, values in enumerate(table.rows):
            row = TableRowDAO(table_id=dao.id, position=position)
            rows.append(row)
            for key, value in values.items():
                if key not in key_to_id:
                    raise ValidationError(
                        f"Row {position} has a value for unknown column `{key}`"
                    )
                cells.append(
                    TableCellDAO(row_id=row.id, column_id=key_to_id[key], value=value)
                )

        await TableDAO.create_with_contents(
            dao, columns, rows, cells, db_resource=self._db
        )

        self._logger.debug(
            f"Imported table `{dao.name}` ({dao.id}): {len(columns)} columns, "
            f"{len(rows)} rows, {len(cells)} cells"
        )
        return dao.to_dto()


class SQLColumnsRepository(ColumnsRepository):
    def __init__(self, pg_database: SQLDatabase, logger: Logger = app_logger):
        self._db = pg_database
        self._logger = logger

    async def list_columns(self, table_id: UUID) -> list[TableColumnDTO]:
        columns = await TableColumnDAO.filter(table_id=table_id, db_resource=self._db)
        return [column.to_dto() for column in columns]

    async def get_column(self, column_id: UUID) -> TableColumnDTO | None:
        column = await TableColumnDAO.get(column_id, db_resource=self._db)
        return column.to_dto() if column is not None else None

    async def count_columns(self, table_id: UUID) -> int:
        return await TableColumnDAO.count(table_id, db_resource=self._db)

    async def add_column(self, column: NewColumnDTO) -> TableColumnDTO:
        dao = TableColumnDAO.from_dto(column)
        await dao.insert_at_position(self._db)

        return dao.to_dto()

    async def update_column(self, column_id: UUID, patch: ColumnPatchDTO) -> None:
        updated = await TableColumnDAO.update_fields(
            column_id, patch.model_dump(exclude_unset=True), db_resource=self._db
        )
        if not updated:
            raise NotFoundError(f"Column `{column_id}` not found")


class SQLRowsRepository(RowsRepository):
    def __init__(self, pg_database: SQLDatabase, logger: Logger = app_logger):
        self._db = pg_database
        self._logger = logger

    async def list_rows(
        self,
        table_id: UUID,
        limit: int,
        offset: int = 0,
        order: SortOrder = SortOrder.ASC,
    ) -> list[TableRowDTO]:
        rows = await TableRowDAO.filter(
            table_id=table_id,
            limit=limit,
            offset=offset,
            order=order,
            db_resource=self._db,
        )
        return [row.to_dto() for row in rows]

    async def count_rows(self, table_id: UUID) -> int:
        return await TableRowDAO.count(table_id, db_resource=self._db)

    async def get_row(self, row_id: UUID) -> TableRowDTO | None:
        row = await TableRowDAO.get(row_id, db_resource=self._db)
        return row.to_dto() if row is not None else None

    async def add_row(self, row: NewRowDTO) -> TableRowDTO:
        dao = TableRowDAO.from_dto(row)
        await dao.save(self._db)

        return dao.to_dto()

    async def delete_row(self, row_id: UUID) -> bool:
        return await TableRowDAO.delete_cascade(row_id, db_resource=self._db)


class SQLCellsRepository(CellsRepository):
    def __init__(self, pg_database: SQLDatabase, logger: Logger = app_logger):
        self._db = pg_database
        self._logger = logger

    async def list_cells_by_rows(self, row_ids: list[UUID]) -> list[TableCellDTO]:
        cells = await TableCellDAO.filter(row_ids=row_ids, db_resource=self._db)
        return [cell.to_dto() for cell in cells]

    async def upsert_cell(self, cell: CellInputDTO) -> None:
        await self.upsert_cells([cell])

    async def upsert_cells(self, cells: list[CellInputDTO]) -> None:
        await TableCellDAO.upsert(
            [cell.model_dump() for cell in cells], db_resource=self._db
        )
