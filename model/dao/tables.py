from datetime import datetime
from typing import Any, Iterable, Self
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, ScalarResult, UniqueConstraint, delete, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Column, Field, asc, desc, select

from core.database import SQLDatabase
from core.utils import utc_now
from model.dao.base import JSONType, TableScopedDAO, TimestampDAO, UuidDAO
from model.dao.enums import ColumnKind, SortOrder
from model.dto.tables import TableCellDTO, TableColumnDTO, TableDTO, TableRowDTO


# Bound parameters per `IN (...)` when fetching cells for many rows
CELL_FETCH_CHUNK = 500
# Cells per multi-row upsert statement
CELL_UPSERT_CHUNK = 100


class TableDAO(UuidDAO, TimestampDAO, table=True):
    # model config
    __tablename__ = "tables"
    __dto_class__ = TableDTO

    name: str = Field(nullable=False, unique=True)
    payload: dict | None = Field(default=None, sa_column=Column(JSONType, nullable=True))
    created_by: str | None = Field(default=None, nullable=True)

    @classmethod
    async def filter(
        cls,
        *,
        db_resource: SQLDatabase,
        id: UUID | None = None,
        name: str | None = None,
    ) -> ScalarResult[Self]:
        """Filter tables by id and name, most recently updated first."""
        async with db_resource.session() as session:
            query = select(TableDAO)
            if id is not None:
                query = query.where(TableDAO.id == id)
            if name is not None:
                query = query.where(TableDAO.name == name)

            query = query.order_by(desc(TableDAO.updated_at))

            return await session.scalars(query)

    @classmethod
    async def delete_cascade(cls, id: UUID, db_resource: SQLDatabase) -> bool:
        """Delete a table with its cells, rows and columns in one transaction."""
        async with db_resource.session() as session:
            row_ids = select(TableRowDAO.id).where(TableRowDAO.table_id == id)
            await session.execute(
                delete(TableCellDAO).where(TableCellDAO.row_id.in_(row_ids))
            )
            await session.execute(delete(TableRowDAO).where(TableRowDAO.table_id == id))
            await session.execute(
                delete(TableColumnDAO).where(TableColumnDAO.table_id == id)
            )
            result = await session.execute(delete(TableDAO).where(TableDAO.id == id))
            await session.commit()

            return result.rowcount > 0

    @classmethod
    async def create_with_contents(
        cls,
        table: Self,
        columns: list["TableColumnDAO"],
        rows: list["TableRowDAO"],
        cells: list["TableCellDAO"],
        db_resource: SQLDatabase,
    ) -> Self:
        """Insert a table with its columns, rows and cells in one transaction."""
        async with db_resource.session() as session:
            session.add(table)
            session.add_all(columns)
            session.add_all(rows)
            session.add_all(cells)
            await session.commit()
            await session.refresh(table)

            return table


class TableColumnDAO(UuidDAO, TableScopedDAO, table=True):
    # model config
    __tablename__ = "table_columns"
    __dto_class__ = TableColumnDTO
    __table_args__ = (UniqueConstraint("table_id", "key"),)

    key: str = Field(nullable=False)
    name: str = Field(nullable=False)
    type: ColumnKind = Field(
        sa_column=Column(
            Enum(ColumnKind, values_callable=lambda kinds: [k.value for k in kinds]),
            nullable=False,
        ),
        default=ColumnKind.TEXT,
    )
    width: int | None = Field(default=None, nullable=True)
    meta: dict = Field(default_factory=dict, sa_column=Column(JSONType, nullable=False))

    @classmethod
    async def filter(
        cls,
        *,
        db_resource: SQLDatabase,
        id: UUID | None = None,
        table_id: UUID | None = None,
        key: str | None = None,
    ) -> ScalarResult[Self]:
        """Filter columns by id, table_id and key, ordered by position."""
        async with db_resource.session() as session:
            query = select(TableColumnDAO)
            if id is not None:
                query = query.where(TableColumnDAO.id == id)
            if table_id is not None:
                query = query.where(TableColumnDAO.table_id == table_id)
            if key is not None:
                query = query.where(TableColumnDAO.key == key)

            query = query.order_by(asc(TableColumnDAO.position))

            return await session.scalars(query)

    async def insert_at_position(self, db_resource: SQLDatabase) -> None:
        """Insert the column, moving the table's columns at or after its position one place right."""
        async with db_resource.session() as session:
            await session.execute(
                update(TableColumnDAO)
                .where(
                    TableColumnDAO.table_id == self.table_id,
                    TableColumnDAO.position >= self.position,
                )
                .values(position=TableColumnDAO.position + 1)
            )
            session.add(self)
            await session.commit()
            await session.refresh(self)

    @classmethod
    async def update_fields(
        cls, id: UUID, changes: dict[str, Any], db_resource: SQLDatabase
    ) -> bool:
        """Apply `changes` to one column.

        A new `position` moves the column and closes the gap it leaves, so the
        table's positions stay `0..n-1`. Returns False when the column is unknown.
        """
        changes = dict(changes)
        async with db_resource.session() as session:
            column = await session.get(TableColumnDAO, id)
            if column is None:
                return False

            position = changes.pop("position", None)
            if position is not None and position != column.position:
                if position < column.position:
                    between = (
                        TableColumnDAO.position >= position,
                        TableColumnDAO.position < column.position,
                    )
                    step = 1
                else:
                    between = (
                        TableColumnDAO.position > column.position,
                        TableColumnDAO.position <= position,
                    )
                    step = -1

                await session.execute(
                    update(TableColumnDAO)
                    .where(TableColumnDAO.table_id == column.table_id, *between)
                    .values(position=TableColumnDAO.position + step)
                )
                column.position = position

            for field, value in changes.items():
                setattr(column, field, value)

            await session.commit()
            return True


class TableRowDAO(UuidDAO, TableScopedDAO, TimestampDAO, table=True):
    # model config
    __tablename__ = "table_rows"
    __dto_class__ = TableRowDTO

    @classmethod
    async def filter(
        cls,
        *,
        db_resource: SQLDatabase,
        id: UUID | None = None,
        table_id: UUID | None = None,
        order: SortOrder = SortOrder.ASC,
        limit: int | None = None,
        offset: int = 0,
    ) -> ScalarResult[Self]:
        """Filter rows by id and table_id, ordered by position within [offset, offset+limit)."""
        async with db_resource.session() as session:
            query = select(TableRowDAO)
            if id is not None:
                query = query.where(TableRowDAO.id == id)
            if table_id is not None:
                query = query.where(TableRowDAO.table_id == table_id)

            order_by = asc if order == SortOrder.ASC else desc
            query = query.order_by(order_by(TableRowDAO.position)).offset(offset)
            if limit is not None:
                query = query.limit(limit)

            return await session.scalars(query)

    @classmethod
    async def delete_cascade(cls, id: UUID, db_resource: SQLDatabase) -> bool:
        """Delete a row and its cells."""
        async with db_resource.session() as session:
            await session.execute(delete(TableCellDAO).where(TableCellDAO.row_id == id))
            result = await session.execute(delete(TableRowDAO).where(TableRowDAO.id == id))
            await session.commit()

            return result.rowcount > 0


class TableCellDAO(UuidDAO, table=True):
    # model config
    __tablename__ = "table_cells"
    __dto_class__ = TableCellDTO
    __table_args__ = (UniqueConstraint("row_id", "column_id"),)

    row_id: UUID = Field(foreign_key="table_rows.id", index=True)
    column_id: UUID = Field(foreign_key="table_columns.id")
    value: Any = Field(default=None, sa_column=Column(JSONType, nullable=True))
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True)
    )

    @classmethod
    async def filter(
        cls,
        *,
        db_resource: SQLDatabase,
        row_ids: Iterable[UUID],
    ) -> list[Self]:
        """Fetch every cell belonging to any of `row_ids`."""
        row_ids = list(row_ids)
        cells: list[Self] = []
        if not row_ids:
            return cells

        async with db_resource.session() as session:
            for start in range(0, len(row_ids), CELL_FETCH_CHUNK):
                chunk = row_ids[start : start + CELL_FETCH_CHUNK]
                query = select(TableCellDAO).where(TableCellDAO.row_id.in_(chunk))
                cells.extend(await session.scalars(query))

        return cells

    @classmethod
    async def upsert(
        cls, cells: list[dict[str, Any]], db_resource: SQLDatabase
    ) -> None:
        """Insert cells, overwriting the value of an existing (row_id, column_id) pair."""
        if not cells:
            return

        now = utc_now()
        # One statement may not touch the same pair twice; the last value wins
        latest = {(cell["row_id"], cell["column_id"]): cell["value"] for cell in cells}
        values = [
            {
                "id": uuid4(),
                "row_id": row_id,
                "column_id": column_id,
                "value": value,
                "updated_at": now,
            }
            for (row_id, column_id), value in latest.items()
        ]

        insert = pg_insert if db_resource.dialect_name == "postgresql" else sqlite_insert

        async with db_resource.session() as session:
            for start in range(0, len(values), CELL_UPSERT_CHUNK):
                statement = insert(TableCellDAO).values(
                    values[start : start + CELL_UPSERT_CHUNK]
                )
                statement = statement.on_conflict_do_update(
                    index_elements=["row_id", "column_id"],
                    set_={
                        "value": statement.excluded["value"],
                        "updated_at": statement.excluded["updated_at"],
                    },
                )
                await session.execute(statement)
            await session.commit()
