from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from model.dao.enums import SortOrder
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


class TablesRepository(ABC):
    @abstractmethod
    async def create_table(self, name: str) -> TableDTO: ...

    @abstractmethod
    async def get_table_by_id(self, id: UUID) -> TableDTO | None: ...

    @abstractmethod
    async def get_table_by_name(self, name: str) -> TableDTO | None: ...

    @abstractmethod
    async def list_tables(self) -> list[TableDTO]: ...

    @abstractmethod
    async def delete_table(self, id: UUID) -> bool: ...

    @abstractmethod
    async def get_payload(self, name: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def upsert_payload(self, name: str, payload: dict[str, Any]) -> TableDTO: ...

    @abstractmethod
    async def import_table(self, table: TableImportDTO) -> TableDTO: ...


class ColumnsRepository(ABC):
    @abstractmethod
    async def list_columns(self, table_id: UUID) -> list[TableColumnDTO]: ...

    @abstractmethod
    async def get_column(self, column_id: UUID) -> TableColumnDTO | None: ...

    @abstractmethod
    async def count_columns(self, table_id: UUID) -> int: ...

    @abstractmethod
    async def add_column(self, column: NewColumnDTO) -> TableColumnDTO: ...

    @abstractmethod
    async def update_column(self, column_id: UUID, patch: ColumnPatchDTO) -> None: ...


class RowsRepository(ABC):
    @abstractmethod
    async def list_rows(
        self,
        table_id: UUID,
        limit: int,
        offset: int = 0,
        order: SortOrder = SortOrder.ASC,
    ) -> list[TableRowDTO]: ...

    @abstractmethod
    async def count_rows(self, table_id: UUID) -> int: ...

    @abstractmethod
    async def get_row(self, row_id: UUID) -> TableRowDTO | None: ...

    @abstractmethod
    async def add_row(self, row: NewRowDTO) -> TableRowDTO: ...

    @abstractmethod
    async def delete_row(self, row_id: UUID) -> bool: ...


class CellsRepository(ABC):
    @abstractmethod
    async def list_cells_by_rows(self, row_ids: list[UUID]) -> list[TableCellDTO]: ...

    @abstractmethod
    async def upsert_cell(self, cell: CellInputDTO) -> None: ...

    @abstractmethod
    async def upsert_cells(self, cells: list[CellInputDTO]) -> None: ...
