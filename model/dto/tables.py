from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from model.dao.enums import ColumnKind


class TableDTO(BaseModel):
    id: UUID
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None


class TableColumnDTO(BaseModel):
    id: UUID
    table_id: UUID
    key: str
    name: str
    type: ColumnKind = ColumnKind.TEXT
    position: int
    width: int | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class TableRowDTO(BaseModel):
    id: UUID
    table_id: UUID
    position: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TableCellDTO(BaseModel):
    id: UUID | None = None
    row_id: UUID
    column_id: UUID
    value: Any = None
    updated_at: datetime | None = None


# Repository inputs
class NewColumnDTO(BaseModel):
    table_id: UUID
    key: str
    name: str
    type: ColumnKind = ColumnKind.TEXT
    position: int
    width: int | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class ColumnPatchDTO(BaseModel):
    name: str | None = None
    type: ColumnKind | None = None
    position: int | None = None
    width: int | None = None
    meta: dict[str, Any] | None = None


class NewRowDTO(BaseModel):
    table_id: UUID
    position: int


class CellInputDTO(BaseModel):
    row_id: UUID
    column_id: UUID
    value: Any = None


class ImportColumnDTO(BaseModel):
    key: str
    name: str
    type: ColumnKind = ColumnKind.TEXT
    width: int | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class TableImportDTO(BaseModel):
    """A whole table written in one transaction; list order becomes `position`."""

    name: str
    columns: list[ImportColumnDTO]
    rows: list[dict[str, Any]] = Field(default_factory=list)


# Read projection
class GridColumnVM(BaseModel):
    id: UUID
    key: str
    header: str
    type: ColumnKind


class GridRowVM(BaseModel):
    row_id: UUID
    values: dict[str, Any] = Field(default_factory=dict)


class GridDataVM(BaseModel):
    table: TableDTO
    columns: list[GridColumnVM]
    rows: list[GridRowVM]
    column_key_to_id: dict[str, UUID]
    column_id_to_key: dict[UUID, str]


# Import / export payloads
class NormalizedExportDTO(BaseModel):
    table: TableDTO
    columns: list[TableColumnDTO]
    rows: list[TableRowDTO]
    cells: list[TableCellDTO]


class LegacyPayloadDTO(BaseModel):
    name: str
    columns: list[str]
    rows: list[dict[str, Any]]
    updated_at: str | None = None


# API requests
class CreateTableDTO(BaseModel):
    name: str = Field(min_length=1)


class AddRowDTO(BaseModel):
    position: int | None = Field(default=None, ge=0)


class AddColumnDTO(BaseModel):
    key: str = Field(min_length=1)
    name: str | None = None
    type: ColumnKind = ColumnKind.TEXT
    position: int | None = Field(default=None, ge=0)
    width: int | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class UpdateCellDTO(BaseModel):
    row_id: UUID
    column_id: UUID
    value: Any = None
