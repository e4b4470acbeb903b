from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from core.cache import LocalPayloadCache
from core.di_container import DependencyContainer
from core.environment import settings
from dependency_injector.wiring import Provide, inject

from model.dto.base import BaseResponseDTO
from model.dto.tables import (
    AddColumnDTO,
    AddRowDTO,
    ColumnPatchDTO,
    CreateTableDTO,
    LegacyPayloadDTO,
    UpdateCellDTO,
)
from service.json_io import JsonIOService, parse_legacy_payload, parse_normalized_bundle
from service.usecases import (
    AddColumnUseCase,
    AddRowUseCase,
    CreateTableUseCase,
    DeleteRowUseCase,
    DeleteTableUseCase,
    ListTablesUseCase,
    LoadGridUseCase,
    UpdateCellUseCase,
    UpdateColumnUseCase,
)

tables_router = APIRouter(prefix="/tables", tags=["Tables"])

JsonIOServiceDependency = Depends(Provide[DependencyContainer.json_io_service_factory])
LocalCacheDependency = Depends(Provide[DependencyContainer.local_cache])


# Static paths, registered ahead of the `{table_id}` routes
@tables_router.get("/local", status_code=status.HTTP_200_OK)
@inject
def load_local_table(
    cache: LocalPayloadCache = LocalCacheDependency,
) -> BaseResponseDTO:
    payload = cache.load()

    return BaseResponseDTO(
        data=payload,
        message="Cached table loaded." if payload else "No cached table.",
    )


@tables_router.put("/local", status_code=status.HTTP_200_OK)
@inject
def save_local_table(
    dto: LegacyPayloadDTO, cache: LocalPayloadCache = LocalCacheDependency
) -> BaseResponseDTO:
    cache.save(dto)

    return BaseResponseDTO(message="Table cached locally.")


@tables_router.post("/import", status_code=status.HTTP_201_CREATED)
@inject
async def import_normalized(
    request: Request,
    name: str | None = Query(default=None, min_length=1),
    service: JsonIOService = JsonIOServiceDependency,
) -> BaseResponseDTO:
    bundle = parse_normalized_bundle(await request.body())
    table = await service.import_normalized(bundle, name=name)

    return BaseResponseDTO(data=table, message="Table imported.")


@tables_router.post("/import/legacy", status_code=status.HTTP_201_CREATED)
@inject
async def import_legacy(
    request: Request,
    name: str | None = Query(default=None, min_length=1),
    service: JsonIOService = JsonIOServiceDependency,
) -> BaseResponseDTO:
    payload = parse_legacy_payload(await request.body())
    table = await service.import_legacy_payload(payload, name=name)

    return BaseResponseDTO(data=table, message="Table imported.")


@tables_router.post("/sync/push", status_code=status.HTTP_200_OK)
@inject
async def push_table(
    dto: LegacyPayloadDTO, service: JsonIOService = JsonIOServiceDependency
) -> BaseResponseDTO:
    table = await service.push_legacy_payload(dto)

    return BaseResponseDTO(data=table, message="Pushed table.")


@tables_router.get("/sync/pull", status_code=status.HTTP_200_OK)
@inject
async def pull_table(
    name: str = Query(min_length=1),
    service: JsonIOService = JsonIOServiceDependency,
) -> BaseResponseDTO:
    payload = await service.pull_legacy_payload(name)

    return BaseResponseDTO(data=payload, message="Pulled table.")


@tables_router.get("", status_code=status.HTTP_200_OK)
@inject
async def list_tables(
    use_case: ListTablesUseCase = Depends(
        Provide[DependencyContainer.list_tables_use_case]
    ),
) -> BaseResponseDTO:
    return BaseResponseDTO(data=await use_case.execute(), message="Tables listed.")


@tables_router.post("", status_code=status.HTTP_201_CREATED)
@inject
async def create_table(
    dto: CreateTableDTO,
    use_case: CreateTableUseCase = Depends(
        Provide[DependencyContainer.create_table_use_case]
    ),
) -> BaseResponseDTO:
    table = await use_case.execute(dto.name)

    return BaseResponseDTO(data=table, message="Table created.")


@tables_router.delete("/{table_id}", status_code=status.HTTP_200_OK)
@inject
async def delete_table(
    table_id: UUID,
    use_case: DeleteTableUseCase = Depends(
        Provide[DependencyContainer.delete_table_use_case]
    ),
) -> BaseResponseDTO:
    await use_case.execute(table_id)

    return BaseResponseDTO(message="Table deleted.")


@tables_router.get("/{table_id}/grid", status_code=status.HTTP_200_OK)
@inject
async def load_grid(
    table_id: UUID,
    limit: int = Query(default=settings.DEFAULT_PAGE_LIMIT, ge=1),
    offset: int = Query(default=0, ge=0),
    use_case: LoadGridUseCase = Depends(Provide[DependencyContainer.load_grid_use_case]),
) -> BaseResponseDTO:
    grid = await use_case.execute(table_id, limit=limit, offset=offset)

    return BaseResponseDTO(data=grid, message="Grid loaded.")


@tables_router.post("/{table_id}/rows", status_code=status.HTTP_201_CREATED)
@inject
async def add_row(
    table_id: UUID,
    dto: AddRowDTO,
    use_case: AddRowUseCase = Depends(Provide[DependencyContainer.add_row_use_case]),
) -> BaseResponseDTO:
    row = await use_case.execute(table_id, position=dto.position)

    return BaseResponseDTO(data=row, message="Row added.")


@tables_router.delete("/{table_id}/rows/{row_id}", status_code=status.HTTP_200_OK)
@inject
async def delete_row(
    table_id: UUID,
    row_id: UUID,
    use_case: DeleteRowUseCase = Depends(Provide[DependencyContainer.delete_row_use_case]),
) -> BaseResponseDTO:
    await use_case.execute(table_id, row_id)

    return BaseResponseDTO(message="Row deleted.")


@tables_router.post("/{table_id}/columns", status_code=status.HTTP_201_CREATED)
@inject
async def add_column(
    table_id: UUID,
    dto: AddColumnDTO,
    use_case: AddColumnUseCase = Depends(
        Provide[DependencyContainer.add_column_use_case]
    ),
) -> BaseResponseDTO:
    column = await use_case.execute(
        table_id,
        key=dto.key,
        name=dto.name,
        position=dto.position,
        type=dto.type,
        width=dto.width,
        meta=dto.meta,
    )

    return BaseResponseDTO(data=column, message="Column added.")


@tables_router.patch("/{table_id}/columns/{column_id}", status_code=status.HTTP_200_OK)
@inject
async def update_column(
    table_id: UUID,
    column_id: UUID,
    dto: ColumnPatchDTO,
    use_case: UpdateColumnUseCase = Depends(
        Provide[DependencyContainer.update_column_use_case]
    ),
) -> BaseResponseDTO:
    await use_case.execute(table_id, column_id, dto)

    return BaseResponseDTO(message="Column updated.")


@tables_router.put("/{table_id}/cells", status_code=status.HTTP_200_OK)
@inject
async def update_cell(
    table_id: UUID,
    dto: UpdateCellDTO,
    use_case: UpdateCellUseCase = Depends(
        Provide[DependencyContainer.update_cell_use_case]
    ),
) -> BaseResponseDTO:
    await use_case.execute(table_id, dto.row_id, dto.column_id, dto.value)

    return BaseResponseDTO(message="Cell updated.")


@tables_router.get("/{table_id}/export", status_code=status.HTTP_200_OK)
@inject
async def export_normalized(
    table_id: UUID, service: JsonIOService = JsonIOServiceDependency
) -> BaseResponseDTO:
    bundle = await service.export_normalized(table_id)

    return BaseResponseDTO(data=bundle, message="Table exported.")


@tables_router.get("/{table_id}/export/legacy", status_code=status.HTTP_200_OK)
@inject
async def export_legacy(
    table_id: UUID, service: JsonIOService = JsonIOServiceDependency
) -> BaseResponseDTO:
    payload = await service.export_legacy_payload(table_id)

    return BaseResponseDTO(data=payload, message="Table exported.")
