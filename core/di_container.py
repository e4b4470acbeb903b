from logging import Logger

from dependency_injector import containers, providers

from core.cache import LocalPayloadCache
from core.environment import settings
from core.database import SQLDatabase
from core.logger import app_logger
from service.builder import BuilderService
from service.grid import GridQueryService
from service.json_io import JsonIOService
from service.repositories import (
    SQLCellsRepository,
    SQLColumnsRepository,
    SQLRowsRepository,
    SQLTablesRepository,
)
from service.usecases import (
    AddColumnUseCase,
    AddRowUseCase,
    CreateTableUseCase,
    DeleteRowUseCase,
    DeleteTableUseCase,
    GridEditor,
    ListTablesUseCase,
    LoadGridUseCase,
    UpdateCellUseCase,
    UpdateColumnUseCase,
)


class DependencyContainer(containers.DeclarativeContainer):
    # Dependency wiring
    wiring_config = containers.WiringConfiguration(packages=["api.v1"])

    # Resources/Singletons
    logger: Logger = providers.Object(app_logger)
    pg_database = providers.Resource(
        SQLDatabase,
        db_config=settings.PG_DB_CONFIG,
        create_schema=settings.DB_CREATE_SCHEMA,
        logger=logger,
    )
    local_cache = providers.Singleton(
        LocalPayloadCache,
        path=settings.LOCAL_CACHE_PATH,
        key=settings.LOCAL_CACHE_KEY,
        logger=logger,
    )

    # Repositories
    tables_repository = providers.Factory(
        SQLTablesRepository, pg_database=pg_database, logger=logger
    )
    columns_repository = providers.Factory(
        SQLColumnsRepository, pg_database=pg_database, logger=logger
    )
    rows_repository = providers.Factory(
        SQLRowsRepository, pg_database=pg_database, logger=logger
    )
    cells_repository = providers.Factory(
        SQLCellsRepository, pg_database=pg_database, logger=logger
    )

    # Services
    builder_service_factory = providers.Factory(BuilderService, logger=logger)

    grid_query_service = providers.Factory(
        GridQueryService,
        tables_repository=tables_repository,
        columns_repository=columns_repository,
        rows_repository=rows_repository,
        cells_repository=cells_repository,
        logger=logger,
    )

    json_io_service_factory = providers.Factory(
        JsonIOService,
        tables_repository=tables_repository,
        columns_repository=columns_repository,
        rows_repository=rows_repository,
        cells_repository=cells_repository,
        export_page_size=settings.EXPORT_PAGE_SIZE,
        logger=logger,
    )

    # Use cases
    load_grid_use_case = providers.Factory(
        LoadGridUseCase, grid_service=grid_query_service
    )
    update_cell_use_case = providers.Factory(
        UpdateCellUseCase,
        cells_repository=cells_repository,
        rows_repository=rows_repository,
        columns_repository=columns_repository,
    )
    add_row_use_case = providers.Factory(AddRowUseCase, rows_repository=rows_repository)
    add_column_use_case = providers.Factory(
        AddColumnUseCase, columns_repository=columns_repository
    )
    update_column_use_case = providers.Factory(
        UpdateColumnUseCase, columns_repository=columns_repository
    )
    create_table_use_case = providers.Factory(
        CreateTableUseCase, tables_repository=tables_repository
    )
    list_tables_use_case = providers.Factory(
        ListTablesUseCase, tables_repository=tables_repository
    )
    delete_row_use_case = providers.Factory(
        DeleteRowUseCase, rows_repository=rows_repository
    )
    delete_table_use_case = providers.Factory(
        DeleteTableUseCase, tables_repository=tables_repository
    )
    grid_editor = providers.Factory(
        GridEditor, update_cell=update_cell_use_case, logger=logger
    )
