import os
import tempfile
from pathlib import Path

# Settings are read on import, so the test store is configured first
_TEST_DIR = Path(tempfile.mkdtemp(prefix="tabulary-tests-"))
os.environ["DB_DRIVER"] = "sqlite+aiosqlite"
os.environ["PG_DB_NAME"] = str(_TEST_DIR / "api.db")
os.environ["DB_CREATE_SCHEMA"] = "true"
os.environ["LOCAL_CACHE_PATH"] = str(_TEST_DIR / "cache.json")

from typing import AsyncIterator, Iterator

import pytest
from fastapi.testclient import TestClient

from core.database import SQLDatabase
from core.environment import SQLConfig
from model.dto.builder import BuilderConfig, default_builder_config
from service.builder import BuilderService
from service.grid import GridQueryService
from service.json_io import JsonIOService
from service.repositories import (
    SQLCellsRepository,
    SQLColumnsRepository,
    SQLRowsRepository,
    SQLTablesRepository,
)


@pytest.fixture
async def db(tmp_path: Path) -> AsyncIterator[SQLDatabase]:
    database = SQLDatabase()
    await database.init(
        SQLConfig(driver="sqlite+aiosqlite", database=str(tmp_path / "tabulary.db")),
        create_schema=True,
    )
    yield database
    await database.shutdown(None)


@pytest.fixture
def tables_repository(db: SQLDatabase) -> SQLTablesRepository:
    return SQLTablesRepository(pg_database=db)


@pytest.fixture
def columns_repository(db: SQLDatabase) -> SQLColumnsRepository:
    return SQLColumnsRepository(pg_database=db)


@pytest.fixture
def rows_repository(db: SQLDatabase) -> SQLRowsRepository:
    return SQLRowsRepository(pg_database=db)


@pytest.fixture
def cells_repository(db: SQLDatabase) -> SQLCellsRepository:
    return SQLCellsRepository(pg_database=db)


@pytest.fixture
def grid_service(
    tables_repository, columns_repository, rows_repository, cells_repository
) -> GridQueryService:
    return GridQueryService(
        tables_repository=tables_repository,
        columns_repository=columns_repository,
        rows_repository=rows_repository,
        cells_repository=cells_repository,
    )


@pytest.fixture
def json_io(
    tables_repository,
    columns_repository,
    rows_repository,
    cells_repository,
) -> JsonIOService:
    return JsonIOService(
        tables_repository=tables_repository,
        columns_repository=columns_repository,
        rows_repository=rows_repository,
        cells_repository=cells_repository,
    )


@pytest.fixture
def builder_service() -> BuilderService:
    return BuilderService()


@pytest.fixture
def users_config() -> BuilderConfig:
    return default_builder_config()


@pytest.fixture
def client() -> Iterator[TestClient]:
    from main import app

    with TestClient(app) as test_client:
        yield test_client
