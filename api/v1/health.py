from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from core.database import SQLDatabase
from core.di_container import DependencyContainer
from core.exceptions import BackendError
from dependency_injector.wiring import Provide, inject


health_router = APIRouter(tags=["Health"])

DatabaseDependency = Depends(Provide[DependencyContainer.pg_database])


class HealthCheck(BaseModel):
    name: str = "Tabulary"
    version: str
    description: str = "Table builder and normalized grid service"
    status: str
    database: str


@health_router.get("/status", status_code=status.HTTP_200_OK)
@inject
async def health_check(pg_database: SQLDatabase = DatabaseDependency) -> HealthCheck:
    try:
        await pg_database.ping()
        database = "ok"
    except BackendError:
        database = "unreachable"

    return HealthCheck(version="0.1.0", status="ok", database=database)
