from fastapi import APIRouter
from api.v1.builder import builder_router
from api.v1.health import health_router
from api.v1.tables import tables_router

v1_router = APIRouter(prefix="/api/v1")


v1_router.include_router(builder_router)
v1_router.include_router(tables_router)
v1_router.include_router(health_router)

__all__ = ["v1_router"]
