from fastapi import APIRouter, Depends, status

from core.di_container import DependencyContainer
from dependency_injector.wiring import Provide, inject

from model.dto.base import BaseResponseDTO
from model.dto.builder import BuilderConfig, PreviewRequestDTO
from service.builder import BuilderService

builder_router = APIRouter(prefix="/builder", tags=["Builder"])

BuilderServiceDependency = Depends(Provide[DependencyContainer.builder_service_factory])


@builder_router.get("/default", status_code=status.HTTP_200_OK)
@inject
async def get_default_config(
    service: BuilderService = BuilderServiceDependency,
) -> BaseResponseDTO:
    return BaseResponseDTO(
        data=service.default_config().model_dump(by_alias=True),
        message="Default table definition.",
    )


@builder_router.post("/validate", status_code=status.HTTP_200_OK)
@inject
async def validate_config(
    config: BuilderConfig, service: BuilderService = BuilderServiceDependency
) -> BaseResponseDTO:
    service.validate_config(config)

    return BaseResponseDTO(message="Table definition is valid.")


@builder_router.post("/artifacts", status_code=status.HTTP_200_OK)
@inject
async def generate_artifacts(
    config: BuilderConfig, service: BuilderService = BuilderServiceDependency
) -> BaseResponseDTO:
    artifacts = service.generate_artifacts(config)

    return BaseResponseDTO(data=artifacts, message="Artifacts generated.")


@builder_router.post("/preview", status_code=status.HTTP_200_OK)
@inject
async def preview_table(
    dto: PreviewRequestDTO, service: BuilderService = BuilderServiceDependency
) -> BaseResponseDTO:
    preview = service.preview(dto.config, dto.rows, dto.query)

    return BaseResponseDTO(data=preview, message="Preview generated.")


@builder_router.post("/rows/new", status_code=status.HTTP_200_OK)
@inject
async def new_row(
    config: BuilderConfig, service: BuilderService = BuilderServiceDependency
) -> BaseResponseDTO:
    return BaseResponseDTO(data=service.new_row(config), message="Blank row.")
