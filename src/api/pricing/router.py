"""Public pricing catalogue."""

from uuid import UUID

from fastapi import APIRouter, Request

from src.api.core.dependencies import PricingPackageServiceDep
from src.api.core.messages import APIResponse, MessageCode
from .schemas import (
    PricingPackageModel,
    PricingPackageResponse,
    PricingPackagesResponse,
)

router = APIRouter(
    prefix="/pricing",
    tags=["pricing"],
)


@router.get("/packages", response_model=PricingPackagesResponse)
async def list_packages(
    request: Request,
    package_service: PricingPackageServiceDep,
) -> PricingPackagesResponse:
    packages = await package_service.list_active_packages()
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=packages)


@router.get("/packages/{package_id}", response_model=PricingPackageResponse)
async def get_package(
    request: Request,
    package_id: UUID,
    package_service: PricingPackageServiceDep,
) -> PricingPackageResponse:
    package = await package_service.get_package(package_id)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=PricingPackageModel.model_validate(package),
    )
