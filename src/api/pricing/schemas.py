"""Pricing package schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse


class PricingPackageModel(BaseModel):
    id: UUID
    name: str
    token_amount: int
    price_minor_units: int
    is_popular: bool
    sort_order: int
    payment_price_ref: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PricingPackageCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    token_amount: int = Field(gt=0)
    price_minor_units: int = Field(gt=0)
    is_popular: bool = False
    sort_order: int = 0
    payment_price_ref: str | None = None
    is_active: bool = True


class PricingPackageUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    token_amount: int | None = Field(default=None, gt=0)
    price_minor_units: int | None = Field(default=None, gt=0)
    is_popular: bool | None = None
    sort_order: int | None = None
    payment_price_ref: str | None = None
    is_active: bool | None = None


# Response Models
PricingPackageResponse = APIResponse[PricingPackageModel]
PricingPackagesResponse = APIResponse[list[PricingPackageModel]]
