from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from src.api.pricing.constants import DurationUnit, FlyByType, PaymentMode, BillingCycle
from src.api.pricing.schemas.block import CatalogBlock, ConfigurableBlock, CoverageType


class ContractDraftBase(BaseModel):
    """Base schema for contract draft data"""
    name: str
    currency: str = "INR"
    start_date: Optional[date] = None
    duration_value: int = Field(default=12, gt=0)
    duration_unit: DurationUnit = DurationUnit.MONTHS
    payment_mode: PaymentMode = PaymentMode.PREPAID
    emi_months: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class ContractDraftCreate(ContractDraftBase):
    """Schema for creating a new contract draft"""
    coverage_types: List[CoverageType] = []


class ContractDraftUpdate(BaseModel):
    """Schema for updating contract draft terms"""
    name: Optional[str] = None
    currency: Optional[str] = None
    start_date: Optional[date] = None
    duration_value: Optional[int] = Field(default=None, gt=0)
    duration_unit: Optional[DurationUnit] = None
    payment_mode: Optional[PaymentMode] = None
    emi_months: Optional[int] = None


class ContractDraftRead(ContractDraftBase):
    """Schema for reading contract draft data"""
    id: int
    blocks: List[ConfigurableBlock] = []
    coverage_types: List[CoverageType] = []
    created_at: datetime
    updated_at: datetime


class AttachBlockRequest(BaseModel):
    catalog_block: CatalogBlock
    coverage_group_id: Optional[str] = None


class FlyByBlockRequest(BaseModel):
    flyby_type: FlyByType
    coverage_group_id: Optional[str] = None
    name: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    quantity: int = 1
    cycle: BillingCycle = BillingCycle.PREPAID
    custom_cycle_days: Optional[int] = None


class MoveBlockRequest(BaseModel):
    dragged_id: str
    target_id: str
