from datetime import date
from typing import List, Optional
from pydantic import BaseModel, Field

from src.api.pricing.constants import DurationUnit, PaymentMode
from src.api.pricing.schemas.billing import (
    ContractEvent,
    EventSummary,
    LineTaxBreakdown,
    PaymentModeAvailability,
    PaymentPlan,
)
from src.api.pricing.schemas.block import ConfigurableBlock


class ResolveBlockResponse(BaseModel):
    block: ConfigurableBlock
    breakdown: LineTaxBreakdown


class AggregateRequest(BaseModel):
    blocks: List[ConfigurableBlock] = []
    coverage_group_id: Optional[str] = None


class ScheduleRequest(BaseModel):
    blocks: List[ConfigurableBlock] = []
    payment_mode: PaymentMode = PaymentMode.PREPAID
    emi_months: Optional[int] = None


class ScheduleResponse(BaseModel):
    plan: PaymentPlan
    availability: PaymentModeAvailability


class EventsRequest(ScheduleRequest):
    start_date: date
    duration_value: int = Field(default=12, gt=0)
    duration_unit: DurationUnit = DurationUnit.MONTHS
    currency: str


class EventsResponse(BaseModel):
    events: List[ContractEvent]
    summary: EventSummary
