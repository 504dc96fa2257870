from datetime import date
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from src.api.common.utils.money import ZERO
from src.api.pricing.constants import (
    BillingCycle,
    BillingSubType,
    EventType,
    PaymentMode,
)


class TaxComponentAggregate(BaseModel):
    key: str
    name: str
    rate: Decimal
    amount: Decimal


class LineTaxBreakdown(BaseModel):
    """Rounded base/tax split of a single line, for display"""
    block_id: str
    base: Decimal
    tax: Decimal
    total_price: Decimal
    components: List[TaxComponentAggregate] = []


class ContractTotals(BaseModel):
    subtotal: Decimal = ZERO
    tax_total: Decimal = ZERO
    tax_breakdown: List[TaxComponentAggregate] = []
    grand_total: Decimal = ZERO
    billable_count: int = 0
    coverage_group_id: Optional[str] = None


class GroupStats(BaseModel):
    coverage_group_id: str
    resource_name: str = ""
    count: int = 0
    subtotal: Decimal = ZERO


class CycleGroup(BaseModel):
    cycle: BillingCycle
    label: str
    total: Decimal
    block_count: int
    is_recurring: bool


class Installment(BaseModel):
    sequence: int
    amount: Decimal


class PaymentPlan(BaseModel):
    mode: PaymentMode
    grand_total: Decimal = ZERO
    emi_months: Optional[int] = None
    emi_installment: Optional[Decimal] = None
    installments: List[Installment] = []
    cycle_groups: List[CycleGroup] = []


class PaymentModeAvailability(BaseModel):
    """Which payment modes the current billable blocks allow"""
    prepaid: bool = False
    emi: bool = False
    defined: bool = True
    mixed: bool = True
    reason: Optional[str] = None


class ContractEvent(BaseModel):
    id: str
    block_id: str
    block_name: str
    category_id: str = ""
    event_type: EventType
    billing_sub_type: Optional[BillingSubType] = None
    billing_cycle_label: Optional[str] = None
    sequence_number: int
    total_occurrences: int
    scheduled_date: date
    original_date: date
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    status: str = "scheduled"


class EventSummary(BaseModel):
    total_events: int = 0
    service_events: int = 0
    billing_events: int = 0
    total_billing_amount: Decimal = ZERO
    first_event_date: Optional[date] = None
    last_event_date: Optional[date] = None
    span_days: int = Field(default=0, ge=0)
