from typing import Any, Dict, List, Optional
from datetime import date
from sqlmodel import Field, Column, JSON
from src.api.common.models.base import BaseModel, TimestampMixin
from src.api.pricing.constants import DurationUnit, PaymentMode


class ContractDraft(BaseModel, TimestampMixin, table=True):
    """
    A contract being authored: its commercial terms and selected lines
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str

    currency: str = "INR"
    start_date: Optional[date] = None
    duration_value: int = 12
    duration_unit: DurationUnit = DurationUnit.MONTHS

    payment_mode: PaymentMode = Field(default=PaymentMode.PREPAID, index=True)
    emi_months: Optional[int] = None

    # Serialized ConfigurableBlock list; list order is display order
    blocks: List[Dict[str, Any]] = Field(default=[], sa_column=Column(JSON))
    coverage_types: List[Dict[str, Any]] = Field(default=[], sa_column=Column(JSON))

