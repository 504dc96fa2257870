from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from src.api.common.utils.money import ZERO, to_decimal, to_rate
from src.api.pricing.constants import (
    BillingCycle,
    FlyByType,
    TaxInclusion,
    category_has_pricing,
)
from src.api.pricing.services.line_pricing import resolve_total_price


class TaxComponent(BaseModel):
    """One named tax frozen onto a block at attach time (e.g. CGST 9%)"""
    id: Optional[str] = None
    name: str
    rate: Decimal = Field(default=ZERO)

    model_config = ConfigDict(frozen=True)

    @field_validator("rate", mode="before")
    @classmethod
    def _rate(cls, v):
        return to_rate(v)

    @property
    def key(self) -> str:
        """Aggregation key: the tax id, or name and rate when there is none"""
        if self.id:
            return self.id
        return f"{self.name}@{self.rate.normalize():f}"


class PricingRecord(BaseModel):
    """Per-currency price of a catalog block"""
    currency: str
    amount: Decimal = Field(default=ZERO)
    tax_inclusion: TaxInclusion = TaxInclusion.EXCLUSIVE
    taxes: List[TaxComponent] = []
    is_active: bool = True

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return to_decimal(v)

    @field_validator("tax_inclusion", mode="before")
    @classmethod
    def _inclusion(cls, v):
        return v or TaxInclusion.EXCLUSIVE


class ServiceCycleConfig(BaseModel):
    enabled: bool = False
    days: Optional[int] = None


class CatalogBlock(BaseModel):
    """Immutable catalog template a contract line is created from"""
    id: str
    name: str
    category_id: str
    description: str = ""
    price: Decimal = Field(default=ZERO)
    pricing_records: List[PricingRecord] = []
    service_cycles: Optional[ServiceCycleConfig] = None

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        return to_decimal(v)


class CoverageType(BaseModel):
    """An equipment/entity category the contract services; scopes blocks"""
    id: str
    sub_category: Optional[str] = None
    resource_id: Optional[str] = None
    resource_name: str = ""

    model_config = ConfigDict(frozen=True)


class ConfigurableBlock(BaseModel):
    """
    A line item instance attached to a contract draft.

    Instances are immutable; every edit produces a new instance through
    validation again. ``total_price`` is derived from price, quantity and
    tax terms on every read and cannot be set.
    """
    id: str
    name: str = ""
    description: str = ""
    catalog_block_id: Optional[str] = None
    category_id: Optional[str] = None

    quantity: int = 1
    unlimited: bool = False
    price: Decimal = Field(default=ZERO)
    custom_price: Optional[Decimal] = None
    currency: str

    tax_rate: Decimal = Field(default=ZERO)
    tax_inclusion: TaxInclusion = TaxInclusion.EXCLUSIVE
    taxes: List[TaxComponent] = []

    cycle: BillingCycle = BillingCycle.PREPAID
    custom_cycle_days: Optional[int] = None
    service_cycle_days: Optional[int] = None

    coverage_group_id: Optional[str] = None
    coverage_group_name: Optional[str] = None

    is_flyby: bool = False
    flyby_type: Optional[FlyByType] = None

    notes: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _normalise_tax_terms(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("category_id") and data.get("flyby_type"):
            flyby_type = data["flyby_type"]
            data["category_id"] = getattr(flyby_type, "value", flyby_type)
        if not category_has_pricing(data.get("category_id")):
            data["tax_rate"] = ZERO
            data["taxes"] = []
        elif data.get("taxes"):
            # tax_rate always equals the sum of the components
            data["tax_rate"] = sum(
                (to_rate(t.rate if isinstance(t, TaxComponent) else t.get("rate"))
                 for t in data["taxes"]),
                ZERO,
            )
        if not data.get("tax_inclusion"):
            data["tax_inclusion"] = TaxInclusion.EXCLUSIVE
        return data

    @field_validator("price", mode="before")
    @classmethod
    def _money(cls, v):
        return to_decimal(v)

    @field_validator("tax_rate", mode="before")
    @classmethod
    def _tax_rate(cls, v):
        return to_rate(v)

    @field_validator("custom_price", mode="before")
    @classmethod
    def _custom_price(cls, v):
        return None if v is None else to_decimal(v)

    @property
    def effective_price(self) -> Decimal:
        return self.price if self.custom_price is None else self.custom_price

    @property
    def effective_quantity(self) -> int:
        if self.unlimited:
            return 1
        return max(1, self.quantity)

    @computed_field
    @property
    def has_pricing(self) -> bool:
        return category_has_pricing(self.category_id)

    @computed_field
    @property
    def total_price(self) -> Decimal:
        return resolve_total_price(self)


class ConfigurableBlockUpdate(BaseModel):
    """Editable fields of a contract line"""
    name: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[int] = None
    unlimited: Optional[bool] = None
    price: Optional[Decimal] = None
    custom_price: Optional[Decimal] = None
    tax_rate: Optional[Decimal] = None
    tax_inclusion: Optional[TaxInclusion] = None
    taxes: Optional[List[TaxComponent]] = None
    cycle: Optional[BillingCycle] = None
    custom_cycle_days: Optional[int] = None
    service_cycle_days: Optional[int] = None
    notes: Optional[str] = None
