from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, List

from src.api.common.utils.money import ZERO, HUNDRED, percent_of, round2, to_rate
from src.api.pricing.constants import (
    UNITEMISED_TAX_NAME,
    BillingCycle,
    TaxInclusion,
    category_has_pricing,
)
from src.api.pricing.exceptions import InvalidCycleConfiguration, InvalidQuantity

if TYPE_CHECKING:
    from src.api.pricing.schemas.block import ConfigurableBlock


@dataclass(frozen=True)
class TaxLine:
    key: str
    name: str
    rate: Decimal
    amount: Decimal


@dataclass(frozen=True)
class LineBreakdown:
    """Unrounded base/tax split of one line; ``total`` is the line total"""
    base: Decimal
    tax: Decimal
    total: Decimal
    components: List[TaxLine] = field(default_factory=list)


def resolve_total_price(block: "ConfigurableBlock") -> Decimal:
    """
    Tax-aware total of a single line.

    Exclusive tax is added on top of the unit price, inclusive prices already
    contain it. Rounding happens once, on the final multiplication.
    """
    if not category_has_pricing(block.category_id):
        return round2(ZERO)

    price = block.effective_price
    quantity = block.effective_quantity
    rate = to_rate(block.tax_rate)

    if rate == ZERO or block.tax_inclusion == TaxInclusion.INCLUSIVE:
        return round2(price * quantity)

    unit_with_tax = price + percent_of(price, rate)
    return round2(unit_with_tax * quantity)


def validate_block(block: "ConfigurableBlock") -> None:
    if block.quantity < 1:
        raise InvalidQuantity(
            f"Quantity must be at least 1 (got {block.quantity})", block.id)
    if block.cycle == BillingCycle.CUSTOM and (
            block.custom_cycle_days is None or block.custom_cycle_days <= 0):
        raise InvalidCycleConfiguration(
            "A custom billing cycle needs a positive number of days", block.id)


def decompose(block: "ConfigurableBlock") -> LineBreakdown:
    """Split a line into taxable base, tax and per-component tax amounts"""
    if not category_has_pricing(block.category_id):
        return LineBreakdown(base=ZERO, tax=ZERO, total=ZERO)

    line_amount = block.effective_price * block.effective_quantity
    rate = to_rate(block.tax_rate)

    if rate == ZERO:
        return LineBreakdown(base=line_amount, tax=ZERO, total=line_amount)

    if block.tax_inclusion == TaxInclusion.INCLUSIVE:
        base = line_amount / (1 + rate / HUNDRED)
        tax = line_amount - base
    else:
        base = line_amount
        tax = percent_of(base, rate)

    if block.taxes:
        components = [
            TaxLine(key=t.key, name=t.name, rate=t.rate, amount=percent_of(base, t.rate))
            for t in block.taxes
        ]
    else:
        components = [TaxLine(
            key=f"{UNITEMISED_TAX_NAME}@{rate.normalize():f}",
            name=UNITEMISED_TAX_NAME,
            rate=rate,
            amount=tax,
        )]
    return LineBreakdown(base=base, tax=tax, total=base + tax, components=components)


class LinePricingResolver:
    """Validates a line and computes its total"""

    def validate(self, block: "ConfigurableBlock") -> None:
        validate_block(block)

    def resolve(self, block: "ConfigurableBlock") -> Decimal:
        return resolve_total_price(block)

    def decompose(self, block: "ConfigurableBlock") -> LineBreakdown:
        return decompose(block)
