import uuid
from decimal import Decimal
from typing import List, Optional, Tuple

from src.api.common.utils.money import ZERO
from src.api.pricing.constants import (
    COVERAGE_INSTANCE_SEPARATOR,
    BillingCycle,
    FlyByType,
    TaxInclusion,
)
from src.api.pricing.schemas.block import (
    CatalogBlock,
    ConfigurableBlock,
    CoverageType,
    PricingRecord,
)


def select_pricing_record(records: List[PricingRecord], currency: str) -> Optional[PricingRecord]:
    """
    Pick the pricing record used for a contract.

    Prefers an active record in the contract currency, then any active
    record, then the first record.
    """
    if not records:
        return None
    for record in records:
        if record.currency == currency and record.is_active:
            return record
    for record in records:
        if record.is_active:
            return record
    return records[0]


def default_cycle(catalog_block: CatalogBlock) -> Tuple[BillingCycle, Optional[int]]:
    cycles = catalog_block.service_cycles
    if cycles and cycles.enabled and cycles.days:
        return BillingCycle.CUSTOM, cycles.days
    return BillingCycle.PREPAID, None


def coverage_instance_id(catalog_block_id: str, coverage_group_id: Optional[str]) -> str:
    """Namespaced line id, so a catalog block can recur once per coverage group"""
    if not coverage_group_id:
        return catalog_block_id
    return f"{catalog_block_id}{COVERAGE_INSTANCE_SEPARATOR}{coverage_group_id}"


def build_catalog_instance(
    catalog_block: CatalogBlock,
    currency: str,
    coverage_type: Optional[CoverageType] = None,
) -> ConfigurableBlock:
    """Create a contract line from a catalog block, freezing its tax terms"""
    record = select_pricing_record(catalog_block.pricing_records, currency)
    cycle, cycle_days = default_cycle(catalog_block)

    if record is not None:
        price = record.amount
        taxes = list(record.taxes)
        tax_inclusion = record.tax_inclusion
        line_currency = record.currency or currency
    else:
        price = catalog_block.price or ZERO
        taxes = []
        tax_inclusion = TaxInclusion.EXCLUSIVE
        line_currency = currency

    tax_rate = sum((t.rate for t in taxes), ZERO)

    return ConfigurableBlock(
        id=coverage_instance_id(catalog_block.id, coverage_type.id if coverage_type else None),
        name=catalog_block.name,
        description=catalog_block.description,
        catalog_block_id=catalog_block.id,
        category_id=catalog_block.category_id,
        quantity=1,
        unlimited=False,
        price=price,
        currency=line_currency,
        tax_rate=tax_rate,
        tax_inclusion=tax_inclusion,
        taxes=taxes,
        cycle=cycle,
        custom_cycle_days=cycle_days,
        service_cycle_days=cycle_days,
        coverage_group_id=coverage_type.id if coverage_type else None,
        coverage_group_name=coverage_type.resource_name if coverage_type else None,
        is_flyby=False,
    )


def build_flyby_instance(
    flyby_type: FlyByType,
    currency: str,
    coverage_type: Optional[CoverageType] = None,
    name: str = "",
    description: str = "",
    price: Decimal = ZERO,
    quantity: int = 1,
    cycle: BillingCycle = BillingCycle.PREPAID,
    custom_cycle_days: Optional[int] = None,
) -> ConfigurableBlock:
    """Create an ad-hoc line; its id is fresh and never namespaced"""
    flyby_type = FlyByType(flyby_type)
    return ConfigurableBlock(
        id=f"flyby-{flyby_type.value}-{uuid.uuid4().hex[:12]}",
        name=name,
        description=description,
        category_id=flyby_type.value,
        quantity=quantity,
        price=price,
        currency=currency,
        cycle=cycle,
        custom_cycle_days=custom_cycle_days,
        coverage_group_id=coverage_type.id if coverage_type else None,
        coverage_group_name=coverage_type.resource_name if coverage_type else None,
        is_flyby=True,
        flyby_type=flyby_type,
    )
