from typing import Dict, Iterable, List, Optional

from src.api.common.utils.money import ZERO, round2
from src.api.pricing.schemas.billing import (
    ContractTotals,
    GroupStats,
    LineTaxBreakdown,
    TaxComponentAggregate,
)
from src.api.pricing.schemas.block import ConfigurableBlock, CoverageType
from src.api.pricing.services.line_pricing import LinePricingResolver


def billable_blocks(blocks: Iterable[ConfigurableBlock]) -> List[ConfigurableBlock]:
    return [b for b in blocks if b.has_pricing]


class ContractAggregator:
    """
    Contract-level totals from the lines of a draft.

    Inclusive lines are split back into base and tax, exclusive lines add
    tax on top of the base. Values are summed unrounded and rounded once at
    the end, so grand_total == subtotal + sum(tax_breakdown) up to a cent
    per tax component.
    """

    def __init__(self, resolver: Optional[LinePricingResolver] = None):
        self.resolver = resolver or LinePricingResolver()

    def aggregate(self, blocks: Iterable[ConfigurableBlock],
                  coverage_group_id: Optional[str] = None) -> ContractTotals:
        """
        Totals of the whole contract, or of one coverage group.

        Args:
            blocks: Lines of the contract
            coverage_group_id: Restrict to this group (tab view); None for the whole contract
        """
        scoped = list(blocks)
        if coverage_group_id is not None:
            scoped = [b for b in scoped if b.coverage_group_id == coverage_group_id]
        billable = billable_blocks(scoped)

        base_total = ZERO
        tax_total = ZERO
        grand_total = ZERO
        breakdown: Dict[str, TaxComponentAggregate] = {}

        for block in billable:
            line = self.resolver.decompose(block)
            base_total += line.base
            tax_total += line.tax
            grand_total += block.total_price

            for component in line.components:
                entry = breakdown.get(component.key)
                if entry is None:
                    breakdown[component.key] = TaxComponentAggregate(
                        key=component.key,
                        name=component.name,
                        rate=component.rate,
                        amount=component.amount,
                    )
                else:
                    entry.amount += component.amount

        return ContractTotals(
            subtotal=round2(base_total),
            tax_total=round2(tax_total),
            tax_breakdown=[
                entry.model_copy(update={"amount": round2(entry.amount)})
                for entry in breakdown.values()
            ],
            grand_total=round2(grand_total),
            billable_count=len(billable),
            coverage_group_id=coverage_group_id,
        )

    def line_breakdown(self, block: ConfigurableBlock) -> LineTaxBreakdown:
        line = self.resolver.decompose(block)
        return LineTaxBreakdown(
            block_id=block.id,
            base=round2(line.base),
            tax=round2(line.tax),
            total_price=block.total_price,
            components=[
                TaxComponentAggregate(key=c.key, name=c.name, rate=c.rate, amount=round2(c.amount))
                for c in line.components
            ],
        )

    def group_stats(self, blocks: Iterable[ConfigurableBlock],
                    coverage_types: Iterable[CoverageType]) -> List[GroupStats]:
        """Line count and summed line totals per coverage type"""
        blocks = list(blocks)
        stats = []
        for coverage_type in coverage_types:
            in_group = [b for b in blocks if b.coverage_group_id == coverage_type.id]
            stats.append(GroupStats(
                coverage_group_id=coverage_type.id,
                resource_name=coverage_type.resource_name,
                count=len(in_group),
                subtotal=round2(sum((b.total_price for b in in_group), ZERO)),
            ))
        return stats
