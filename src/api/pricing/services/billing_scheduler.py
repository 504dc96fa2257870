from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Union
from fastapi.logger import logger

from src.api.common.utils.money import ZERO, round2
from src.api.pricing.constants import (
    CYCLE_PRIORITY,
    ONE_TIME_CYCLES,
    BillingCycle,
    PaymentMode,
    schedule_label,
)
from src.api.pricing.exceptions import InvalidEmiConfiguration
from src.api.pricing.schemas.billing import (
    CycleGroup,
    Installment,
    PaymentModeAvailability,
    PaymentPlan,
)
from src.api.pricing.schemas.block import ConfigurableBlock
from src.api.pricing.services.contract_aggregator import ContractAggregator, billable_blocks


class BillingScheduler:
    """Builds the payment plan of a contract from its billable lines"""

    def __init__(self, aggregator: Optional[ContractAggregator] = None):
        self.aggregator = aggregator or ContractAggregator()

    def schedule(self, blocks: Iterable[ConfigurableBlock],
                 payment_mode: Union[PaymentMode, str],
                 emi_months: Optional[int] = None) -> PaymentPlan:
        """
        Payment plan for the given mode.

        prepaid pays the grand total upfront, emi splits it into equal monthly
        installments, defined and mixed group the lines by billing cycle.

        Raises:
            InvalidEmiConfiguration: emi mode without a positive number of months
        """
        payment_mode = PaymentMode(payment_mode)
        blocks = list(blocks)
        grand_total = self.aggregator.aggregate(blocks).grand_total

        if payment_mode == PaymentMode.PREPAID:
            return PaymentPlan(mode=payment_mode, grand_total=grand_total)

        if payment_mode == PaymentMode.EMI:
            if emi_months is None or emi_months <= 0:
                raise InvalidEmiConfiguration(
                    f"EMI needs a positive number of months (got {emi_months})")
            # The last installment is not adjusted for the rounding remainder
            installment = round2(grand_total / emi_months)
            return PaymentPlan(
                mode=payment_mode,
                grand_total=grand_total,
                emi_months=emi_months,
                emi_installment=installment,
                installments=[
                    Installment(sequence=i + 1, amount=installment)
                    for i in range(emi_months)
                ],
            )

        cycle_groups = self.group_by_cycle(blocks)
        logger.info(f"Built {payment_mode.value} plan with {len(cycle_groups)} cycle groups")
        return PaymentPlan(
            mode=payment_mode,
            grand_total=grand_total,
            emi_months=emi_months,
            cycle_groups=cycle_groups,
        )

    def group_by_cycle(self, blocks: Iterable[ConfigurableBlock]) -> List[CycleGroup]:
        totals: Dict[BillingCycle, Decimal] = defaultdict(lambda: ZERO)
        counts: Dict[BillingCycle, int] = defaultdict(int)
        for block in billable_blocks(blocks):
            cycle = block.cycle or BillingCycle.PREPAID
            totals[cycle] += block.total_price
            counts[cycle] += 1

        return [
            CycleGroup(
                cycle=cycle,
                label=schedule_label(cycle),
                total=round2(totals[cycle]),
                block_count=counts[cycle],
                is_recurring=cycle not in ONE_TIME_CYCLES,
            )
            for cycle in CYCLE_PRIORITY
            if counts[cycle] > 0
        ]

    def availability(self, blocks: Iterable[ConfigurableBlock]) -> PaymentModeAvailability:
        """Upfront needs every billable line prepaid, EMI needs every one postpaid"""
        billable = billable_blocks(blocks)
        all_prepaid = bool(billable) and all(b.cycle == BillingCycle.PREPAID for b in billable)
        all_postpaid = bool(billable) and all(b.cycle == BillingCycle.POSTPAID for b in billable)

        reason = None
        if not all_prepaid and not all_postpaid:
            reason = "Upfront requires all blocks prepaid. EMI requires all blocks postpaid."
        elif not all_prepaid:
            reason = "Upfront requires all blocks to have prepaid billing cycle."
        elif not all_postpaid:
            reason = "EMI requires all blocks to have postpaid billing cycle."

        return PaymentModeAvailability(prepaid=all_prepaid, emi=all_postpaid, reason=reason)
