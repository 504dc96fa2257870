import math
from datetime import date
from typing import Dict, Iterable, List

from src.api.common.utils.datetime import add_days, add_months, duration_to_days
from src.api.common.utils.money import ZERO, round2
from src.api.pricing.constants import (
    EVENT_CYCLE_LABELS,
    BillingCycle,
    BillingSubType,
    EventType,
    PaymentMode,
    cycle_period_days,
)
from src.api.pricing.schemas.billing import ContractEvent, EventSummary, PaymentPlan
from src.api.pricing.schemas.block import ConfigurableBlock


def make_event_id(block_id: str, event_type: EventType, sequence: int) -> str:
    return f"evt_{event_type.value}_{block_id}_{sequence}"


def count_recurring_periods(duration_days: int, period_days: int) -> int:
    if period_days <= 0:
        return 1
    return max(1, math.ceil(duration_days / period_days))


def _event(block_id: str, block_name: str, category_id: str, event_type: EventType,
           sequence: int, total: int, when: date, **extra) -> ContractEvent:
    return ContractEvent(
        id=make_event_id(block_id, event_type, sequence),
        block_id=block_id,
        block_name=block_name,
        category_id=category_id,
        event_type=event_type,
        sequence_number=sequence,
        total_occurrences=total,
        scheduled_date=when,
        original_date=when,
        **extra,
    )


def _service_events(block: ConfigurableBlock, start_date: date) -> List[ContractEvent]:
    category = block.category_id or ""
    quantity = block.quantity or 1
    if block.service_cycle_days and block.service_cycle_days > 0 and quantity > 1:
        return [
            _event(block.id, block.name, category, EventType.SERVICE, i + 1, quantity,
                   add_days(start_date, i * block.service_cycle_days))
            for i in range(quantity)
        ]
    return [_event(block.id, block.name, category, EventType.SERVICE, 1, 1, start_date)]


def _block_billing_events(block: ConfigurableBlock, start_date: date, end_date: date,
                          total_days: int, currency: str) -> List[ContractEvent]:
    category = block.category_id or ""
    block_currency = block.currency or currency
    cycle = block.cycle or BillingCycle.PREPAID

    if cycle == BillingCycle.PREPAID:
        return [_event(block.id, block.name, category, EventType.BILLING, 1, 1, start_date,
                       billing_sub_type=BillingSubType.UPFRONT, billing_cycle_label="Prepaid",
                       amount=block.total_price, currency=block_currency)]
    if cycle == BillingCycle.POSTPAID:
        return [_event(block.id, block.name, category, EventType.BILLING, 1, 1, end_date,
                       billing_sub_type=BillingSubType.ON_COMPLETION, billing_cycle_label="Postpaid",
                       amount=block.total_price, currency=block_currency)]

    period_days = cycle_period_days(cycle, block.custom_cycle_days)
    count = count_recurring_periods(total_days, period_days)
    per_period = round2(block.total_price / count)
    label = EVENT_CYCLE_LABELS.get(cycle, cycle.value)

    events = []
    for i in range(count):
        when = add_days(start_date, i * period_days)
        if when > end_date:
            break
        events.append(_event(block.id, block.name, category, EventType.BILLING, i + 1, count, when,
                             billing_sub_type=BillingSubType.RECURRING,
                             billing_cycle_label=f"{label} {i + 1}/{count}",
                             amount=per_period, currency=block_currency))
    return events


def compute_contract_events(start_date: date, duration_value: int, duration_unit: str,
                            blocks: Iterable[ConfigurableBlock], plan: PaymentPlan,
                            currency: str) -> List[ContractEvent]:
    """
    Service deliveries and billing dates over the contract term.

    Unlimited lines and lines without pricing produce no events. Events are
    ordered by date with service events ahead of billing on the same day.
    """
    total_days = duration_to_days(duration_value, duration_unit)
    end_date = add_days(start_date, total_days)
    priced = [b for b in blocks if b.has_pricing and not b.unlimited]

    events: List[ContractEvent] = []
    for block in priced:
        events.extend(_service_events(block, start_date))

    if plan.mode == PaymentMode.PREPAID:
        events.append(ContractEvent(
            id=make_event_id("contract", EventType.BILLING, 1),
            block_id="_contract",
            block_name="Full Payment (Upfront)",
            event_type=EventType.BILLING,
            billing_sub_type=BillingSubType.UPFRONT,
            billing_cycle_label="Upfront",
            sequence_number=1,
            total_occurrences=1,
            scheduled_date=start_date,
            original_date=start_date,
            amount=plan.grand_total,
            currency=currency,
        ))
    elif plan.mode == PaymentMode.EMI:
        months = plan.emi_months or 0
        for i in range(months):
            when = add_months(start_date, i)
            events.append(ContractEvent(
                id=make_event_id("emi", EventType.BILLING, i + 1),
                block_id="_emi",
                block_name="EMI Installment",
                event_type=EventType.BILLING,
                billing_sub_type=BillingSubType.EMI,
                billing_cycle_label=f"EMI {i + 1}/{months}",
                sequence_number=i + 1,
                total_occurrences=months,
                scheduled_date=when,
                original_date=when,
                amount=plan.emi_installment,
                currency=currency,
            ))
    else:
        for block in priced:
            events.extend(_block_billing_events(block, start_date, end_date, total_days, currency))

    # sorted() is stable, so same-day events of one type keep their order
    return sorted(events, key=lambda e: (e.scheduled_date, e.event_type != EventType.SERVICE))


def summarize_events(events: List[ContractEvent]) -> EventSummary:
    service_events = [e for e in events if e.event_type == EventType.SERVICE]
    billing_events = [e for e in events if e.event_type == EventType.BILLING]
    if not events:
        return EventSummary()

    dates = sorted(e.scheduled_date for e in events)
    return EventSummary(
        total_events=len(events),
        service_events=len(service_events),
        billing_events=len(billing_events),
        total_billing_amount=round2(sum((e.amount or ZERO for e in billing_events), ZERO)),
        first_event_date=dates[0],
        last_event_date=dates[-1],
        span_days=(dates[-1] - dates[0]).days,
    )


def group_events_by_block(events: Iterable[ContractEvent]) -> Dict[str, List[ContractEvent]]:
    groups: Dict[str, List[ContractEvent]] = {}
    for event in events:
        groups.setdefault(event.block_id, []).append(event)
    return groups
