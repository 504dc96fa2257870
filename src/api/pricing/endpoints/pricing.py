from fastapi import APIRouter, HTTPException, status
from fastapi.logger import logger

from src.api.pricing.exceptions import DuplicateInGroup, PricingError
from src.api.pricing.schemas.billing import ContractTotals
from src.api.pricing.schemas.block import ConfigurableBlock
from src.api.pricing.schemas.requests import (
    AggregateRequest,
    EventsRequest,
    EventsResponse,
    ResolveBlockResponse,
    ScheduleRequest,
    ScheduleResponse,
)
from src.api.pricing.services.billing_scheduler import BillingScheduler
from src.api.pricing.services.contract_aggregator import ContractAggregator
from src.api.pricing.services.contract_events import compute_contract_events, summarize_events
from src.api.pricing.services.line_pricing import LinePricingResolver

router = APIRouter(prefix="/pricing", tags=["pricing"])


def pricing_http_error(error: PricingError) -> HTTPException:
    """Translate a rejected pricing command into an HTTP error"""
    logger.error(f"Pricing command rejected: {error.message}")
    if isinstance(error, DuplicateInGroup):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error.message)


@router.post("/resolve", response_model=ResolveBlockResponse)
def resolve_block(block: ConfigurableBlock):
    """Validate one line and return its total with the base/tax split"""
    try:
        LinePricingResolver().validate(block)
    except PricingError as e:
        raise pricing_http_error(e)
    return ResolveBlockResponse(block=block, breakdown=ContractAggregator().line_breakdown(block))


@router.post("/aggregate", response_model=ContractTotals)
def aggregate_blocks(request: AggregateRequest):
    """Subtotal, tax breakdown and grand total of a set of lines"""
    return ContractAggregator().aggregate(request.blocks, request.coverage_group_id)


@router.post("/schedule", response_model=ScheduleResponse)
def schedule_payments(request: ScheduleRequest):
    """Payment plan of a set of lines for a payment mode"""
    scheduler = BillingScheduler()
    try:
        plan = scheduler.schedule(request.blocks, request.payment_mode, request.emi_months)
    except PricingError as e:
        raise pricing_http_error(e)
    return ScheduleResponse(plan=plan, availability=scheduler.availability(request.blocks))


@router.post("/events", response_model=EventsResponse)
def preview_events(request: EventsRequest):
    """Service and billing timeline of a set of lines"""
    try:
        plan = BillingScheduler().schedule(request.blocks, request.payment_mode, request.emi_months)
    except PricingError as e:
        raise pricing_http_error(e)
    events = compute_contract_events(
        request.start_date,
        request.duration_value,
        request.duration_unit.value,
        request.blocks,
        plan,
        request.currency,
    )
    return EventsResponse(events=events, summary=summarize_events(events))
