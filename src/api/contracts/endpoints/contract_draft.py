from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from src.api.common.utils.database import get_db
from src.api.contracts.models.contract_draft import ContractDraft
from src.api.contracts.schemas.contract_draft import (
    AttachBlockRequest,
    ContractDraftCreate,
    ContractDraftRead,
    ContractDraftUpdate,
    FlyByBlockRequest,
    MoveBlockRequest,
)
from src.api.contracts.services.contract_draft_service import ContractDraftService
from src.api.pricing.endpoints.pricing import pricing_http_error
from src.api.pricing.exceptions import PricingError
from src.api.pricing.schemas.billing import ContractTotals, GroupStats
from src.api.pricing.schemas.block import ConfigurableBlockUpdate, CoverageType
from src.api.pricing.schemas.requests import EventsResponse, ScheduleResponse
from src.api.pricing.services.contract_events import summarize_events

router = APIRouter(prefix="/contract-drafts", tags=["contract-drafts"])


def get_contract_draft_service(db: Session = Depends(get_db)):
    return ContractDraftService(db)


def _get_draft_or_404(draft_id: int, draft_service: ContractDraftService) -> ContractDraft:
    draft = draft_service.get_draft(draft_id)
    if not draft:
        raise HTTPException(status_code=404, detail="Contract draft not found")
    return draft


@router.post("", response_model=ContractDraftRead)
def create_contract_draft(
    draft_data: ContractDraftCreate,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Create a new contract draft"""
    return draft_service.create_draft(draft_data)


@router.get("", response_model=List[ContractDraftRead])
def get_contract_drafts(
    skip: int = 0,
    limit: int = 100,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Get a list of contract drafts"""
    return draft_service.get_drafts(skip, limit)


@router.get("/{draft_id}", response_model=ContractDraftRead)
def get_contract_draft(
    draft_id: int,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Get a contract draft by ID"""
    return _get_draft_or_404(draft_id, draft_service)


@router.put("/{draft_id}", response_model=ContractDraftRead)
def update_contract_draft(
    draft_id: int,
    draft_data: ContractDraftUpdate,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Update the terms of a contract draft"""
    draft = draft_service.update_draft(draft_id, draft_data)
    if not draft:
        raise HTTPException(status_code=404, detail="Contract draft not found")
    return draft


@router.delete("/{draft_id}")
def delete_contract_draft(
    draft_id: int,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Delete a contract draft"""
    success = draft_service.delete_draft(draft_id)
    if not success:
        raise HTTPException(status_code=404, detail="Contract draft not found")
    return {"message": "Contract draft deleted successfully"}


# Line commands

@router.post("/{draft_id}/blocks", response_model=ContractDraftRead)
def attach_block(
    draft_id: int,
    request: AttachBlockRequest,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Attach a catalog block to the active coverage group"""
    draft = _get_draft_or_404(draft_id, draft_service)
    try:
        return draft_service.attach_block(draft, request.catalog_block, request.coverage_group_id)
    except PricingError as e:
        raise pricing_http_error(e)


@router.post("/{draft_id}/blocks/toggle", response_model=ContractDraftRead)
def toggle_block(
    draft_id: int,
    request: AttachBlockRequest,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Attach a catalog block, or remove it when the group already has it"""
    draft = _get_draft_or_404(draft_id, draft_service)
    try:
        return draft_service.toggle_block(draft, request.catalog_block, request.coverage_group_id)
    except PricingError as e:
        raise pricing_http_error(e)


@router.post("/{draft_id}/blocks/flyby", response_model=ContractDraftRead)
def insert_flyby_block(
    draft_id: int,
    request: FlyByBlockRequest,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Insert an ad-hoc block"""
    draft = _get_draft_or_404(draft_id, draft_service)
    try:
        return draft_service.insert_flyby_block(draft, request)
    except PricingError as e:
        raise pricing_http_error(e)


@router.post("/{draft_id}/blocks/move", response_model=ContractDraftRead)
def move_block(
    draft_id: int,
    request: MoveBlockRequest,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Reorder a block within its coverage group"""
    draft = _get_draft_or_404(draft_id, draft_service)
    return draft_service.move_block(draft, request.dragged_id, request.target_id)


@router.patch("/{draft_id}/blocks/{block_id}", response_model=ContractDraftRead)
def edit_block(
    draft_id: int,
    block_id: str,
    updates: ConfigurableBlockUpdate,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Edit the fields of one block"""
    draft = _get_draft_or_404(draft_id, draft_service)
    if draft_service.get_selection(draft).get(block_id) is None:
        raise HTTPException(status_code=404, detail="Block not found")
    try:
        return draft_service.edit_block(draft, block_id, updates)
    except PricingError as e:
        raise pricing_http_error(e)


@router.delete("/{draft_id}/blocks/{block_id}", response_model=ContractDraftRead)
def remove_block(
    draft_id: int,
    block_id: str,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Remove a block from the draft"""
    draft = _get_draft_or_404(draft_id, draft_service)
    return draft_service.remove_block(draft, block_id)


@router.put("/{draft_id}/coverage-types", response_model=ContractDraftRead)
def set_coverage_types(
    draft_id: int,
    coverage_types: List[CoverageType],
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Replace the coverage types of a draft"""
    draft = _get_draft_or_404(draft_id, draft_service)
    return draft_service.set_coverage_types(draft, coverage_types)


# Read views

@router.get("/{draft_id}/summary", response_model=ContractTotals)
def get_pricing_summary(
    draft_id: int,
    coverage_group_id: Optional[str] = None,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Subtotal, tax breakdown and grand total, optionally for one coverage group"""
    draft = _get_draft_or_404(draft_id, draft_service)
    return draft_service.get_pricing_summary(draft, coverage_group_id)


@router.get("/{draft_id}/group-stats", response_model=List[GroupStats])
def get_group_stats(
    draft_id: int,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Line count and subtotal per coverage type"""
    draft = _get_draft_or_404(draft_id, draft_service)
    return draft_service.get_group_stats(draft)


@router.get("/{draft_id}/payment-plan", response_model=ScheduleResponse)
def get_payment_plan(
    draft_id: int,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Payment plan for the draft's payment mode"""
    draft = _get_draft_or_404(draft_id, draft_service)
    try:
        plan = draft_service.get_payment_plan(draft)
    except PricingError as e:
        raise pricing_http_error(e)
    return ScheduleResponse(plan=plan, availability=draft_service.get_payment_availability(draft))


@router.get("/{draft_id}/events", response_model=EventsResponse)
def get_contract_events(
    draft_id: int,
    start_date: Optional[date] = None,
    draft_service: ContractDraftService = Depends(get_contract_draft_service)
):
    """Service and billing timeline of the draft"""
    draft = _get_draft_or_404(draft_id, draft_service)
    try:
        events = draft_service.get_events(draft, start_date)
    except PricingError as e:
        raise pricing_http_error(e)
    return EventsResponse(events=events, summary=summarize_events(events))
