from datetime import date
from typing import Any, Dict, List, Optional, Union
from fastapi.logger import logger
from sqlmodel import Session, select

from src.api.common.config import settings
from src.api.common.utils.datetime import duration_to_months
from src.api.contracts.models.contract_draft import ContractDraft
from src.api.contracts.schemas.contract_draft import (
    ContractDraftCreate,
    ContractDraftUpdate,
    FlyByBlockRequest,
)
from src.api.pricing.schemas.billing import (
    ContractEvent,
    ContractTotals,
    GroupStats,
    PaymentModeAvailability,
    PaymentPlan,
)
from src.api.pricing.schemas.block import (
    CatalogBlock,
    ConfigurableBlock,
    ConfigurableBlockUpdate,
    CoverageType,
)
from src.api.pricing.schemas.selection import BlockSelection
from src.api.pricing.services.billing_scheduler import BillingScheduler
from src.api.pricing.services.contract_aggregator import ContractAggregator
from src.api.pricing.services.contract_events import compute_contract_events
from src.api.pricing.services.coverage_grouping import CoverageGroupingManager


def clamp_emi_months(emi_months: Optional[int], duration_value: int, duration_unit: str) -> Optional[int]:
    """Keep EMI months between the configured minimum and the contract length"""
    if emi_months is None:
        return None
    upper = min(duration_to_months(duration_value, duration_unit), settings.emi_max_months)
    upper = max(upper, settings.emi_min_months)
    return max(settings.emi_min_months, min(upper, emi_months))


class ContractDraftService:
    """
    Stores contract drafts and applies line commands to them.

    A command loads the draft's BlockSelection, runs it through the
    coverage grouping manager and saves the new snapshot. When the command
    raises, nothing is written.
    """

    def __init__(self, db: Session):
        self.db = db
        self.manager = CoverageGroupingManager()
        self.aggregator = ContractAggregator()
        self.scheduler = BillingScheduler(self.aggregator)

    # -- drafts --------------------------------------------------------

    def create_draft(self, draft_data: ContractDraftCreate) -> ContractDraft:
        """Create a new contract draft"""
        draft = ContractDraft(
            name=draft_data.name,
            currency=draft_data.currency or settings.default_currency,
            start_date=draft_data.start_date,
            duration_value=draft_data.duration_value,
            duration_unit=draft_data.duration_unit,
            payment_mode=draft_data.payment_mode,
            emi_months=clamp_emi_months(
                draft_data.emi_months, draft_data.duration_value, draft_data.duration_unit.value),
            blocks=[],
            coverage_types=[ct.model_dump(mode="json") for ct in draft_data.coverage_types],
        )
        self.db.add(draft)
        self.db.commit()
        self.db.refresh(draft)
        logger.info(f"Created contract draft {draft.id}")
        return draft

    def get_draft(self, draft_id: int) -> Optional[ContractDraft]:
        """Get a contract draft by ID"""
        return self.db.get(ContractDraft, draft_id)

    def get_drafts(self, skip: int = 0, limit: int = 100) -> List[ContractDraft]:
        """Get a list of contract drafts"""
        return self.db.exec(select(ContractDraft).offset(skip).limit(limit)).all()

    def update_draft(self, draft_id: int, draft_data: ContractDraftUpdate) -> Optional[ContractDraft]:
        """Update the commercial terms of a draft"""
        draft = self.db.get(ContractDraft, draft_id)
        if not draft:
            return None

        for key, value in draft_data.model_dump(exclude_unset=True).items():
            setattr(draft, key, value)

        duration_unit = getattr(draft.duration_unit, "value", draft.duration_unit)
        draft.emi_months = clamp_emi_months(draft.emi_months, draft.duration_value, duration_unit)
        return self._save(draft)

    def delete_draft(self, draft_id: int) -> bool:
        """Delete a contract draft"""
        draft = self.db.get(ContractDraft, draft_id)
        if not draft:
            return False

        self.db.delete(draft)
        self.db.commit()
        return True

    # -- selection -----------------------------------------------------

    def get_selection(self, draft: ContractDraft) -> BlockSelection:
        return BlockSelection(
            blocks=tuple(ConfigurableBlock.model_validate(b) for b in draft.blocks or []),
            coverage_types=tuple(CoverageType.model_validate(ct) for ct in draft.coverage_types or []),
        )

    def attach_block(self, draft: ContractDraft, catalog_block: CatalogBlock,
                     coverage_group_id: Optional[str] = None) -> ContractDraft:
        selection = self.manager.attach(
            self.get_selection(draft), catalog_block, draft.currency, coverage_group_id)
        return self._store_selection(draft, selection)

    def toggle_block(self, draft: ContractDraft, catalog_block: CatalogBlock,
                     coverage_group_id: Optional[str] = None) -> ContractDraft:
        selection = self.manager.toggle_attach(
            self.get_selection(draft), catalog_block, draft.currency, coverage_group_id)
        return self._store_selection(draft, selection)

    def insert_flyby_block(self, draft: ContractDraft, request: FlyByBlockRequest) -> ContractDraft:
        fields = request.model_dump(exclude={"flyby_type", "coverage_group_id"})
        selection = self.manager.insert_flyby(
            self.get_selection(draft), request.flyby_type, draft.currency,
            request.coverage_group_id, **fields)
        return self._store_selection(draft, selection)

    def remove_block(self, draft: ContractDraft, block_id: str) -> ContractDraft:
        selection = self.manager.detach(self.get_selection(draft), block_id)
        return self._store_selection(draft, selection)

    def move_block(self, draft: ContractDraft, dragged_id: str, target_id: str) -> ContractDraft:
        selection = self.manager.move(self.get_selection(draft), dragged_id, target_id)
        return self._store_selection(draft, selection)

    def edit_block(self, draft: ContractDraft, block_id: str,
                   updates: Union[ConfigurableBlockUpdate, Dict[str, Any]]) -> ContractDraft:
        selection = self.manager.edit(self.get_selection(draft), block_id, updates)
        return self._store_selection(draft, selection)

    def set_coverage_types(self, draft: ContractDraft, coverage_types: List[CoverageType]) -> ContractDraft:
        selection = self.manager.set_coverage_types(self.get_selection(draft), coverage_types)
        return self._store_selection(draft, selection)

    # -- read views ----------------------------------------------------

    def get_pricing_summary(self, draft: ContractDraft,
                            coverage_group_id: Optional[str] = None) -> ContractTotals:
        return self.aggregator.aggregate(self.get_selection(draft).blocks, coverage_group_id)

    def get_group_stats(self, draft: ContractDraft) -> List[GroupStats]:
        selection = self.get_selection(draft)
        return self.aggregator.group_stats(selection.blocks, selection.coverage_types)

    def get_payment_plan(self, draft: ContractDraft) -> PaymentPlan:
        return self.scheduler.schedule(
            self.get_selection(draft).blocks, draft.payment_mode, draft.emi_months)

    def get_payment_availability(self, draft: ContractDraft) -> PaymentModeAvailability:
        return self.scheduler.availability(self.get_selection(draft).blocks)

    def get_events(self, draft: ContractDraft, start_date: Optional[date] = None) -> List[ContractEvent]:
        start = start_date or draft.start_date or date.today()
        blocks = self.get_selection(draft).blocks
        plan = self.scheduler.schedule(blocks, draft.payment_mode, draft.emi_months)
        duration_unit = getattr(draft.duration_unit, "value", draft.duration_unit)
        return compute_contract_events(
            start, draft.duration_value, duration_unit, blocks, plan, draft.currency)

    # -- persistence ---------------------------------------------------

    def _store_selection(self, draft: ContractDraft, selection: BlockSelection) -> ContractDraft:
        draft.blocks = [b.model_dump(mode="json") for b in selection.blocks]
        draft.coverage_types = [ct.model_dump(mode="json") for ct in selection.coverage_types]
        return self._save(draft)

    def _save(self, draft: ContractDraft) -> ContractDraft:
        draft.touch()
        self.db.add(draft)
        self.db.commit()
        self.db.refresh(draft)
        return draft
