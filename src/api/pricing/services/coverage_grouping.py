from typing import Any, Dict, Iterable, Optional, Union
from fastapi.logger import logger
from pydantic import ValidationError

from src.api.common.utils.money import ZERO
from src.api.pricing.constants import FlyByType
from src.api.pricing.exceptions import DuplicateInGroup, InvalidBlockEdit, UnknownCoverageGroup
from src.api.pricing.schemas.block import (
    CatalogBlock,
    ConfigurableBlock,
    ConfigurableBlockUpdate,
    CoverageType,
)
from src.api.pricing.schemas.selection import BlockSelection
from src.api.pricing.services.block_factory import build_catalog_instance, build_flyby_instance
from src.api.pricing.services.line_pricing import LinePricingResolver

# Fields that identify a line and its group; edits never change them
IDENTITY_FIELDS = frozenset({"id", "catalog_block_id", "coverage_group_id", "is_flyby"})

# Editable fields that accept null
NULLABLE_FIELDS = frozenset({"custom_price", "custom_cycle_days", "service_cycle_days", "notes"})


class CoverageGroupingManager:
    """
    Commands over a BlockSelection: attach, toggle, insert FlyBy, detach,
    move and edit.

    Every command returns a new snapshot. A rejected command raises a
    PricingError and the snapshot passed in stays valid and unchanged.
    Catalog lines are unique per coverage group; with no coverage types
    declared the whole contract is one group.
    """

    def __init__(self, resolver: Optional[LinePricingResolver] = None):
        self.resolver = resolver or LinePricingResolver()

    # -- groups --------------------------------------------------------

    def resolve_active_group(self, selection: BlockSelection,
                             coverage_group_id: Optional[str] = None) -> Optional[CoverageType]:
        """The coverage type a new line goes to; None in flat mode"""
        if not selection.has_coverage_types:
            return None
        if coverage_group_id is None:
            return selection.coverage_types[0]
        coverage_type = selection.get_coverage_type(coverage_group_id)
        if coverage_type is None:
            raise UnknownCoverageGroup(
                f"Coverage type {coverage_group_id} is not part of this contract")
        return coverage_type

    def is_attached(self, selection: BlockSelection, catalog_block_id: str,
                    coverage_group_id: Optional[str] = None) -> bool:
        if not selection.has_coverage_types:
            return any(catalog_id == catalog_block_id for catalog_id, _ in selection.membership)
        return (catalog_block_id, coverage_group_id) in selection.membership

    def set_coverage_types(self, selection: BlockSelection,
                           coverage_types: Iterable[CoverageType]) -> BlockSelection:
        return selection.model_copy(update={"coverage_types": tuple(coverage_types)})

    # -- commands ------------------------------------------------------

    def attach(self, selection: BlockSelection, catalog_block: CatalogBlock, currency: str,
               coverage_group_id: Optional[str] = None) -> BlockSelection:
        coverage_type = self.resolve_active_group(selection, coverage_group_id)
        group_id = coverage_type.id if coverage_type else None

        if self.is_attached(selection, catalog_block.id, group_id):
            section = coverage_type.resource_name if coverage_type and coverage_type.resource_name else "this section"
            logger.warning(f"Rejected duplicate block {catalog_block.id} in group {group_id}")
            raise DuplicateInGroup(
                f"{catalog_block.name} is already in {section}",
                block_id=catalog_block.id,
                coverage_group_id=group_id,
            )

        instance = build_catalog_instance(catalog_block, currency, coverage_type)
        self.resolver.validate(instance)
        logger.info(f"Attached block {instance.id} (total {instance.total_price})")
        return self._with_blocks(selection, selection.blocks + (instance,))

    def toggle_attach(self, selection: BlockSelection, catalog_block: CatalogBlock, currency: str,
                      coverage_group_id: Optional[str] = None) -> BlockSelection:
        """Attach the catalog block to the group, or remove it if already there"""
        coverage_type = self.resolve_active_group(selection, coverage_group_id)
        group_id = coverage_type.id if coverage_type else None

        if not self.is_attached(selection, catalog_block.id, group_id):
            return self.attach(selection, catalog_block, currency, group_id)

        existing = next(
            b for b in selection.blocks_in_group(group_id)
            if not b.is_flyby and b.catalog_block_id == catalog_block.id
        )
        return self.detach(selection, existing.id)

    def insert_flyby(self, selection: BlockSelection, flyby_type: Union[FlyByType, str], currency: str,
                     coverage_group_id: Optional[str] = None, **fields: Any) -> BlockSelection:
        coverage_type = self.resolve_active_group(selection, coverage_group_id)
        instance = build_flyby_instance(FlyByType(flyby_type), currency, coverage_type, **fields)
        self.resolver.validate(instance)
        logger.info(f"Inserted FlyBy block {instance.id}")
        return self._with_blocks(selection, selection.blocks + (instance,))

    def detach(self, selection: BlockSelection, block_id: str) -> BlockSelection:
        if selection.get(block_id) is None:
            logger.warning(f"Cannot remove block {block_id}: not in selection")
            return selection
        logger.info(f"Removed block {block_id}")
        return self._with_blocks(selection, tuple(b for b in selection.blocks if b.id != block_id))

    def move(self, selection: BlockSelection, dragged_id: str, target_id: str) -> BlockSelection:
        """
        Move the dragged line to the target line's position.

        Only allowed between lines of the same coverage group (or two
        ungrouped lines); anything else leaves the order as it was.
        """
        if dragged_id == target_id:
            return selection

        dragged = selection.get(dragged_id)
        target = selection.get(target_id)
        if dragged is None or target is None:
            return selection
        if dragged.coverage_group_id != target.coverage_group_id:
            logger.warning(
                f"Ignored move of {dragged_id} onto {target_id}: different coverage groups")
            return selection

        dragged_index = selection.index_of(dragged_id)
        target_index = selection.index_of(target_id)
        blocks = list(selection.blocks)
        moved = blocks.pop(dragged_index)
        blocks.insert(target_index, moved)
        return self._with_blocks(selection, tuple(blocks))

    def edit(self, selection: BlockSelection, block_id: str,
             updates: Union[ConfigurableBlockUpdate, Dict[str, Any]]) -> BlockSelection:
        """Apply field edits to one line; the new line is validated before it replaces the old one"""
        block = selection.get(block_id)
        if block is None:
            logger.warning(f"Cannot edit block {block_id}: not in selection")
            return selection

        if isinstance(updates, ConfigurableBlockUpdate):
            changes = updates.model_dump(exclude_unset=True)
        else:
            changes = dict(updates)

        ignored = IDENTITY_FIELDS.intersection(changes)
        if ignored:
            logger.warning(f"Ignored edit of identity fields {sorted(ignored)} on block {block_id}")
            changes = {k: v for k, v in changes.items() if k not in IDENTITY_FIELDS}

        # null only clears fields that may be empty; elsewhere it means "unchanged"
        changes = {k: v for k, v in changes.items() if v is not None or k in NULLABLE_FIELDS}

        if "tax_rate" in changes and "taxes" not in changes:
            # A flat rate replaces the itemised components
            changes["taxes"] = []
        elif "taxes" in changes and not changes["taxes"]:
            changes["tax_rate"] = ZERO

        data = block.model_dump(exclude={"total_price", "has_pricing"})
        data.update(changes)
        try:
            updated = ConfigurableBlock.model_validate(data)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            logger.warning(f"Rejected edit of block {block_id}: invalid {fields}")
            raise InvalidBlockEdit(f"Invalid value for {', '.join(fields) or 'block'}", block_id)
        self.resolver.validate(updated)

        blocks = tuple(updated if b.id == block_id else b for b in selection.blocks)
        return self._with_blocks(selection, blocks)

    def _with_blocks(self, selection: BlockSelection, blocks) -> BlockSelection:
        return selection.model_copy(update={"blocks": tuple(blocks)})
