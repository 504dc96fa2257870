from typing import FrozenSet, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from src.api.pricing.schemas.block import ConfigurableBlock, CoverageType


class BlockSelection(BaseModel):
    """
    Immutable snapshot of the lines attached to a contract draft.

    Order of ``blocks`` is the display order. Commands in the coverage
    grouping manager never modify a snapshot, they return a new one.
    """
    blocks: Tuple[ConfigurableBlock, ...] = ()
    coverage_types: Tuple[CoverageType, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def has_coverage_types(self) -> bool:
        return len(self.coverage_types) > 0

    @property
    def block_ids(self) -> List[str]:
        return [b.id for b in self.blocks]

    @property
    def membership(self) -> FrozenSet[Tuple[str, Optional[str]]]:
        """(catalog block id, coverage group id) of every catalog-backed line"""
        return frozenset(
            (b.catalog_block_id, b.coverage_group_id)
            for b in self.blocks
            if not b.is_flyby and b.catalog_block_id
        )

    def get(self, block_id: str) -> Optional[ConfigurableBlock]:
        return next((b for b in self.blocks if b.id == block_id), None)

    def index_of(self, block_id: str) -> int:
        for index, block in enumerate(self.blocks):
            if block.id == block_id:
                return index
        return -1

    def get_coverage_type(self, coverage_group_id: Optional[str]) -> Optional[CoverageType]:
        return next((ct for ct in self.coverage_types if ct.id == coverage_group_id), None)

    def blocks_in_group(self, coverage_group_id: Optional[str]) -> List[ConfigurableBlock]:
        """Lines of one coverage group; every line when no groups are declared"""
        if not self.has_coverage_types:
            return list(self.blocks)
        return [b for b in self.blocks if b.coverage_group_id == coverage_group_id]
