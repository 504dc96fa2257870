"""
Validation failures raised by the pricing engine.

All of them are local and recoverable: the command that raised leaves the
block selection untouched and the caller shows ``message`` to the user.
"""
from typing import Optional


class PricingError(Exception):
    """Base class for rejected pricing commands"""

    def __init__(self, message: str, block_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.block_id = block_id


class InvalidQuantity(PricingError):
    pass


class InvalidCycleConfiguration(PricingError):
    pass


class DuplicateInGroup(PricingError):
    def __init__(self, message: str, block_id: Optional[str] = None,
                 coverage_group_id: Optional[str] = None):
        super().__init__(message, block_id)
        self.coverage_group_id = coverage_group_id


class InvalidEmiConfiguration(PricingError):
    pass


class UnknownCoverageGroup(PricingError):
    pass


class InvalidBlockEdit(PricingError):
    pass
