from enum import Enum
from typing import Optional

# Python enums for type hints and constants


class BillingCycle(str, Enum):
    PREPAID = "prepaid"
    POSTPAID = "postpaid"
    MONTHLY = "monthly"
    FORTNIGHTLY = "fortnightly"
    QUARTERLY = "quarterly"
    CUSTOM = "custom"


class TaxInclusion(str, Enum):
    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


class PaymentMode(str, Enum):
    PREPAID = "prepaid"
    EMI = "emi"
    DEFINED = "defined"
    MIXED = "mixed"


class FlyByType(str, Enum):
    SERVICE = "service"
    SPARE = "spare"
    TEXT = "text"
    DOCUMENT = "document"


class BlockCategory(str, Enum):
    SERVICE = "service"
    SPARE = "spare"
    BILLING = "billing"
    TEXT = "text"
    DOCUMENT = "document"
    CHECKLIST = "checklist"
    VIDEO = "video"
    IMAGE = "image"


class DurationUnit(str, Enum):
    DAYS = "days"
    MONTHS = "months"
    YEARS = "years"


class EventType(str, Enum):
    SERVICE = "service"
    BILLING = "billing"


class BillingSubType(str, Enum):
    UPFRONT = "upfront"
    EMI = "emi"
    ON_COMPLETION = "on_completion"
    RECURRING = "recurring"


PRICED_CATEGORIES = frozenset({
    BlockCategory.SERVICE.value,
    BlockCategory.SPARE.value,
    BlockCategory.BILLING.value,
})

# Order in which cycle groups appear in a defined/mixed payment plan
CYCLE_PRIORITY = [
    BillingCycle.PREPAID,
    BillingCycle.MONTHLY,
    BillingCycle.FORTNIGHTLY,
    BillingCycle.QUARTERLY,
    BillingCycle.CUSTOM,
    BillingCycle.POSTPAID,
]

ONE_TIME_CYCLES = frozenset({BillingCycle.PREPAID, BillingCycle.POSTPAID})

CYCLE_LABELS = {
    BillingCycle.PREPAID: "PrePaid",
    BillingCycle.POSTPAID: "PostPaid",
    BillingCycle.MONTHLY: "Monthly",
    BillingCycle.FORTNIGHTLY: "Fortnightly",
    BillingCycle.QUARTERLY: "Quarterly",
    BillingCycle.CUSTOM: "Custom",
}

SCHEDULE_LABELS = {
    BillingCycle.PREPAID: "On Acceptance (Prepaid)",
    BillingCycle.POSTPAID: "On Completion (Postpaid)",
}

EVENT_CYCLE_LABELS = {
    BillingCycle.MONTHLY: "Monthly",
    BillingCycle.FORTNIGHTLY: "Fortnightly",
    BillingCycle.QUARTERLY: "Quarterly",
    BillingCycle.CUSTOM: "Custom Cycle",
}

CYCLE_PERIOD_DAYS = {
    BillingCycle.MONTHLY: 30,
    BillingCycle.FORTNIGHTLY: 14,
    BillingCycle.QUARTERLY: 90,
}
DEFAULT_CUSTOM_CYCLE_DAYS = 30

COVERAGE_INSTANCE_SEPARATOR = "__"
UNITEMISED_TAX_NAME = "Tax"


def category_has_pricing(category_id: Optional[str]) -> bool:
    """Only service, spare and billing categories carry a price"""
    if not category_id:
        return False
    return str(category_id).lower() in PRICED_CATEGORIES


def cycle_label(cycle: BillingCycle) -> str:
    return CYCLE_LABELS.get(cycle, str(cycle))


def schedule_label(cycle: BillingCycle) -> str:
    return SCHEDULE_LABELS.get(cycle, cycle_label(cycle))


def cycle_period_days(cycle: BillingCycle, custom_days: Optional[int] = None) -> int:
    """Days between recurring billings; 0 for one-time cycles"""
    if cycle == BillingCycle.CUSTOM:
        return custom_days or DEFAULT_CUSTOM_CYCLE_DAYS
    return CYCLE_PERIOD_DAYS.get(cycle, 0)
