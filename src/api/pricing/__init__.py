__all__ = [
    # Engine services will be accessible but not imported here
    "LinePricingResolver", "CoverageGroupingManager", "ContractAggregator", "BillingScheduler",
]
