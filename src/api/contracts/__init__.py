__all__ = [
    # Models will be accessible but not imported here
    "ContractDraft",
    # Services will be accessible but not imported here
    "ContractDraftService",
]
