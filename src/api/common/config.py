import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class PricingSettings(BaseModel):
    """Runtime settings for the pricing engine, read from the environment"""
    default_currency: str = Field(
        default_factory=lambda: os.getenv("DEFAULT_CURRENCY", "INR"))
    emi_min_months: int = Field(
        default_factory=lambda: int(os.getenv("EMI_MIN_MONTHS", "2")))
    emi_max_months: int = Field(
        default_factory=lambda: int(os.getenv("EMI_MAX_MONTHS", "60")))

    def __init__(self, **data):
        super().__init__(**data)
        if self.emi_min_months < 1:
            raise ValueError("EMI_MIN_MONTHS must be at least 1")
        if self.emi_max_months < self.emi_min_months:
            raise ValueError("EMI_MAX_MONTHS must not be lower than EMI_MIN_MONTHS")


settings = PricingSettings()
