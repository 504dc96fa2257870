from fastapi import APIRouter
from src.api.pricing.endpoints.pricing import router as pricing_router
from src.api.contracts.endpoints.contract_draft import router as contract_draft_router

api_router = APIRouter()

# Include all domain routers
api_router.include_router(pricing_router)
api_router.include_router(contract_draft_router)
