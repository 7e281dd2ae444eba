from fastapi import APIRouter
from hr_ledger.routers import config, leave, settlement, warnings

# Centralized API router hub; main.py only imports this one
api_router = APIRouter()

api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(settlement.router, tags=["Overtime Settlement"])
api_router.include_router(warnings.router, tags=["Warnings"])
api_router.include_router(config.router, tags=["Configuration"])
