"""
API v1 Routes
Project: GST Ledger

Version 1 router of the API.
"""

from fastapi import APIRouter

from gst_ledger.api.v1 import adjustments, advances, documents, gst, payments, quotations

# Aggregated router for v1
api_v1_router = APIRouter(prefix="/api/v1")

# Include the module routers
api_v1_router.include_router(documents.router)
api_v1_router.include_router(payments.router)
api_v1_router.include_router(adjustments.router)
api_v1_router.include_router(advances.router)
api_v1_router.include_router(gst.router)
api_v1_router.include_router(quotations.router)

# Export
__all__ = ["api_v1_router"]
