"""
API Routes
Project: GST Ledger

Aggregates the versioned routers.
"""

from gst_ledger.api.v1 import api_v1_router

# Export
__all__ = ["api_v1_router"]
