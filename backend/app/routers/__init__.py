"""Pricing Decisions - API Routers"""
from .decisions import router as decisions_router
from .outcomes import router as outcomes_router

__all__ = [
    "decisions_router",
    "outcomes_router",
]
