"""
API Routers
"""
from .alerts import router as alerts_router
from .settings import router as settings_router
from .data import router as data_router

__all__ = ["alerts_router", "settings_router", "data_router"]
