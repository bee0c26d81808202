from .feed import router as feed_router
from .plays import router as plays_router
from .social import router as social_router
from .records import router as records_router
from .admin import router as admin_router

__all__ = [
    "feed_router",
    "plays_router",
    "social_router",
    "records_router",
    "admin_router",
]
