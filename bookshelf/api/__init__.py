"""
Bookshelf - FastAPI Backend.

Session-authenticated API over the accounts and catalogue stores.
"""

from .main import app, create_app, main
from .dependencies import (
    Settings,
    get_settings,
    get_db,
    get_service_container,
    ServiceContainer,
    init_stores,
    close_stores,
)
from .schemas import (
    BookWrite,
    BookResponse,
    BookListResponse,
    ReviewCreate,
    ReviewResponse,
    CollectionResponse,
    UserResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "get_db",
    "get_service_container",
    "ServiceContainer",
    "init_stores",
    "close_stores",
    # Schemas
    "BookWrite",
    "BookResponse",
    "BookListResponse",
    "ReviewCreate",
    "ReviewResponse",
    "CollectionResponse",
    "UserResponse",
    "HealthResponse",
    "ErrorResponse",
]
