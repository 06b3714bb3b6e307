"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- Accounts database sessions
- Catalogue repository and service
- Session-cookie authentication
"""

import os
from typing import AsyncGenerator, Optional
from functools import lru_cache
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from bookshelf.catalogue.query import Identity
from bookshelf.exceptions import ForbiddenError, UnauthorizedError


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Accounts store (users, sessions, collections)
    database_url: str = "sqlite+aiosqlite:///./bookshelf.db"
    database_echo: bool = False

    # Catalogue store (books, reviews)
    catalogue_database_url: str = "sqlite+aiosqlite:///./catalogue.db"

    # Sessions
    session_cookie_name: str = "book.sid"
    session_ttl_hours: int = 8

    # Accounts
    default_collection_name: str = "My Collection"

    # Reviews
    one_review_per_user: bool = False

    # Environment
    environment: str = "development"
    debug: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            catalogue_database_url=os.getenv("CATALOGUE_DATABASE_URL", cls.catalogue_database_url),
            session_cookie_name=os.getenv("SESSION_COOKIE_NAME", cls.session_cookie_name),
            session_ttl_hours=int(os.getenv("SESSION_TTL_HOURS", cls.session_ttl_hours)),
            default_collection_name=os.getenv("DEFAULT_COLLECTION_NAME", cls.default_collection_name),
            one_review_per_user=os.getenv("ONE_REVIEW_PER_USER", "false").lower() == "true",
            environment=os.getenv("BOOKSHELF_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
        )

    @property
    def secure_cookies(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()


# =============================================================================
# Accounts Database
# =============================================================================

# Global engine and session factory (initialized in lifespan)
_engine = None
_async_session_factory = None


def init_database(settings: Settings) -> None:
    """Initialize accounts database engine and session factory."""
    global _engine, _async_session_factory

    _engine = create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )

    _async_session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_session_factory() -> async_sessionmaker:
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database first.")
    return _async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides an accounts database session.

    Yields:
        AsyncSession for database operations.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create accounts database tables."""
    from ..storage.models import Base
    if _engine is None:
        raise RuntimeError("Database not initialized.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_database() -> None:
    global _engine, _async_session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


# =============================================================================
# Service Dependencies (Lazy Loading)
# =============================================================================

class ServiceContainer:
    """
    Container for lazy-loaded service instances.

    Services are initialized on first access to avoid startup delays.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._book_repository = None

    @property
    def book_repository(self):
        """Get book repository instance."""
        if self._book_repository is None:
            from ..storage.book_repository import BookRepository
            self._book_repository = BookRepository(
                self.settings.catalogue_database_url,
                echo=self.settings.database_echo,
                one_review_per_user=self.settings.one_review_per_user,
            )
        return self._book_repository

    async def close(self) -> None:
        if self._book_repository is not None:
            await self._book_repository.dispose()
            self._book_repository = None


# Global service container
_service_container: Optional[ServiceContainer] = None


def init_services(settings: Settings) -> ServiceContainer:
    """Initialize service container."""
    global _service_container
    _service_container = ServiceContainer(settings)
    return _service_container


def get_service_container() -> ServiceContainer:
    """Get service container instance."""
    if _service_container is None:
        # Auto-initialize with default settings if not explicitly initialized
        return init_services(get_settings())
    return _service_container


async def init_stores(settings: Settings) -> ServiceContainer:
    """Open both stores and create their tables."""
    init_database(settings)
    await create_tables()

    services = init_services(settings)
    await services.book_repository.create_tables()
    return services


async def close_stores() -> None:
    global _service_container
    if _service_container is not None:
        await _service_container.close()
        _service_container = None
    await dispose_database()


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_book_repository(
    container: ServiceContainer = Depends(get_service_container),
):
    """Dependency for book repository."""
    return container.book_repository


def get_credential_store(db: AsyncSession = Depends(get_db)):
    """Dependency for the credential store."""
    from ..storage.accounts import CredentialStore
    return CredentialStore(db)


def get_collection_directory(db: AsyncSession = Depends(get_db)):
    """Dependency for the collection directory."""
    from ..storage.collections import CollectionDirectory
    return CollectionDirectory(db)


def get_catalogue_service(
    repo=Depends(get_book_repository),
    directory=Depends(get_collection_directory),
):
    """Dependency for the scoped catalogue service."""
    from ..catalogue.service import CatalogueService
    return CatalogueService(repo, directory)


# =============================================================================
# Authentication Dependencies
# =============================================================================

def get_session_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Session token from the request cookie, if any."""
    return request.cookies.get(settings.session_cookie_name)


async def get_current_identity(
    token: Optional[str] = Depends(get_session_token),
    store=Depends(get_credential_store),
) -> Identity:
    """
    Require a logged-in caller.

    Raises:
        UnauthorizedError: No cookie, unknown or expired session.
    """
    identity = await store.current_identity(token)
    if identity is None:
        raise UnauthorizedError()
    return identity


async def require_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """
    Require a logged-in administrator.

    Raises:
        ForbiddenError: Caller is not an admin.
    """
    if not identity.is_admin:
        raise ForbiddenError()
    return identity
