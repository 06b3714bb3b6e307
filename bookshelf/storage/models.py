"""
Database models for the Bookshelf accounts store.

Users, their collections and login sessions live together in one
relational database. Books live in the separate catalogue store
(see book_repository.py) and refer to collections by id only.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Index,
)
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (the stores keep timestamps without zone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_transient_store_error(exc: BaseException) -> bool:
    """True for connection-level driver failures, as opposed to bad statements."""
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class User(Base):
    """User model for authentication."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    collections = relationship(
        "UserCollection",
        back_populates="owner",
        order_by="UserCollection.created_at",
    )


class UserCollection(Base):
    """Named book collection owned by one user."""
    __tablename__ = "user_collections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User", back_populates="collections")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_collections_user_name"),
        Index("idx_user_collections_user_created", "user_id", "created_at"),
    )


class UserSession(Base):
    """Server-side login session; the browser only holds ``token``."""
    __tablename__ = "user_sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    user = relationship("User")
