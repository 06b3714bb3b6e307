"""
Collection Directory for Bookshelf

Maps users to their named book collections in the accounts database.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.storage.models import User, UserCollection


@dataclass
class CollectionInfo:
    """Data class for collection data transfer."""

    id: int
    name: str
    owner_user_id: int
    created_at: Optional[datetime] = None
    owner_username: Optional[str] = None

    @classmethod
    def from_model(cls, model: UserCollection, owner_username: Optional[str] = None) -> "CollectionInfo":
        return cls(
            id=model.id,
            name=model.name,
            owner_user_id=model.user_id,
            created_at=model.created_at,
            owner_username=owner_username,
        )


class CollectionDirectory:
    """Read access to user collections."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def collections_owned_by(self, user_id: int) -> list[CollectionInfo]:
        """Collections owned by a user, earliest-created first."""
        stmt = (
            select(UserCollection)
            .where(UserCollection.user_id == user_id)
            .order_by(UserCollection.created_at.asc(), UserCollection.id.asc())
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [CollectionInfo.from_model(c) for c in rows]

    async def resolve_default_collection_id(self, user_id: int) -> Optional[int]:
        """
        Id of the user's default (earliest-created) collection.

        Returns None, never raises, when the user owns no collection.
        """
        stmt = (
            select(UserCollection.id)
            .where(UserCollection.user_id == user_id)
            .order_by(UserCollection.created_at.asc(), UserCollection.id.asc())
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get(self, collection_id: int) -> Optional[CollectionInfo]:
        stmt = (
            select(UserCollection, User.username)
            .join(User, User.id == UserCollection.user_id)
            .where(UserCollection.id == collection_id)
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None
        collection, username = row
        return CollectionInfo.from_model(collection, owner_username=username)

    async def list_all(self) -> list[CollectionInfo]:
        """Every collection with its owner's username, ordered by name."""
        stmt = (
            select(UserCollection, User.username)
            .join(User, User.id == UserCollection.user_id)
            .order_by(UserCollection.name.asc(), UserCollection.id.asc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [CollectionInfo.from_model(c, owner_username=u) for c, u in rows]
