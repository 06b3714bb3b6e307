"""
Credential Store for Bookshelf

Users, password hashes, admin flags and server-side sessions, kept in the
accounts database. Registration creates the user's first collection in the
same transaction, so a freshly registered user always owns a default
collection.
"""

from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.catalogue.query import Identity
from bookshelf.exceptions import ConflictError, UnauthorizedError
from bookshelf.security import get_password_hash, verify_password, new_session_token
from bookshelf.storage.models import User, UserCollection, UserSession, utcnow


def identity_of(user: User) -> Identity:
    return Identity(user_id=user.id, username=user.username, is_admin=bool(user.is_admin))


class CredentialStore:
    """
    Account and session operations on one accounts-database session.

    Usage:
        store = CredentialStore(db)
        user = await store.register("ada", "correct horse", "My Collection")
        token = await store.create_session(user.id, timedelta(hours=8))
        identity = await store.current_identity(token)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def register(
        self,
        username: str,
        password: str,
        collection_name: str,
    ) -> User:
        """
        Create a regular user together with their first collection.

        Raises:
            ConflictError: If the username is taken.
        """
        if await self.get_by_username(username) is not None:
            raise ConflictError("Username already exists")

        user = User(
            username=username,
            password_hash=get_password_hash(password),
            is_admin=False,
        )
        self.session.add(user)

        try:
            await self.session.flush()
            self.session.add(UserCollection(user_id=user.id, name=collection_name))
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same name
            await self.session.rollback()
            raise ConflictError("Username already exists") from e

        await self.session.refresh(user)
        logger.info(f"Registered user {user.username} (id={user.id})")
        return user

    async def upsert_admin(
        self,
        username: str,
        password: str,
        collection_name: str,
    ) -> User:
        """Create an admin, or reset an existing user's password and promote it."""
        user = await self.get_by_username(username)
        if user is None:
            user = User(username=username, is_admin=True, password_hash="")
            self.session.add(user)
        user.password_hash = get_password_hash(password)
        user.is_admin = True
        await self.session.flush()

        stmt = select(UserCollection).where(
            UserCollection.user_id == user.id,
            UserCollection.name == collection_name,
        )
        if (await self.session.execute(stmt)).scalar_one_or_none() is None:
            self.session.add(UserCollection(user_id=user.id, name=collection_name))

        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def authenticate(self, username: str, password: str) -> Identity:
        """
        Check credentials.

        Raises:
            UnauthorizedError: Unknown user or wrong password.
        """
        user = await self.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for {username!r}")
            raise UnauthorizedError("Invalid credentials")
        return identity_of(user)

    # =========================================================================
    # Sessions
    # =========================================================================

    async def create_session(self, user_id: int, ttl: timedelta) -> str:
        """Persist a new session and return its token. Expired sessions are pruned."""
        now = utcnow()
        await self.session.execute(delete(UserSession).where(UserSession.expires_at <= now))
        token = new_session_token()
        self.session.add(
            UserSession(
                token=token,
                user_id=user_id,
                created_at=now,
                expires_at=now + ttl,
            )
        )
        await self.session.commit()
        return token

    async def current_identity(self, token: Optional[str]) -> Optional[Identity]:
        """Identity behind a session token, or None if missing or expired."""
        if not token:
            return None

        stmt = (
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(
                UserSession.token == token,
                UserSession.expires_at > utcnow(),
            )
        )
        user = (await self.session.execute(stmt)).scalar_one_or_none()
        if user is None:
            return None
        return identity_of(user)

    async def destroy_session(self, token: Optional[str]) -> None:
        if not token:
            return
        await self.session.execute(delete(UserSession).where(UserSession.token == token))
        await self.session.commit()
