"""
Identity service for user management operations.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.errors import NotFoundError, ValidationFailedError
from inkwell.kernel.events.event_store import EventStore
from inkwell.kernel.models.event_log import EventType
from inkwell.kernel.models.user import User
from inkwell.logging_config import get_logger

logger = get_logger(__name__)


class IdentityService:
    """
    Service for user identity operations.
    
    Users are looked up by the publishing services and never mutated by
    them; creation and (de)activation live here.
    """
    
    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)
    
    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID. Returns None if absent."""
        return await self.session.get(User, user_id)
    
    async def get_user_or_raise(self, user_id: uuid.UUID) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user
    
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        query = select(User).where(User.username == username.strip())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
    
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        query = select(User).where(User.email == email.lower().strip())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
    
    async def create_user(
        self,
        username: str,
        email: str,
        display_name: Optional[str] = None,
    ) -> User:
        """
        Create a new user.
        
        Raises:
            ValidationFailedError: If the username or email is taken
        """
        username = username.strip()
        email = email.lower().strip()
        
        query = select(User.id).where(or_(User.username == username, User.email == email))
        existing = await self.session.execute(query)
        if existing.first() is not None:
            raise ValidationFailedError(
                "Username or email already registered",
                details={"username": username},
            )
        
        user = User(username=username, email=email, display_name=display_name)
        self.session.add(user)
        await self.session.flush()  # Get the ID
        
        await self.event_store.log(
            event_type=EventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            payload={"username": user.username},
        )
        logger.info("User registered", extra={"user_id": str(user.id)})
        return user
    
    async def deactivate_user(self, user: User) -> User:
        """
        Deactivate a user.
        
        Their content stays in place but is no longer counted.
        """
        if user.deactivated_at is None:
            user.deactivated_at = datetime.now(timezone.utc)
            await self.event_store.log(
                event_type=EventType.USER_DEACTIVATED,
                entity_type="user",
                entity_id=user.id,
                user_id=user.id,
            )
            await self.session.flush()
            logger.info("User deactivated", extra={"user_id": str(user.id)})
        return user
    
    async def reactivate_user(self, user: User) -> User:
        if user.deactivated_at is not None:
            user.deactivated_at = None
            await self.event_store.log(
                event_type=EventType.USER_REACTIVATED,
                entity_type="user",
                entity_id=user.id,
                user_id=user.id,
            )
            await self.session.flush()
            logger.info("User reactivated", extra={"user_id": str(user.id)})
        return user
