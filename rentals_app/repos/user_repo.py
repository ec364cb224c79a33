import uuid
from typing import Optional, Sequence

from sqlalchemy import delete, func, select

from core.query_filters import FieldFilter, FilterKind
from models.models import User

USER_FILTERS = (
    FieldFilter("user_type", FilterKind.EQ, (User.user_type,)),
    FieldFilter(
        "search",
        FilterKind.CONTAINS,
        (User.first_name, User.last_name, User.email),
    ),
    FieldFilter("is_active", FilterKind.EQ, (User.is_active,)),
)


class UserRepo:
    def __init__(self, db):
        self.db = db

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def search(
        self, predicates: Sequence, offset: int, limit: int
    ) -> tuple[list[User], int]:
        result = await self.db.execute(
            select(User)
            .where(*predicates)
            .order_by(User.created_at.desc(), User.id)
            .offset(offset)
            .limit(limit)
        )
        items = list(result.scalars().all())
        total = await self.db.scalar(
            select(func.count()).select_from(User).where(*predicates)
        )
        return items, total or 0

    async def recent(self, limit: int = 5) -> list[User]:
        result = await self.db.execute(
            select(User).order_by(User.created_at.desc(), User.id).limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, **fields) -> User:
        user = User(**fields)
        self.db.add(user)
        await self.db.flush()
        return user

    async def update(self, user: User, **fields) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        await self.db.flush()
        return user

    async def delete(self, user_id: uuid.UUID) -> None:
        await self.db.execute(delete(User).where(User.id == user_id))
