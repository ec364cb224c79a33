import logging
import uuid

from fastapi import HTTPException

from core.check_permission import CheckRolePermission
from core.get_db import atomic
from core.mapper import ORMMapper
from core.paginate import PageRequest, PaginatePage
from core.query_filters import build_predicates
from repos.user_repo import USER_FILTERS, UserRepo
from schemas.schema import UserOut

logger = logging.getLogger(__name__)

ADMIN_ONLY_FIELDS = {"is_active", "user_type"}
CLEARABLE_FIELDS = {"phone", "profile_image"}


class UserService:
    def __init__(self, db):
        self.db = db
        self.repo: UserRepo = UserRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper = ORMMapper()
        self.paginate: PaginatePage = PaginatePage()

    async def list_users(self, filters: dict, page_request: PageRequest):
        predicates = build_predicates(USER_FILTERS, filters)
        items, total = await self.repo.search(
            predicates, page_request.offset, page_request.limit
        )
        return self.paginate.page_response(
            "users",
            self.mapper.many_json(items, UserOut),
            page_request,
            total,
        )

    async def get_user(self, user_id: uuid.UUID, current_user):
        await self.permission.check_self_or_admin(current_user, user_id)
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return {"user": self.mapper.one_json(user, UserOut)}

    async def update_user(self, user_id: uuid.UUID, data, current_user):
        await self.permission.check_self_or_admin(current_user, user_id)

        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key in CLEARABLE_FIELDS
        }
        if not self.permission.is_admin(current_user):
            update_data = {
                key: value
                for key, value in update_data.items()
                if key not in ADMIN_ONLY_FIELDS
            }
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")

        async with atomic(self.db):
            user = await self.repo.get_by_id(user_id)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            await self.repo.update(user, **update_data)

        logger.info(f"User {user_id} updated by {current_user.id}: {sorted(update_data)}")
        return {
            "message": "User updated successfully",
            "user": self.mapper.one_json(user, UserOut),
        }

    async def delete_user(self, user_id: uuid.UUID, current_user):
        await self.permission.check_admin(current_user)
        if user_id == current_user.id:
            raise HTTPException(
                status_code=400, detail="Cannot delete your own account"
            )

        async with atomic(self.db):
            user = await self.repo.get_by_id(user_id)
            if not user:
                raise HTTPException(status_code=404, detail="User not found")
            await self.repo.delete(user_id)

        logger.info(f"User {user_id} deleted by admin {current_user.id}")
        return {"message": "User deleted successfully"}
