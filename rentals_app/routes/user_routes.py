import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_admin, get_current_user
from core.get_db import get_db_async
from core.paginate import PageParams, PageRequest
from core.root_routes import alias_root_routes
from core.safe_handler import safe_handler
from models.enums import UserRole
from models.models import User
from schemas.schema import UserUpdate
from services.user_service import UserService

router = APIRouter(tags=["Users"])

user_page = PageParams(default_limit=20)


@cbv(router=router)
class UserRoutes:
    @router.get("/")
    @safe_handler
    async def list_users(
        self,
        request: Request,
        user_type: Optional[UserRole] = None,
        search: Optional[str] = None,
        page_request: PageRequest = Depends(user_page),
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_admin),
    ):
        return await UserService(db).list_users(
            filters={"user_type": user_type, "search": search},
            page_request=page_request,
        )

    @router.get("/{user_id}")
    @safe_handler
    async def get_user(
        self,
        request: Request,
        user_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await UserService(db).get_user(
            user_id=user_id, current_user=current_user
        )

    @router.put("/{user_id}")
    @safe_handler
    async def update_user(
        self,
        request: Request,
        user_id: uuid.UUID,
        data: UserUpdate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await UserService(db).update_user(
            user_id=user_id, data=data, current_user=current_user
        )

    @router.delete("/{user_id}")
    @safe_handler
    async def delete_user(
        self,
        request: Request,
        user_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await UserService(db).delete_user(
            user_id=user_id, current_user=current_user
        )


alias_root_routes(router)
