import uuid

from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.paginate import PageParams, PageRequest
from core.root_routes import alias_root_routes
from core.safe_handler import safe_handler
from models.models import User
from schemas.schema import WishlistAdd
from services.wishlist_service import WishlistService

router = APIRouter(tags=["Wishlist"])

wishlist_page = PageParams(default_limit=20)


@cbv(router=router)
class WishlistRoutes:
    @router.get("/")
    @safe_handler
    async def my_wishlist(
        self,
        request: Request,
        page_request: PageRequest = Depends(wishlist_page),
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await WishlistService(db).list_wishlist(
            current_user=current_user, page_request=page_request
        )

    @router.post("/", status_code=201)
    @safe_handler
    async def add(
        self,
        request: Request,
        data: WishlistAdd,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await WishlistService(db).add(data=data, current_user=current_user)

    @router.get("/check/{apartment_id}")
    @safe_handler
    async def check(
        self,
        request: Request,
        apartment_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await WishlistService(db).check(
            apartment_id=apartment_id, current_user=current_user
        )

    @router.get("/count")
    @safe_handler
    async def count(
        self,
        request: Request,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await WishlistService(db).count(current_user=current_user)

    @router.delete("/{apartment_id}")
    @safe_handler
    async def remove(
        self,
        request: Request,
        apartment_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await WishlistService(db).remove(
            apartment_id=apartment_id, current_user=current_user
        )


alias_root_routes(router)
