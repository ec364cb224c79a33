import logging
import uuid

from fastapi import HTTPException

from core.check_permission import CheckRolePermission
from core.get_db import atomic
from core.mapper import ORMMapper
from core.paginate import PageRequest, PaginatePage
from repos.apartment_repo import ApartmentRepo
from repos.wishlist_repo import WishlistRepo
from schemas.schema import WishlistEntryOut, WishlistItemOut

logger = logging.getLogger(__name__)


class WishlistService:
    def __init__(self, db):
        self.db = db
        self.repo: WishlistRepo = WishlistRepo(db)
        self.apartment_repo: ApartmentRepo = ApartmentRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper = ORMMapper()
        self.paginate: PaginatePage = PaginatePage()

    async def list_wishlist(self, current_user, page_request: PageRequest):
        await self.permission.check_student(current_user)
        items, total = await self.repo.list_available(
            current_user.id, page_request.offset, page_request.limit
        )
        return self.paginate.page_response(
            "wishlist",
            self.mapper.many_json(items, WishlistEntryOut),
            page_request,
            total,
        )

    async def add(self, data, current_user):
        await self.permission.check_student(current_user)

        async with atomic(self.db):
            apartment = await self.apartment_repo.get_by_id(data.apartment_id)
            if not apartment:
                raise HTTPException(status_code=404, detail="Apartment not found")
            if not apartment.is_available:
                raise HTTPException(status_code=400, detail="Apartment is not available")
            if await self.repo.get(current_user.id, apartment.id):
                raise HTTPException(
                    status_code=400, detail="Apartment is already in your wishlist"
                )
            item = await self.repo.add(current_user.id, apartment.id)

        return {
            "message": "Apartment added to wishlist",
            "wishlist_item": self.mapper.one_json(item, WishlistItemOut),
        }

    async def remove(self, apartment_id: uuid.UUID, current_user):
        await self.permission.check_student(current_user)

        async with atomic(self.db):
            removed = await self.repo.remove(current_user.id, apartment_id)
            if not removed:
                raise HTTPException(
                    status_code=404, detail="Apartment not found in wishlist"
                )

        return {"message": "Apartment removed from wishlist"}

    async def check(self, apartment_id: uuid.UUID, current_user):
        await self.permission.check_student(current_user)
        item = await self.repo.get(current_user.id, apartment_id)
        return {"is_in_wishlist": item is not None}

    async def count(self, current_user):
        await self.permission.check_student(current_user)
        return {"count": await self.repo.count_available(current_user.id)}
