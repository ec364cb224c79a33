import logging
import uuid

from fastapi import HTTPException

from core.check_permission import CheckRolePermission
from core.get_db import atomic
from core.mapper import ORMMapper
from core.paginate import PageRequest, PaginatePage
from core.query_filters import build_predicates
from core.settings import settings
from models.models import Apartment
from repos.apartment_repo import APARTMENT_SEARCH_FILTERS, ApartmentRepo
from schemas.schema import ApartmentDetailOut, ApartmentOut

logger = logging.getLogger(__name__)

CLEARABLE_FIELDS = {"description", "latitude", "longitude", "square_feet", "amenities"}


class ApartmentService:
    def __init__(self, db):
        self.db = db
        self.repo: ApartmentRepo = ApartmentRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper = ORMMapper()
        self.paginate: PaginatePage = PaginatePage()

    async def _get_or_404(self, apartment_id: uuid.UUID, for_update: bool = False):
        if for_update:
            apartment = await self.repo.get_for_update(apartment_id)
        else:
            apartment = await self.repo.get_by_id(apartment_id)
        if not apartment:
            raise HTTPException(status_code=404, detail="Apartment not found")
        return apartment

    async def _owned_or_404(self, apartment_id: uuid.UUID, current_user, for_update=False):
        apartment = await self._get_or_404(apartment_id, for_update=for_update)
        await self.permission.check_owner_or_admin(current_user, apartment.owner_id)
        return apartment

    async def list_apartments(self, filters: dict, page_request: PageRequest):
        predicates = build_predicates(APARTMENT_SEARCH_FILTERS, filters)
        predicates.append(Apartment.is_available.is_(True))

        items, total = await self.repo.search(
            predicates, page_request.offset, page_request.limit
        )
        return self.paginate.page_response(
            "apartments",
            self.mapper.many_json(items, ApartmentOut),
            page_request,
            total,
        )

    async def get_apartment(self, apartment_id: uuid.UUID):
        apartment = await self.repo.get_with_relations(apartment_id)
        if not apartment:
            raise HTTPException(status_code=404, detail="Apartment not found")
        return {"apartment": self.mapper.one_json(apartment, ApartmentDetailOut)}

    async def create_apartment(self, data, current_user):
        await self.permission.check_owner(current_user)

        fields = data.model_dump()
        if fields["deposit_percentage"] is None:
            fields["deposit_percentage"] = settings.DEFAULT_DEPOSIT_PERCENTAGE
        if fields["min_contract_months"] is None:
            fields["min_contract_months"] = settings.DEFAULT_MIN_CONTRACT_MONTHS
        fields["amenities"] = fields["amenities"] or []

        async with atomic(self.db):
            apartment = await self.repo.create(owner_id=current_user.id, **fields)
            apartment_id = apartment.id

        logger.info(f"Apartment {apartment_id} created by {current_user.id}")
        apartment = await self.repo.get_with_relations(apartment_id)
        return {
            "message": "Apartment created successfully",
            "apartment": self.mapper.one_json(apartment, ApartmentOut),
        }

    async def update_apartment(self, apartment_id: uuid.UUID, data, current_user):
        async with atomic(self.db):
            apartment = await self._owned_or_404(
                apartment_id, current_user, for_update=True
            )
            update_data = {
                key: value
                for key, value in data.model_dump(exclude_unset=True).items()
                if value is not None or key in CLEARABLE_FIELDS
            }
            if "amenities" in update_data and update_data["amenities"] is None:
                update_data["amenities"] = []
            if not update_data:
                raise HTTPException(status_code=400, detail="No valid fields to update")
            await self.repo.update(apartment, **update_data)

        apartment = await self.repo.get_with_relations(apartment_id)
        return {
            "message": "Apartment updated successfully",
            "apartment": self.mapper.one_json(apartment, ApartmentOut),
        }

    async def delete_apartment(self, apartment_id: uuid.UUID, current_user):
        async with atomic(self.db):
            await self._owned_or_404(apartment_id, current_user, for_update=True)
            await self.repo.delete(apartment_id)

        logger.info(f"Apartment {apartment_id} deleted by {current_user.id}")
        return {"message": "Apartment deleted successfully"}

    async def replace_images(self, apartment_id: uuid.UUID, data, current_user):
        async with atomic(self.db):
            await self._owned_or_404(apartment_id, current_user, for_update=True)
            if not data.images:
                raise HTTPException(status_code=400, detail="Images array is required")
            await self.repo.replace_images(apartment_id, data.images)

        apartment = await self.repo.get_with_relations(apartment_id)
        return {
            "message": "Images uploaded successfully",
            "images": [image.image_url for image in apartment.images],
        }
