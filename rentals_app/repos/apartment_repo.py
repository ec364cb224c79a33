import uuid
from typing import Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from core.query_filters import FieldFilter, FilterKind
from models.models import Apartment, ApartmentImage

APARTMENT_SEARCH_FILTERS = (
    FieldFilter("city", FilterKind.CONTAINS, (Apartment.city,)),
    FieldFilter("min_rent", FilterKind.GTE, (Apartment.monthly_rent,)),
    FieldFilter("max_rent", FilterKind.LTE, (Apartment.monthly_rent,)),
    FieldFilter("bedrooms", FilterKind.GTE, (Apartment.bedrooms,)),
    FieldFilter("bathrooms", FilterKind.GTE, (Apartment.bathrooms,)),
    FieldFilter("available_from", FilterKind.LTE, (Apartment.available_from,)),
    FieldFilter(
        "search",
        FilterKind.CONTAINS,
        (Apartment.title, Apartment.description, Apartment.address),
    ),
    FieldFilter("owner_id", FilterKind.EQ, (Apartment.owner_id,)),
)

ADMIN_APARTMENT_FILTERS = (
    FieldFilter("is_available", FilterKind.EQ, (Apartment.is_available,)),
    FieldFilter("owner_id", FilterKind.EQ, (Apartment.owner_id,)),
    FieldFilter("city", FilterKind.CONTAINS, (Apartment.city,)),
)


class ApartmentRepo:
    def __init__(self, db):
        self.db = db

    def _with_relations(self):
        return select(Apartment).options(
            selectinload(Apartment.owner),
            selectinload(Apartment.images),
        )

    async def get_by_id(self, apartment_id: uuid.UUID) -> Optional[Apartment]:
        result = await self.db.execute(
            select(Apartment).where(Apartment.id == apartment_id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, apartment_id: uuid.UUID) -> Optional[Apartment]:
        result = await self.db.execute(
            select(Apartment).where(Apartment.id == apartment_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_with_relations(self, apartment_id: uuid.UUID) -> Optional[Apartment]:
        result = await self.db.execute(
            self._with_relations()
            .where(Apartment.id == apartment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def search(
        self, predicates: Sequence, offset: int, limit: int
    ) -> tuple[list[Apartment], int]:
        stmt = (
            self._with_relations()
            .where(*predicates)
            .order_by(Apartment.created_at.desc(), Apartment.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        items = list(result.scalars().all())

        total = await self.db.scalar(
            select(func.count()).select_from(Apartment).where(*predicates)
        )
        return items, total or 0

    async def create(self, **fields) -> Apartment:
        apartment = Apartment(**fields)
        self.db.add(apartment)
        await self.db.flush()
        return apartment

    async def update(self, apartment: Apartment, **fields) -> Apartment:
        for key, value in fields.items():
            setattr(apartment, key, value)
        await self.db.flush()
        return apartment

    async def set_availability(self, apartment: Apartment, is_available: bool):
        apartment.is_available = is_available
        await self.db.flush()
        return apartment

    async def delete(self, apartment_id: uuid.UUID) -> None:
        await self.db.execute(delete(Apartment).where(Apartment.id == apartment_id))

    async def replace_images(
        self, apartment_id: uuid.UUID, image_urls: Sequence[str]
    ) -> list[ApartmentImage]:
        await self.db.execute(
            delete(ApartmentImage).where(ApartmentImage.apartment_id == apartment_id)
        )
        images = [
            ApartmentImage(
                apartment_id=apartment_id,
                image_url=url,
                is_primary=index == 0,
                position=index,
            )
            for index, url in enumerate(image_urls)
        ]
        self.db.add_all(images)
        await self.db.flush()
        return images
