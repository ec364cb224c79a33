import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.paginate import PageParams, PageRequest
from core.root_routes import alias_root_routes
from core.safe_handler import safe_handler
from models.models import User
from schemas.schema import ApartmentCreate, ApartmentImagesUpload, ApartmentUpdate
from services.apartment_service import ApartmentService

router = APIRouter(tags=["Apartments"])

apartment_page = PageParams(default_limit=12)


@cbv(router=router)
class ApartmentRoutes:
    @router.get("/")
    @safe_handler
    async def list_apartments(
        self,
        request: Request,
        city: Optional[str] = None,
        min_rent: Optional[Decimal] = Query(None, ge=0),
        max_rent: Optional[Decimal] = Query(None, ge=0),
        bedrooms: Optional[int] = Query(None, ge=0),
        bathrooms: Optional[int] = Query(None, ge=0),
        available_from: Optional[date] = None,
        search: Optional[str] = None,
        owner_id: Optional[uuid.UUID] = None,
        page_request: PageRequest = Depends(apartment_page),
        db: AsyncSession = Depends(get_db_async),
    ):
        filters = {
            "city": city,
            "min_rent": min_rent,
            "max_rent": max_rent,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "available_from": available_from,
            "search": search,
            "owner_id": owner_id,
        }
        return await ApartmentService(db).list_apartments(
            filters=filters, page_request=page_request
        )

    @router.get("/{apartment_id}")
    @safe_handler
    async def get_apartment(
        self,
        request: Request,
        apartment_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ApartmentService(db).get_apartment(apartment_id)

    @router.post("/", status_code=201)
    @safe_handler
    async def create(
        self,
        request: Request,
        data: ApartmentCreate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ApartmentService(db).create_apartment(
            data=data, current_user=current_user
        )

    @router.put("/{apartment_id}")
    @safe_handler
    async def update(
        self,
        request: Request,
        apartment_id: uuid.UUID,
        data: ApartmentUpdate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ApartmentService(db).update_apartment(
            apartment_id=apartment_id, data=data, current_user=current_user
        )

    @router.delete("/{apartment_id}")
    @safe_handler
    async def delete_apartment(
        self,
        request: Request,
        apartment_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ApartmentService(db).delete_apartment(
            apartment_id=apartment_id, current_user=current_user
        )

    @router.post("/{apartment_id}/images")
    @safe_handler
    async def upload_images(
        self,
        request: Request,
        apartment_id: uuid.UUID,
        data: ApartmentImagesUpload,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await ApartmentService(db).replace_images(
            apartment_id=apartment_id, data=data, current_user=current_user
        )


alias_root_routes(router)
