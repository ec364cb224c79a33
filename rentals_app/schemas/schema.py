from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import (
    BaseModel,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from typing_extensions import Annotated

from models.enums import (
    BookingStatus,
    ModerationAction,
    PaymentStatus,
    UserRole,
)

Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]
NonEmptyStr = Annotated[str, Field(min_length=1)]


def _image_urls(value):
    if value is None:
        return []
    return [getattr(item, "image_url", item) for item in value]


# ---------------------------------------------------------------- users


class UserBrief(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    profile_image: Optional[str] = None
    model_config = {"from_attributes": True}


class UserContact(UserBrief):
    email: str
    phone: Optional[str] = None


class UserOut(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    user_type: UserRole
    profile_image: Optional[str] = None
    is_verified: bool
    is_active: bool
    created_at: datetime
    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    first_name: Optional[NonEmptyStr] = None
    last_name: Optional[NonEmptyStr] = None
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    is_active: Optional[bool] = None
    user_type: Optional[UserRole] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


# ------------------------------------------------------------ apartments


class ApartmentCreate(BaseModel):
    title: NonEmptyStr
    description: Optional[str] = None
    address: NonEmptyStr
    city: NonEmptyStr
    state: NonEmptyStr
    zip_code: NonEmptyStr
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    monthly_rent: Decimal = Field(..., gt=0)
    deposit_percentage: Optional[int] = Field(None, ge=0, le=100)
    min_contract_months: Optional[int] = Field(None, ge=1)
    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    square_feet: Optional[int] = Field(None, gt=0)
    available_from: date
    amenities: Optional[List[str]] = None


class ApartmentUpdate(BaseModel):
    title: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    address: Optional[NonEmptyStr] = None
    city: Optional[NonEmptyStr] = None
    state: Optional[NonEmptyStr] = None
    zip_code: Optional[NonEmptyStr] = None
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    monthly_rent: Optional[Decimal] = Field(None, gt=0)
    deposit_percentage: Optional[int] = Field(None, ge=0, le=100)
    min_contract_months: Optional[int] = Field(None, ge=1)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    square_feet: Optional[int] = Field(None, gt=0)
    available_from: Optional[date] = None
    amenities: Optional[List[str]] = None
    is_available: Optional[bool] = None


class ApartmentImagesUpload(BaseModel):
    images: Optional[List[NonEmptyStr]] = None


class ApartmentOut(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: Optional[str] = None
    address: str
    city: str
    state: str
    zip_code: str
    latitude: Optional[Money] = None
    longitude: Optional[Money] = None
    monthly_rent: Money
    deposit_percentage: int
    min_contract_months: int
    bedrooms: int
    bathrooms: int
    square_feet: Optional[int] = None
    available_from: date
    amenities: List[str] = Field(default_factory=list)
    is_available: bool
    created_at: datetime
    updated_at: datetime
    owner: Optional[UserBrief] = None
    images: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("images", mode="before")
    @classmethod
    def image_urls(cls, value):
        return _image_urls(value)

    @field_validator("amenities", mode="before")
    @classmethod
    def amenities_list(cls, value):
        return value or []


class ApartmentDetailOut(ApartmentOut):
    owner: Optional[UserContact] = None


class ApartmentSummary(BaseModel):
    id: uuid.UUID
    title: str
    address: str
    city: str
    state: str
    zip_code: str
    monthly_rent: Money
    deposit_percentage: int
    min_contract_months: int
    images: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("images", mode="before")
    @classmethod
    def image_urls(cls, value):
        return _image_urls(value)


class ApartmentBrief(BaseModel):
    id: uuid.UUID
    title: str
    address: str
    model_config = {"from_attributes": True}


class ModerationRequest(BaseModel):
    action: ModerationAction
    reason: Optional[str] = None


# -------------------------------------------------------------- bookings


class BookingCreate(BaseModel):
    apartment_id: uuid.UUID
    move_in_date: date
    move_out_date: Optional[date] = None
    total_amount: Decimal = Field(..., gt=0)
    deposit_amount: Decimal = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.move_out_date is not None and self.move_out_date <= self.move_in_date:
            raise ValueError("move_out_date must be after move_in_date")
        return self


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    apartment_id: uuid.UUID
    owner_id: uuid.UUID
    move_in_date: date
    move_out_date: Optional[date] = None
    total_amount: Money
    deposit_amount: Money
    status: BookingStatus
    payment_intent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingDetailOut(BookingOut):
    apartment: ApartmentSummary
    renter: UserContact
    owner: UserContact


# -------------------------------------------------------------- payments


class PaymentIntentCreate(BaseModel):
    booking_id: uuid.UUID
    amount: Decimal = Field(..., gt=0)
    payment_method_types: List[NonEmptyStr] = Field(
        default_factory=lambda: ["card"], min_length=1
    )


class PaymentConfirm(BaseModel):
    payment_intent_id: NonEmptyStr
    booking_id: uuid.UUID


class RefundRequest(BaseModel):
    reason: NonEmptyStr

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class PaymentOut(BaseModel):
    id: uuid.UUID
    booking_id: uuid.UUID
    user_id: uuid.UUID
    amount: Money
    payment_method: str
    payment_status: PaymentStatus
    stripe_payment_intent_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentBookingOut(BaseModel):
    id: uuid.UUID
    move_in_date: date
    move_out_date: Optional[date] = None
    status: BookingStatus
    apartment: ApartmentBrief
    model_config = {"from_attributes": True}


class PaymentDetailOut(PaymentOut):
    booking: PaymentBookingOut
    user: UserBrief


# -------------------------------------------------------------- wishlist


class WishlistAdd(BaseModel):
    apartment_id: uuid.UUID


class WishlistItemOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    apartment_id: uuid.UUID
    created_at: datetime
    model_config = {"from_attributes": True}


class WishlistEntryOut(WishlistItemOut):
    apartment: ApartmentOut


# ----------------------------------------------------------------- admin


class AdminLogOut(BaseModel):
    id: uuid.UUID
    admin_id: Optional[uuid.UUID] = None
    action: str
    target_type: str
    target_id: Optional[uuid.UUID] = None
    details: dict = Field(default_factory=dict)
    created_at: datetime
    admin: Optional[UserBrief] = None
    model_config = {"from_attributes": True}


class RecentBookingOut(BaseModel):
    id: uuid.UUID
    status: BookingStatus
    created_at: datetime
    apartment: ApartmentBrief
    renter: UserContact
    model_config = {"from_attributes": True}
