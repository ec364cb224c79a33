import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from conftest import auth
from models.enums import UserRole
from models.models import ApartmentImage

NEW_APARTMENT = {
    "title": "Loft near campus",
    "address": "12 Main St",
    "city": "Cambridge",
    "state": "MA",
    "zip_code": "02139",
    "monthly_rent": 1500,
    "bedrooms": 2,
    "bathrooms": 1,
    "available_from": "2026-09-01",
}


async def test_create_apartment_applies_defaults(client, owner):
    res = await client.post("/apartments", json=NEW_APARTMENT, headers=auth(owner))

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Apartment created successfully"
    apartment = body["apartment"]
    assert apartment["owner_id"] == str(owner.id)
    assert apartment["deposit_percentage"] == 20
    assert apartment["min_contract_months"] == 12
    assert apartment["amenities"] == []
    assert apartment["is_available"] is True
    assert apartment["monthly_rent"] == 1500.0


async def test_create_apartment_missing_fields_is_400(client, owner):
    payload = {key: value for key, value in NEW_APARTMENT.items() if key != "city"}

    res = await client.post("/apartments", json=payload, headers=auth(owner))

    assert res.status_code == 400
    assert res.json()["error"] == "Validation failed"


async def test_students_cannot_list_apartments_for_rent(client, student):
    res = await client.post("/apartments", json=NEW_APARTMENT, headers=auth(student))

    assert res.status_code == 403
    assert res.json() == {"error": "Property owner access required"}


async def test_list_only_shows_available_and_paginates(client, owner, make_apartment):
    for index in range(5):
        await make_apartment(owner, title=f"Flat {index}")
    await make_apartment(owner, title="Taken", is_available=False)

    res = await client.get("/apartments", params={"page": 2, "limit": 2})

    assert res.status_code == 200
    body = res.json()
    assert len(body["apartments"]) == 2
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}
    assert all(item["is_available"] for item in body["apartments"])


async def test_list_default_limit_is_twelve(client, owner, make_apartment):
    await make_apartment(owner)

    res = await client.get("/apartments")

    assert res.json()["pagination"]["limit"] == 12


async def test_filters_are_case_insensitive_and_inclusive(client, owner, make_apartment):
    await make_apartment(owner, city="Boston", monthly_rent=Decimal("800"), bedrooms=1)
    await make_apartment(owner, city="BOSTON", monthly_rent=Decimal("1200"), bedrooms=3)
    await make_apartment(owner, city="Austin", monthly_rent=Decimal("1000"), bedrooms=2)

    res = await client.get("/apartments", params={"city": "bos"})
    assert res.json()["pagination"]["total"] == 2

    res = await client.get("/apartments", params={"min_rent": 800, "max_rent": 1000})
    rents = sorted(item["monthly_rent"] for item in res.json()["apartments"])
    assert rents == [800.0, 1000.0]

    res = await client.get("/apartments", params={"bedrooms": 2})
    assert res.json()["pagination"]["total"] == 2


async def test_available_from_is_an_upper_cutoff(client, owner, make_apartment):
    await make_apartment(owner, title="Early", available_from=date(2026, 6, 1))
    await make_apartment(owner, title="Late", available_from=date(2026, 12, 1))

    res = await client.get("/apartments", params={"available_from": "2026-09-01"})

    titles = [item["title"] for item in res.json()["apartments"]]
    assert titles == ["Early"]


async def test_search_matches_title_description_or_address(
    client, owner, make_apartment
):
    await make_apartment(owner, title="Quiet room", description="garden view")
    await make_apartment(owner, title="Studio", address="9 Garden Street")
    await make_apartment(owner, title="Basement", description="no windows")

    res = await client.get("/apartments", params={"search": "GARDEN"})

    assert res.json()["pagination"]["total"] == 2


async def test_search_wildcards_are_literal(client, owner, make_apartment):
    await make_apartment(owner, title="100% furnished")
    await make_apartment(owner, title="1000 sq ft")

    res = await client.get("/apartments", params={"search": "100%"})

    titles = [item["title"] for item in res.json()["apartments"]]
    assert titles == ["100% furnished"]


async def test_owner_filter(client, make_user, make_apartment):
    first = await make_user(UserRole.OWNER)
    second = await make_user(UserRole.OWNER)
    await make_apartment(first)
    await make_apartment(second)

    res = await client.get("/apartments", params={"owner_id": str(second.id)})

    items = res.json()["apartments"]
    assert [item["owner_id"] for item in items] == [str(second.id)]
    assert items[0]["owner"]["first_name"] == second.first_name


async def test_get_apartment_includes_owner_contact_and_images(
    client, owner, make_apartment
):
    apartment = await make_apartment(owner, images=["a.jpg", "b.jpg"])

    res = await client.get(f"/apartments/{apartment.id}")

    assert res.status_code == 200
    body = res.json()["apartment"]
    assert body["images"] == ["a.jpg", "b.jpg"]
    assert body["owner"]["email"] == owner.email


async def test_get_missing_apartment_is_404(client):
    res = await client.get(f"/apartments/{uuid.uuid4()}")

    assert res.status_code == 404
    assert res.json() == {"error": "Apartment not found"}


async def test_update_requires_some_allowed_field(client, owner, make_apartment):
    apartment = await make_apartment(owner)

    res = await client.put(
        f"/apartments/{apartment.id}", json={"owner_id": str(uuid.uuid4())}, headers=auth(owner)
    )

    assert res.status_code == 400
    assert res.json() == {"error": "No valid fields to update"}


async def test_update_by_owner(client, owner, make_apartment):
    apartment = await make_apartment(owner)

    res = await client.put(
        f"/apartments/{apartment.id}",
        json={"monthly_rent": 1250, "amenities": ["wifi"]},
        headers=auth(owner),
    )

    assert res.status_code == 200
    body = res.json()["apartment"]
    assert body["monthly_rent"] == 1250.0
    assert body["amenities"] == ["wifi"]


async def test_update_missing_is_404_before_permission(client, make_user):
    stranger = await make_user(UserRole.OWNER)

    res = await client.put(
        f"/apartments/{uuid.uuid4()}", json={"title": "x"}, headers=auth(stranger)
    )

    assert res.status_code == 404


async def test_update_by_other_owner_is_403(client, owner, make_user, make_apartment):
    apartment = await make_apartment(owner)
    stranger = await make_user(UserRole.OWNER)

    res = await client.put(
        f"/apartments/{apartment.id}", json={"title": "Mine now"}, headers=auth(stranger)
    )

    assert res.status_code == 403
    assert res.json() == {"error": "Access denied"}


async def test_admin_can_delete_any_apartment(client, owner, admin, make_apartment):
    apartment = await make_apartment(owner, images=["a.jpg"])

    res = await client.delete(f"/apartments/{apartment.id}", headers=auth(admin))

    assert res.status_code == 200
    assert res.json() == {"message": "Apartment deleted successfully"}
    res = await client.get(f"/apartments/{apartment.id}")
    assert res.status_code == 404


async def test_replace_images_marks_first_primary(client, db, owner, make_apartment):
    apartment = await make_apartment(owner, images=["old-1.jpg", "old-2.jpg"])

    res = await client.post(
        f"/apartments/{apartment.id}/images",
        json={"images": ["new-1.jpg", "new-2.jpg", "new-3.jpg"]},
        headers=auth(owner),
    )

    assert res.status_code == 200
    assert res.json()["images"] == ["new-1.jpg", "new-2.jpg", "new-3.jpg"]

    rows = (
        await db.execute(
            select(ApartmentImage)
            .where(ApartmentImage.apartment_id == apartment.id)
            .order_by(ApartmentImage.position)
        )
    ).scalars().all()
    assert [(row.image_url, row.is_primary) for row in rows] == [
        ("new-1.jpg", True),
        ("new-2.jpg", False),
        ("new-3.jpg", False),
    ]


async def test_replace_images_requires_non_empty_list(client, owner, make_apartment):
    apartment = await make_apartment(owner)

    res = await client.post(
        f"/apartments/{apartment.id}/images", json={"images": []}, headers=auth(owner)
    )

    assert res.status_code == 400


async def test_update_with_null_clears_optional_fields(client, owner, make_apartment):
    apartment = await make_apartment(owner, square_feet=450, amenities=["wifi"])

    res = await client.put(
        f"/apartments/{apartment.id}",
        json={"description": None, "square_feet": None, "amenities": None, "title": None},
        headers=auth(owner),
    )

    assert res.status_code == 200
    body = res.json()["apartment"]
    assert body["description"] is None
    assert body["square_feet"] is None
    assert body["amenities"] == []
    assert body["title"] == "Sunny studio"


async def test_empty_image_upload_checks_ownership_first(
    client, owner, make_user, make_apartment
):
    apartment = await make_apartment(owner)
    stranger = await make_user(UserRole.OWNER)

    res = await client.post(
        f"/apartments/{apartment.id}/images", json={"images": []}, headers=auth(stranger)
    )
    assert res.status_code == 403

    res = await client.post(
        f"/apartments/{uuid.uuid4()}/images", json={"images": []}, headers=auth(owner)
    )
    assert res.status_code == 404

    res = await client.post(
        f"/apartments/{apartment.id}/images", json={}, headers=auth(owner)
    )
    assert res.status_code == 400
    assert res.json() == {"error": "Images array is required"}


@pytest.mark.parametrize("path", ["/apartments", "/apartments/"])
async def test_collection_served_with_and_without_slash(
    client, owner, make_apartment, path
):
    await make_apartment(owner)

    res = await client.get(path)
    assert res.status_code == 200
    assert res.json()["pagination"]["total"] == 1

    res = await client.post(path, json=NEW_APARTMENT, headers=auth(owner))
    assert res.status_code == 201
