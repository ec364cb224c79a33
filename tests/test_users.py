import uuid

from conftest import auth
from models.enums import UserRole


async def test_admin_lists_and_searches_users(client, admin, make_user):
    await make_user(UserRole.STUDENT, first_name="Ada", email="ada@uni.edu")
    await make_user(UserRole.OWNER, first_name="Grace")

    res = await client.get("/users", params={"search": "ADA"}, headers=auth(admin))
    body = res.json()
    assert [user["first_name"] for user in body["users"]] == ["Ada"]
    assert body["pagination"]["total"] == 1

    res = await client.get("/users", params={"user_type": "owner"}, headers=auth(admin))
    assert [user["first_name"] for user in res.json()["users"]] == ["Grace"]


async def test_user_list_is_admin_only(client, student):
    res = await client.get("/users", headers=auth(student))

    assert res.status_code == 403
    assert res.json() == {"error": "Admin access required"}


async def test_get_self_or_admin(client, student, admin, make_user):
    other = await make_user()

    assert (await client.get(f"/users/{student.id}", headers=auth(student))).status_code == 200
    assert (await client.get(f"/users/{student.id}", headers=auth(admin))).status_code == 200
    assert (await client.get(f"/users/{student.id}", headers=auth(other))).status_code == 403
    assert (await client.get(f"/users/{uuid.uuid4()}", headers=auth(admin))).status_code == 404


async def test_self_update_ignores_admin_fields(client, student):
    res = await client.put(
        f"/users/{student.id}",
        json={"phone": "555-0100", "is_active": False, "user_type": "admin"},
        headers=auth(student),
    )

    assert res.status_code == 200
    user = res.json()["user"]
    assert user["phone"] == "555-0100"
    assert user["is_active"] is True
    assert user["user_type"] == "student"


async def test_update_with_nothing_allowed_is_400(client, student):
    res = await client.put(
        f"/users/{student.id}", json={"is_active": False}, headers=auth(student)
    )

    assert res.status_code == 400
    assert res.json() == {"error": "No fields to update"}


async def test_admin_can_deactivate(client, student, admin):
    res = await client.put(
        f"/users/{student.id}", json={"is_active": False}, headers=auth(admin)
    )

    assert res.json()["user"]["is_active"] is False
    res = await client.get("/bookings", headers=auth(student))
    assert res.status_code == 403
    assert res.json() == {"error": "Account is deactivated"}


async def test_delete_user(client, student, admin):
    res = await client.delete(f"/users/{admin.id}", headers=auth(admin))
    assert res.status_code == 400
    assert res.json() == {"error": "Cannot delete your own account"}

    res = await client.delete(f"/users/{student.id}", headers=auth(admin))
    assert res.json() == {"message": "User deleted successfully"}

    res = await client.delete(f"/users/{student.id}", headers=auth(admin))
    assert res.status_code == 404


async def test_null_clears_optional_profile_fields(client, student):
    res = await client.put(
        f"/users/{student.id}", json={"phone": "555-0100"}, headers=auth(student)
    )
    assert res.json()["user"]["phone"] == "555-0100"

    res = await client.put(
        f"/users/{student.id}",
        json={"phone": None, "first_name": None},
        headers=auth(student),
    )

    assert res.status_code == 200
    user = res.json()["user"]
    assert user["phone"] is None
    assert user["first_name"] == student.first_name
