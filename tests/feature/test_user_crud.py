import pytest

from src.domain.entities.user import Role
from src.infrastructure.dependency_injection.auth_dependencies import get_user_service
from tests.factories.user import create_user, user_payload


@pytest.mark.asyncio
async def test_listing_requires_authentication(async_client):
    response = await async_client.get("/api/users")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_with_pagination_metadata(async_client, auth_headers, user_repository):
    for _ in range(3):
        await create_user(user_repository)

    response = await async_client.get("/api/users", params={"per_page": 2, "page": 2}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Users retrieved successfully"
    assert len(body["data"]) == 2
    assert body["pagination"] == {
        "current_page": 2,
        "last_page": 2,
        "per_page": 2,
        "total": 4,
        "from": 3,
        "to": 4,
    }
    assert all("password" not in user for user in body["data"])


@pytest.mark.asyncio
async def test_per_page_is_clamped_and_unknown_sort_falls_back(async_client, auth_headers, user_repository, existing_user):
    newest = await create_user(user_repository)

    response = await async_client.get(
        "/api/users",
        params={"per_page": 500, "sort_by": "password", "sort_order": "asc"},
        headers=auth_headers,
    )

    body = response.json()
    assert body["pagination"]["per_page"] == 100
    assert [user["id"] for user in body["data"]] == [newest.id, existing_user.id]


@pytest.mark.asyncio
async def test_filter_and_search(async_client, auth_headers, user_repository):
    await create_user(user_repository, role=Role.ADMIN, first_name="Ada", last_name="Lovelace")
    await create_user(user_repository, role=Role.SUPERVISOR, first_name="Grace", last_name="Hopper")

    admins = await async_client.get("/api/users", params={"role": 1}, headers=auth_headers)
    search = await async_client.get("/api/users", params={"search": "hopp"}, headers=auth_headers)

    assert [user["first_name"] for user in admins.json()["data"]] == ["Ada"]
    assert [user["last_name"] for user in search.json()["data"]] == ["Hopper"]


@pytest.mark.asyncio
async def test_create_show_update_delete(async_client, auth_headers):
    created = await async_client.post(
        "/api/users", json=user_payload(email="Crud.User+x@Gmail.com"), headers=auth_headers
    )
    assert created.status_code == 201
    assert created.json()["message"] == "User created successfully"
    user = created.json()["data"]
    assert user["email"] == "cruduser@gmail.com"
    assert "token" not in created.json()["data"]

    shown = await async_client.get(f"/api/users/{user['id']}", headers=auth_headers)
    assert shown.status_code == 200
    assert shown.json()["message"] == "User retrieved successfully"

    patched = await async_client.patch(
        f"/api/users/{user['id']}", json={"first_name": "Changed"}, headers=auth_headers
    )
    assert patched.status_code == 200
    assert patched.json()["message"] == "User updated successfully"
    assert patched.json()["data"]["first_name"] == "Changed"
    assert patched.json()["data"]["last_name"] == user["last_name"]

    put = await async_client.put(
        f"/api/users/{user['id']}", json={"latitude": 123}, headers=auth_headers
    )
    assert put.status_code == 422
    assert put.json()["errors"] == {"latitude": ["The latitude must be between -90 and 90 degrees."]}

    deleted = await async_client.delete(f"/api/users/{user['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"status": "success", "message": "User deleted successfully"}

    gone = await async_client.delete(f"/api/users/{user['id']}", headers=auth_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["999999", "abc", "0"])
async def test_unknown_user_is_not_found(async_client, auth_headers, user_id):
    response = await async_client.delete(f"/api/users/{user_id}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {
        "status": "error",
        "message": "User not found",
        "errors": {"general": ["No user exists with the given ID"]},
    }


@pytest.mark.asyncio
async def test_unexpected_failure_returns_generic_envelope(app, async_client, auth_headers):
    class BrokenService:
        async def list(self, *args, **kwargs):
            raise RuntimeError("connection string postgres://secret")

    app.dependency_overrides[get_user_service] = lambda: BrokenService()

    response = await async_client.get("/api/users", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {
        "status": "error",
        "message": "Failed to retrieve users",
        "errors": {"general": ["An unexpected error occurred"]},
    }
    assert "secret" not in response.text


@pytest.mark.asyncio
async def test_page_far_past_the_end_is_empty(async_client, auth_headers):
    response = await async_client.get(
        "/api/users", params={"page": "100000000000000000000"}, headers=auth_headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["data"] == []
    assert body["pagination"]["total"] == 1
    assert body["pagination"]["from"] is None
