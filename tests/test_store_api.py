# tests/test_store_api.py
"""Tests for the rewards store endpoints."""

from fastapi import status

from tests.helpers import bearer


def test_list_items_public(client, make_item) -> None:
    make_item(token_cost=30, name="Helmet")
    make_item(token_cost=10, name="Sticker")
    make_item(token_cost=5, name="Hidden", available=False)

    response = client.get("/api/v1/store/items")

    assert response.status_code == status.HTTP_200_OK
    assert [item["name"] for item in response.json()] == ["Sticker", "Helmet"]


def test_admin_manages_catalog(client, admin_auth_token, auth_token) -> None:
    body = {"name": "Umbrella", "description": "For monsoon reporters", "token_cost": 40}
    assert client.post("/api/v1/store/items", json=body, headers=auth_token).status_code == status.HTTP_403_FORBIDDEN

    created = client.post("/api/v1/store/items", json=body, headers=admin_auth_token)
    assert created.status_code == status.HTTP_201_CREATED
    item_id = created.json()["id"]

    patched = client.patch(f"/api/v1/store/items/{item_id}", json={"available": False}, headers=admin_auth_token)
    assert patched.json()["available"] is False
    assert client.get("/api/v1/store/items").json() == []
    assert len(client.get("/api/v1/store/items/all", headers=admin_auth_token).json()) == 1

    deleted = client.delete(f"/api/v1/store/items/{item_id}", headers=admin_auth_token)
    assert deleted.json() == {"deleted": True}


def test_item_cost_must_be_positive(client, admin_auth_token) -> None:
    body = {"name": "Freebie", "token_cost": 0}
    response = client.post("/api/v1/store/items", json=body, headers=admin_auth_token)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_redeem_success(client, make_account, make_item) -> None:
    user = make_account(tokens=25)
    item = make_item(token_cost=10)

    response = client.post(f"/api/v1/store/items/{item.id}/redeem", headers=bearer(user))

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["success"] is True
    assert data["balance"] == 15
    assert data["redemption"]["status"] == "pending"
    assert data["redemption"]["token_cost"] == 10

    history = client.get("/api/v1/store/redemptions/mine", headers=bearer(user)).json()
    assert [r["id"] for r in history] == [data["redemption"]["id"]]


def test_redeem_insufficient_balance(client, make_account, make_item) -> None:
    user = make_account(tokens=10)
    item = make_item(token_cost=15)

    response = client.post(f"/api/v1/store/items/{item.id}/redeem", headers=bearer(user))

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "insufficient_balance"
    assert client.get("/api/v1/accounts/me", headers=bearer(user)).json()["tokens"] == 10
    assert client.get("/api/v1/store/redemptions/mine", headers=bearer(user)).json() == []


def test_redeem_missing_item(client, auth_token) -> None:
    response = client.post("/api/v1/store/items/missing/redeem", headers=auth_token)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_redemption_admin_flow(client, make_account, store_item, admin_auth_token) -> None:
    user = make_account(tokens=store_item.token_cost)
    redeemed = client.post(f"/api/v1/store/items/{store_item.id}/redeem", headers=bearer(user)).json()
    redemption_id = redeemed["redemption"]["id"]

    assert client.get("/api/v1/store/redemptions/pending", headers=bearer(user)).status_code == status.HTTP_403_FORBIDDEN
    pending = client.get("/api/v1/store/redemptions/pending", headers=admin_auth_token).json()
    assert [r["id"] for r in pending] == [redemption_id]

    url = f"/api/v1/store/redemptions/{redemption_id}/status"
    denied = client.post(url, json={"status": "fulfilled"}, headers=bearer(user))
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    fulfilled = client.post(url, json={"status": "fulfilled"}, headers=admin_auth_token)
    assert fulfilled.status_code == status.HTTP_200_OK
    assert fulfilled.json()["fulfilled_at"] is not None

    again = client.post(url, json={"status": "cancelled"}, headers=admin_auth_token)
    assert again.status_code == status.HTTP_409_CONFLICT

    # Item with history is retired rather than deleted.
    deleted = client.delete(f"/api/v1/store/items/{store_item.id}", headers=admin_auth_token)
    assert deleted.json() == {"deleted": False}
