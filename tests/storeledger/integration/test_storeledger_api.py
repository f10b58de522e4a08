"""Integration tests for the store ledger API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain
from storeledger.access.selection import StoreSelection
from storeledger.api import (
    auth_router,
    batch_router,
    member_router,
    register_exception_handlers,
    store_router,
    tenant_router,
)
from storeledger.batch.batch import InventoryBatch
from storeledger.store.directory import StoreDirectory


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(tenant_router)
    app.include_router(store_router)
    app.include_router(member_router)
    app.include_router(batch_router)
    app.include_router(auth_router)
    register_exception_handlers(app)
    return TestClient(app)


def _auth(credential):
    return {"Authorization": f"Bearer {credential}"}


def _onboard(client, **overrides):
    defaults = {
        "name": "Acme Retail",
        "store_policy": "MULTI_STORE",
        "owner_actor_id": "owner-1",
    }
    defaults.update(overrides)
    response = client.post("/tenants", json=defaults)
    assert response.status_code == 201
    return response.json()["tenant_id"]


@pytest.fixture()
def tenant(client):
    """Onboarded tenant with an owner credential and a second store."""
    tenant_id = _onboard(client)
    owner = _auth(StoreSelection().issue_for_tenant("owner-1", tenant_id))
    response = client.post("/stores", json={"name": "Second"}, headers=owner)
    assert response.status_code == 201
    return {
        "tenant_id": tenant_id,
        "owner": owner,
        "main": str(StoreDirectory().main_store_for(tenant_id).id),
        "second": response.json()["store_id"],
    }


def _receive(client, tenant, quantity=100):
    response = client.post(
        "/batches",
        json={"inventory_item_id": "item-001", "quantity": quantity},
        headers=tenant["owner"],
    )
    assert response.status_code == 201
    return response.json()["batch_id"]


class TestTenantEndpoints:
    def test_onboard_without_credential(self, client):
        tenant_id = _onboard(client)
        assert StoreDirectory().main_store_for(tenant_id) is not None

    def test_change_store_policy(self, client, tenant):
        response = client.put(
            f"/tenants/{tenant['tenant_id']}/store-policy",
            json={"store_policy": "SINGLE_STORE"},
            headers=tenant["owner"],
        )
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_change_other_tenant_policy_forbidden(self, client, tenant):
        other = _onboard(client, name="Rival", owner_actor_id="rival-owner")
        response = client.put(
            f"/tenants/{other}/store-policy",
            json={"store_policy": "SINGLE_STORE"},
            headers=tenant["owner"],
        )
        assert response.status_code == 403


class TestStoreEndpoints:
    def test_list_stores_main_first(self, client, tenant):
        response = client.get("/stores", headers=tenant["owner"])
        assert response.status_code == 200
        stores = response.json()
        assert [s["store_id"] for s in stores] == [tenant["main"], tenant["second"]]
        assert stores[0]["is_main"] is True

    def test_requires_credential(self, client):
        response = client.get("/stores")
        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHENTICATED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_garbage_credential(self, client):
        response = client.get("/stores", headers=_auth("garbage"))
        assert response.status_code == 401

    def test_duplicate_name_conflict(self, client, tenant):
        response = client.post("/stores", json={"name": "SECOND"}, headers=tenant["owner"])
        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_STORE_NAME"

    def test_main_store_deactivation_conflict(self, client, tenant):
        response = client.put(f"/stores/{tenant['main']}/deactivate", headers=tenant["owner"])
        assert response.status_code == 409
        assert response.json()["error"] == "MAIN_STORE_PROTECTED"

    def test_rename_and_reactivate(self, client, tenant):
        store_id = tenant["second"]
        assert client.put(f"/stores/{store_id}/rename", json={"name": "Harbour"}, headers=tenant["owner"]).status_code == 200
        assert client.put(f"/stores/{store_id}/deactivate", headers=tenant["owner"]).status_code == 200
        assert client.put(f"/stores/{store_id}/reactivate", headers=tenant["owner"]).status_code == 200

        response = client.get(f"/stores/{store_id}", headers=tenant["owner"])
        assert response.json()["name"] == "Harbour"
        assert response.json()["is_active"] is True

    def test_unknown_store(self, client, tenant):
        response = client.get("/stores/missing", headers=tenant["owner"])
        assert response.status_code == 404


class TestMemberEndpoints:
    def test_add_and_assign_member(self, client, tenant):
        response = client.post("/members", json={"actor_id": "clerk-1"}, headers=tenant["owner"])
        assert response.status_code == 201

        response = client.put("/members/clerk-1/store", json={"store_id": tenant["second"]}, headers=tenant["owner"])
        assert response.status_code == 200

        members = client.get(f"/stores/{tenant['second']}/members", headers=tenant["owner"]).json()
        assert members == [{"actor_id": "clerk-1", "role": "STAFF", "assigned_store_id": tenant["second"]}]

    def test_staff_cannot_manage_members(self, client, tenant):
        client.post(
            "/members",
            json={"actor_id": "clerk-1", "store_id": tenant["second"]},
            headers=tenant["owner"],
        )
        clerk = _auth(StoreSelection().issue_for_tenant("clerk-1", tenant["tenant_id"]))

        response = client.post("/members", json={"actor_id": "clerk-2"}, headers=clerk)

        assert response.status_code == 403
        assert response.json()["error"] == "PERMISSION_DENIED"


class TestBatchEndpoints:
    def test_allocate_transfer_consume(self, client, tenant):
        batch_id = _receive(client, tenant, 100)
        owner = tenant["owner"]

        response = client.post(
            f"/batches/{batch_id}/allocations",
            json={"store_id": tenant["main"], "quantity": 40},
            headers=owner,
        )
        assert response.status_code == 201
        assert response.json()["remaining_quantity"] == 40

        response = client.post(
            f"/batches/{batch_id}/allocations",
            json={"store_id": tenant["second"], "quantity": 70},
            headers=owner,
        )
        assert response.status_code == 422
        assert response.json()["error"] == "INSUFFICIENT_BATCH_QUANTITY"

        response = client.post(
            f"/batches/{batch_id}/transfers",
            json={"from_store_id": tenant["main"], "to_store_id": tenant["second"], "quantity": 30},
            headers=owner,
        )
        assert response.status_code == 201
        assert response.json()["transfer_number"].startswith("BT-")

        response = client.post(
            f"/batches/{batch_id}/consumptions",
            json={"store_id": tenant["second"], "quantity": 30, "reference": "SALE-1"},
            headers=owner,
        )
        assert response.status_code == 200

        batch = current_domain.repository_for(InventoryBatch).get(batch_id)
        assert batch.remaining_quantity == 70
        assert batch.allocation_for(tenant["second"]).remaining_quantity == 0

    def test_zero_quantity_rejected(self, client, tenant):
        batch_id = _receive(client, tenant)
        response = client.post(
            f"/batches/{batch_id}/allocations",
            json={"store_id": tenant["second"], "quantity": 0},
            headers=tenant["owner"],
        )
        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_QUANTITY"

    def test_availability_defaults_to_context_store(self, client, tenant):
        batch_id = _receive(client, tenant, 25)
        response = client.get(f"/batches/{batch_id}/availability", headers=tenant["owner"])
        assert response.status_code == 200
        assert response.json() == {"batch_id": batch_id, "store_id": tenant["main"], "available_quantity": 25}

    def test_store_allocations_and_summary(self, client, tenant):
        batch_id = _receive(client, tenant, 25)
        client.post(
            f"/batches/{batch_id}/allocations",
            json={"store_id": tenant["second"], "quantity": 10},
            headers=tenant["owner"],
        )

        allocations = client.get(f"/stores/{tenant['second']}/allocations", headers=tenant["owner"]).json()
        assert allocations == [
            {"batch_id": batch_id, "store_id": tenant["second"], "allocated_quantity": 10, "remaining_quantity": 10}
        ]

        summary = client.get(f"/stores/{tenant['second']}/summary", headers=tenant["owner"]).json()
        assert summary["batches_held"] == 1
        assert summary["units_remaining"] == 10

    def test_cross_tenant_batch_forbidden(self, client, tenant):
        rival_id = _onboard(client, name="Rival", owner_actor_id="rival-owner")
        rival = _auth(StoreSelection().issue_for_tenant("rival-owner", rival_id))
        batch_id = _receive(client, tenant)

        response = client.get(f"/batches/{batch_id}/availability", headers=rival)

        assert response.status_code == 403
        assert response.json()["error"] == "CROSS_TENANT_ACCESS"


class TestSelectStoreEndpoint:
    def test_select_store_then_act_for_it(self, client, tenant):
        client.post(
            "/members",
            json={"actor_id": "manager-1", "role": "MANAGER", "store_id": tenant["second"]},
            headers=tenant["owner"],
        )
        batch_id = _receive(client, tenant)
        client.post(
            f"/batches/{batch_id}/allocations",
            json={"store_id": tenant["second"], "quantity": 10},
            headers=tenant["owner"],
        )
        manager = _auth(StoreSelection().issue_for_tenant("manager-1", tenant["tenant_id"]))

        response = client.post("/auth/select-store", json={"store_id": tenant["second"]}, headers=manager)
        assert response.status_code == 200
        selected = _auth(response.json()["credential"])

        response = client.post(
            f"/batches/{batch_id}/consumptions",
            json={"store_id": tenant["second"], "quantity": 3},
            headers=selected,
        )
        assert response.status_code == 200

        response = client.post(
            f"/batches/{batch_id}/allocations",
            json={"store_id": tenant["second"], "quantity": 3},
            headers=selected,
        )
        assert response.status_code == 403

    def test_unassigned_actor_selects_without_store(self, client, tenant):
        client.post("/members", json={"actor_id": "clerk-1"}, headers=tenant["owner"])
        clerk = _auth(StoreSelection().issue_for_tenant("clerk-1", tenant["tenant_id"]))

        assert client.get("/stores", headers=clerk).status_code == 401

        response = client.post("/auth/select-store", json={"store_id": tenant["second"]}, headers=clerk)
        assert response.status_code == 403
