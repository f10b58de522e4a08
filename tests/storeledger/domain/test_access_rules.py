"""Tests for permission checks, exempt operations and request contexts."""

import pytest
from storeledger.access.context import RequestContext, is_exempt
from storeledger.access.permissions import Action, RolePermissionMatrix


class TestRolePermissionMatrix:
    @pytest.mark.parametrize(
        "role,action,allowed",
        [
            ("OWNER", "manage", True),
            ("SUPER_ADMIN", "delete", True),
            ("ADMIN", "write", True),
            ("ADMIN", "manage", False),
            ("MANAGER", "write", True),
            ("MANAGER", "delete", False),
            ("STAFF", "read", True),
            ("STAFF", "write", False),
            ("STRANGER", "read", False),
        ],
    )
    def test_default_matrix(self, role, action, allowed):
        assert RolePermissionMatrix().can(role, action, "Store") is allowed

    def test_accepts_enum_action(self):
        assert RolePermissionMatrix().can("MANAGER", Action.WRITE, "Store") is True

    def test_subject_override(self):
        matrix = RolePermissionMatrix(overrides={("STAFF", "Store"): {"read", "write"}})
        assert matrix.can("STAFF", "write", "Store") is True
        assert matrix.can("STAFF", "write", "Member") is False


class TestExemptOperations:
    @pytest.mark.parametrize(
        "operation",
        ["POST /auth/select-store", "/auth/token", "GET /health", "GET /docs", "GET /openapi.json", "POST /tenants"],
    )
    def test_exempt(self, operation):
        assert is_exempt(operation) is True

    @pytest.mark.parametrize(
        "operation",
        [None, "", "GET /tenants", "PUT /tenants/abc/store-policy", "POST /batches", "GET /authors", "GET /stores"],
    )
    def test_not_exempt(self, operation):
        assert is_exempt(operation) is False


class TestRequestContext:
    def test_store_bound_actor_acts_for_own_store_only(self):
        context = RequestContext(tenant_id="t", store_id="s-1", actor_id="a", role="STAFF")
        assert context.may_act_for("s-1") is True
        assert context.may_act_for("s-2") is False

    def test_tenant_wide_actor_acts_for_any_store(self):
        context = RequestContext(tenant_id="t", store_id="s-main", actor_id="a", role="OWNER", tenant_wide=True)
        assert context.may_act_for("s-2") is True

    def test_context_without_store_acts_for_none(self):
        context = RequestContext(tenant_id="t", store_id=None, actor_id="a", role="STAFF")
        assert context.may_act_for("s-1") is False

    def test_context_is_immutable(self):
        context = RequestContext(tenant_id="t", store_id="s-1", actor_id="a", role="STAFF")
        with pytest.raises(AttributeError):
            context.store_id = "s-2"
