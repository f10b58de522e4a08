"""Tenant aggregate — the ownership boundary for stores, staff and stock.

A tenant is only ever created through onboarding, which creates its main
store in the same unit of work.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from storeledger.domain import storeledger
from storeledger.tenant.events import StorePolicyChanged, TenantOnboarded


class StorePolicy(Enum):
    SINGLE_STORE = "SINGLE_STORE"
    MULTI_STORE = "MULTI_STORE"


@storeledger.aggregate
class Tenant:
    """A customer organisation operating one or more stores."""

    name = String(required=True, max_length=255)
    store_policy = String(choices=StorePolicy, default=StorePolicy.SINGLE_STORE.value)
    email = String(max_length=254)
    phone = String(max_length=30)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def onboard(cls, name, store_policy=StorePolicy.SINGLE_STORE.value, email=None, phone=None):
        """Create a new tenant."""
        now = datetime.now(UTC)
        tenant = cls(
            name=name,
            store_policy=store_policy,
            email=email,
            phone=phone,
            created_at=now,
            updated_at=now,
        )
        tenant.raise_(
            TenantOnboarded(
                tenant_id=str(tenant.id),
                name=name,
                store_policy=store_policy,
                onboarded_at=now,
            )
        )
        return tenant

    @property
    def allows_multiple_stores(self):
        return self.store_policy == StorePolicy.MULTI_STORE.value

    def change_store_policy(self, store_policy):
        """Switch the store policy. Existing sub-stores are left untouched."""
        if store_policy == self.store_policy:
            raise ValidationError({"store_policy": [f"Tenant already uses {store_policy}"]})

        previous = self.store_policy
        self.store_policy = store_policy
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StorePolicyChanged(
                tenant_id=str(self.id),
                previous_policy=previous,
                new_policy=store_policy,
                changed_at=self.updated_at,
            )
        )
