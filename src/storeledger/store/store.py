"""Store aggregate — a sellable location under exactly one tenant.

Stores are never deleted. A store holding allocations keeps its row forever;
closing it is a soft deactivation, and the main store cannot be closed at all.
Names are unique per tenant, compared case-insensitively through ``name_key``.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

from storeledger.domain import storeledger
from storeledger.errors import MainStoreProtected
from storeledger.store.events import StoreDeactivated, StoreOpened, StoreReactivated, StoreRenamed
from storeledger.utils.queries import fetch_all


def name_key(name):
    """Normalise a store name for uniqueness checks."""
    return " ".join((name or "").split()).casefold()


@storeledger.aggregate
class Store:
    """A location that can hold allocated stock and record sales."""

    tenant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    name_key = String(required=True, max_length=255)
    is_main = Boolean(default=False)
    is_active = Boolean(default=True)
    email = String(max_length=254)
    phone = String(max_length=30)
    created_at = DateTime()
    updated_at = DateTime()
    deactivated_at = DateTime()

    @classmethod
    def open(cls, tenant_id, name, is_main=False, email=None, phone=None):
        """Open a new store. Tenant policy and name checks belong to the directory."""
        cleaned = " ".join((name or "").split())
        if not cleaned:
            raise ValidationError({"name": ["Store name is required"]})

        now = datetime.now(UTC)
        store = cls(
            tenant_id=tenant_id,
            name=cleaned,
            name_key=name_key(cleaned),
            is_main=is_main,
            email=email,
            phone=phone,
            created_at=now,
            updated_at=now,
        )
        store.raise_(
            StoreOpened(
                store_id=str(store.id),
                tenant_id=str(tenant_id),
                name=cleaned,
                is_main=is_main,
                opened_at=now,
            )
        )
        return store

    def rename(self, name):
        cleaned = " ".join((name or "").split())
        if not cleaned:
            raise ValidationError({"name": ["Store name is required"]})

        previous = self.name
        self.name = cleaned
        self.name_key = name_key(cleaned)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StoreRenamed(
                store_id=str(self.id),
                tenant_id=str(self.tenant_id),
                previous_name=previous,
                new_name=cleaned,
                renamed_at=self.updated_at,
            )
        )

    def deactivate(self):
        """Soft-close the store."""
        if self.is_main:
            raise MainStoreProtected({"store_id": ["The main store cannot be deactivated"]})
        if not self.is_active:
            raise ValidationError({"store": ["Store is already inactive"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.deactivated_at = now
        self.updated_at = now
        self.raise_(
            StoreDeactivated(
                store_id=str(self.id),
                tenant_id=str(self.tenant_id),
                deactivated_at=now,
            )
        )

    def reactivate(self):
        if self.is_active:
            raise ValidationError({"store": ["Store is already active"]})

        now = datetime.now(UTC)
        self.is_active = True
        self.deactivated_at = None
        self.updated_at = now
        self.raise_(
            StoreReactivated(
                store_id=str(self.id),
                tenant_id=str(self.tenant_id),
                reactivated_at=now,
            )
        )


@storeledger.repository(part_of=Store)
class StoreRepository:
    """Tenant-scoped lookups over stores."""

    def for_tenant(self, tenant_id) -> list[Store]:
        """All stores of a tenant, main store first, then in creation order."""
        stores = fetch_all(self._dao.query.filter(tenant_id=str(tenant_id)))
        return sorted(stores, key=lambda s: (not s.is_main, s.created_at, s.name_key))

    def main_store(self, tenant_id) -> Store | None:
        return self._dao.query.filter(tenant_id=str(tenant_id), is_main=True).all().first

    def find_by_name(self, tenant_id, name) -> Store | None:
        return self._dao.query.filter(tenant_id=str(tenant_id), name_key=name_key(name)).all().first
