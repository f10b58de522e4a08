"""Store directory — the tenant → stores → staff relationships.

Owns the single-main-store rule, store name uniqueness, the tenant store
policy check and actor → default-store assignment. The context resolver
reads it for its fallback path and the allocation ledger reads it to check
that a store belongs to the tenant it is told about.

Mutating methods expect to run inside a unit of work (a command handler).
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storeledger.errors import (
    CrossTenantAssignment,
    DuplicateMainStore,
    DuplicateStoreName,
    InactiveStore,
    PolicyViolation,
)
from storeledger.staff.member import MemberRole, TenantMember
from storeledger.store.store import Store
from storeledger.tenant.tenant import Tenant

logger = structlog.get_logger(__name__)


class StoreDirectory:
    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_tenant(self, tenant_id) -> Tenant:
        return current_domain.repository_for(Tenant).get(str(tenant_id))

    def find_tenant(self, tenant_id) -> Tenant | None:
        try:
            return self.get_tenant(tenant_id)
        except ObjectNotFoundError:
            return None

    def get_store(self, store_id) -> Store:
        return current_domain.repository_for(Store).get(str(store_id))

    def find_store(self, store_id) -> Store | None:
        try:
            return self.get_store(store_id)
        except ObjectNotFoundError:
            return None

    def list_stores(self, tenant_id) -> list[Store]:
        """Stores of a tenant ordered by creation time, main store first."""
        return current_domain.repository_for(Store).for_tenant(tenant_id)

    def main_store_for(self, tenant_id) -> Store | None:
        return current_domain.repository_for(Store).main_store(tenant_id)

    def store_belongs_to(self, store, tenant_id) -> bool:
        """Whether ``store`` (a ``Store`` or a store id) is a store of ``tenant_id``."""
        if not isinstance(store, Store):
            store = self.find_store(store)
        return store is not None and str(store.tenant_id) == str(tenant_id)

    def membership(self, actor_id, tenant_id) -> TenantMember | None:
        return current_domain.repository_for(TenantMember).membership(actor_id, tenant_id)

    def resolve_default_store(self, actor_id, tenant_id) -> Store | None:
        """The store an actor falls back to when no store claim is presented.

        Returns None when the actor is not a member, carries no assignment, or
        the assigned store no longer belongs to the tenant or is inactive.
        """
        member = self.membership(actor_id, tenant_id)
        if member is None or not member.assigned_store_id:
            return None

        store = self.find_store(member.assigned_store_id)
        if store is None or not self.store_belongs_to(store, tenant_id) or not store.is_active:
            return None
        return store

    def list_store_members(self, store_id) -> list[TenantMember]:
        store = self.get_store(store_id)
        members = current_domain.repository_for(TenantMember).assigned_to(store_id)
        return [m for m in members if self.store_belongs_to(store, m.tenant_id)]

    # -------------------------------------------------------------------
    # Store lifecycle
    # -------------------------------------------------------------------
    def create_main_store(self, tenant_id, name, email=None, phone=None) -> Store:
        """Create the tenant's main store. Runs in the same unit of work as onboarding."""
        repo = current_domain.repository_for(Store)
        if repo.main_store(tenant_id) is not None:
            raise DuplicateMainStore({"tenant_id": ["Main store already exists for this tenant"]})

        store = Store.open(tenant_id=str(tenant_id), name=name, is_main=True, email=email, phone=phone)
        repo.add(store)
        logger.info("Main store created", tenant_id=str(tenant_id), store_id=str(store.id))
        return store

    def create_sub_store(self, tenant_id, name, email=None, phone=None) -> Store:
        tenant = self.get_tenant(tenant_id)
        if not tenant.allows_multiple_stores:
            raise PolicyViolation({"tenant_id": ["Tenant does not allow multiple stores"]})

        self._ensure_name_available(tenant_id, name)

        store = Store.open(tenant_id=str(tenant_id), name=name, email=email, phone=phone)
        current_domain.repository_for(Store).add(store)
        logger.info("Sub-store created", tenant_id=str(tenant_id), store_id=str(store.id), name=store.name)
        return store

    def rename_store(self, store_id, name) -> Store:
        store = self.get_store(store_id)
        self._ensure_name_available(store.tenant_id, name, exclude_store_id=store.id)
        store.rename(name)
        current_domain.repository_for(Store).add(store)
        return store

    def deactivate(self, store_id) -> Store:
        store = self.get_store(store_id)
        store.deactivate()
        current_domain.repository_for(Store).add(store)
        logger.info("Store deactivated", tenant_id=str(store.tenant_id), store_id=str(store.id))
        return store

    def reactivate(self, store_id) -> Store:
        store = self.get_store(store_id)
        store.reactivate()
        current_domain.repository_for(Store).add(store)
        return store

    def _ensure_name_available(self, tenant_id, name, exclude_store_id=None):
        existing = current_domain.repository_for(Store).find_by_name(tenant_id, name)
        if existing is not None and str(existing.id) != str(exclude_store_id):
            raise DuplicateStoreName({"name": ["Store name must be unique within tenant"]})

    # -------------------------------------------------------------------
    # Staff
    # -------------------------------------------------------------------
    def add_member(self, tenant_id, actor_id, role=MemberRole.STAFF.value, store_id=None) -> TenantMember:
        repo = current_domain.repository_for(TenantMember)
        if repo.membership(actor_id, tenant_id) is not None:
            raise PolicyViolation({"actor_id": ["Actor is already a member of this tenant"]})

        if store_id is not None:
            self._require_assignable_store(store_id, tenant_id)

        member = TenantMember.join(actor_id=str(actor_id), tenant_id=str(tenant_id), role=role, store_id=store_id)
        repo.add(member)
        return member

    def assign_actor_to_store(self, actor_id, store_id) -> TenantMember:
        """Bind an actor to a store of a tenant the actor belongs to."""
        store = self.get_store(store_id)
        member = self.membership(actor_id, store.tenant_id)
        if member is None:
            raise CrossTenantAssignment({"store_id": ["Store belongs to a tenant the actor is not a member of"]})
        if not store.is_active:
            raise InactiveStore({"store_id": ["Cannot assign actors to an inactive store"]})

        member.assign_store(str(store.id))
        current_domain.repository_for(TenantMember).add(member)
        logger.info(
            "Actor assigned to store",
            actor_id=str(actor_id),
            tenant_id=str(store.tenant_id),
            store_id=str(store.id),
        )
        return member

    def change_role(self, actor_id, tenant_id, role) -> TenantMember:
        member = self.membership(actor_id, tenant_id)
        if member is None:
            raise ObjectNotFoundError(f"Actor {actor_id} is not a member of tenant {tenant_id}")
        member.change_role(role)
        current_domain.repository_for(TenantMember).add(member)
        return member

    def _require_assignable_store(self, store_id, tenant_id):
        store = self.get_store(store_id)
        if not self.store_belongs_to(store, tenant_id):
            raise CrossTenantAssignment({"store_id": ["Store belongs to a different tenant"]})
        if not store.is_active:
            raise InactiveStore({"store_id": ["Cannot assign actors to an inactive store"]})
        return store
