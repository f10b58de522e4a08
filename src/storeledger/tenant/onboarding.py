"""Tenant onboarding — command and handler.

The tenant, its main store and (when given) the owner's membership are
written in one unit of work, so no tenant is ever observable without exactly
one main store.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storeledger.domain import storeledger
from storeledger.staff.member import MemberRole
from storeledger.store.directory import StoreDirectory
from storeledger.tenant.tenant import StorePolicy, Tenant


@storeledger.command(part_of="Tenant")
class OnboardTenant:
    """Create a tenant together with its main store."""

    name = String(required=True, max_length=255)
    store_policy = String(max_length=20, default=StorePolicy.SINGLE_STORE.value)
    email = String(max_length=254)
    phone = String(max_length=30)
    main_store_name = String(max_length=255)
    owner_actor_id = Identifier()


@storeledger.command(part_of="Tenant")
class ChangeStorePolicy:
    tenant_id = Identifier(required=True)
    store_policy = String(required=True, max_length=20)


@storeledger.command_handler(part_of=Tenant)
class OnboardTenantHandler:
    @handle(OnboardTenant)
    def onboard_tenant(self, command):
        tenant = Tenant.onboard(
            name=command.name,
            store_policy=command.store_policy or StorePolicy.SINGLE_STORE.value,
            email=command.email,
            phone=command.phone,
        )
        current_domain.repository_for(Tenant).add(tenant)

        directory = StoreDirectory()
        directory.create_main_store(
            tenant_id=str(tenant.id),
            name=command.main_store_name or f"{command.name} Main Store",
            email=command.email,
            phone=command.phone,
        )
        if command.owner_actor_id:
            directory.add_member(
                tenant_id=str(tenant.id),
                actor_id=command.owner_actor_id,
                role=MemberRole.OWNER.value,
            )
        return str(tenant.id)

    @handle(ChangeStorePolicy)
    def change_store_policy(self, command):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)
        tenant.change_store_policy(command.store_policy)
        repo.add(tenant)
