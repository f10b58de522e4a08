"""Tenant membership and store assignment — commands and handler."""

from protean import handle
from protean.fields import Identifier, String

from storeledger.domain import storeledger
from storeledger.staff.member import MemberRole, TenantMember
from storeledger.store.directory import StoreDirectory


@storeledger.command(part_of="TenantMember")
class AddMember:
    """Add an actor to a tenant with a role and, optionally, a default store."""

    tenant_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    role = String(max_length=20, default=MemberRole.STAFF.value)
    store_id = Identifier()


@storeledger.command(part_of="TenantMember")
class AssignActorToStore:
    actor_id = Identifier(required=True)
    store_id = Identifier(required=True)


@storeledger.command(part_of="TenantMember")
class ChangeMemberRole:
    tenant_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    role = String(required=True, max_length=20)


@storeledger.command_handler(part_of=TenantMember)
class MembershipHandler:
    @handle(AddMember)
    def add_member(self, command):
        member = StoreDirectory().add_member(
            tenant_id=command.tenant_id,
            actor_id=command.actor_id,
            role=command.role or MemberRole.STAFF.value,
            store_id=command.store_id,
        )
        return str(member.id)

    @handle(AssignActorToStore)
    def assign_actor_to_store(self, command):
        StoreDirectory().assign_actor_to_store(command.actor_id, command.store_id)

    @handle(ChangeMemberRole)
    def change_member_role(self, command):
        StoreDirectory().change_role(command.actor_id, command.tenant_id, command.role)
