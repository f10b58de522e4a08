"""Domain events for the TenantMember aggregate."""

from protean.fields import DateTime, Identifier, String

from storeledger.domain import storeledger


@storeledger.event(part_of="TenantMember")
class MemberJoined:
    __version__ = "v1"

    member_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    role = String(required=True)
    joined_at = DateTime(required=True)


@storeledger.event(part_of="TenantMember")
class MemberAssignedToStore:
    """An actor's default store changed."""

    __version__ = "v1"

    member_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    previous_store_id = Identifier()
    store_id = Identifier(required=True)
    assigned_at = DateTime(required=True)


@storeledger.event(part_of="TenantMember")
class MemberRoleChanged:
    __version__ = "v1"

    member_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    previous_role = String(required=True)
    new_role = String(required=True)
    changed_at = DateTime(required=True)
