"""TenantMember aggregate — an actor's membership in a tenant.

Membership carries the actor's role and, for store-bound roles, the single
store the actor works at. That store is the fallback whenever a request
presents no store claim. Owners and super-admins are tenant-wide: they hold
no binding store and may act for every store of the tenant.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String

from storeledger.domain import storeledger
from storeledger.errors import PolicyViolation
from storeledger.staff.events import MemberAssignedToStore, MemberJoined, MemberRoleChanged
from storeledger.utils.queries import fetch_all


class MemberRole(Enum):
    OWNER = "OWNER"
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


TENANT_WIDE_ROLES = frozenset({MemberRole.OWNER.value, MemberRole.SUPER_ADMIN.value})


def is_tenant_wide(role):
    return role in TENANT_WIDE_ROLES


@storeledger.aggregate
class TenantMember:
    """An actor belonging to a tenant, with a role and an optional store assignment."""

    actor_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    role = String(choices=MemberRole, default=MemberRole.STAFF.value)
    assigned_store_id = Identifier()
    joined_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def tenant_wide_members_carry_no_store(self):
        if is_tenant_wide(self.role) and self.assigned_store_id:
            raise ValidationError({"assigned_store_id": ["Tenant-wide members cannot be bound to a store"]})

    @classmethod
    def join(cls, actor_id, tenant_id, role=MemberRole.STAFF.value, store_id=None):
        now = datetime.now(UTC)
        member = cls(
            actor_id=actor_id,
            tenant_id=tenant_id,
            role=role,
            assigned_store_id=store_id,
            joined_at=now,
            updated_at=now,
        )
        member.raise_(
            MemberJoined(
                member_id=str(member.id),
                actor_id=str(actor_id),
                tenant_id=str(tenant_id),
                role=role,
                joined_at=now,
            )
        )
        return member

    @property
    def is_tenant_wide(self):
        return is_tenant_wide(self.role)

    def assign_store(self, store_id):
        """Make ``store_id`` this member's default store."""
        if self.is_tenant_wide:
            raise PolicyViolation({"actor_id": ["Tenant-wide members are not bound to a store"]})

        previous = self.assigned_store_id
        self.assigned_store_id = store_id
        self.updated_at = datetime.now(UTC)
        self.raise_(
            MemberAssignedToStore(
                member_id=str(self.id),
                actor_id=str(self.actor_id),
                tenant_id=str(self.tenant_id),
                previous_store_id=str(previous) if previous else None,
                store_id=str(store_id),
                assigned_at=self.updated_at,
            )
        )

    def change_role(self, role):
        """Change the member's role. Becoming tenant-wide drops the store binding."""
        if role == self.role:
            raise ValidationError({"role": [f"Member already has role {role}"]})

        previous = self.role
        now = datetime.now(UTC)
        if is_tenant_wide(role):
            self.assigned_store_id = None
        self.role = role
        self.updated_at = now
        self.raise_(
            MemberRoleChanged(
                member_id=str(self.id),
                actor_id=str(self.actor_id),
                tenant_id=str(self.tenant_id),
                previous_role=previous,
                new_role=role,
                changed_at=now,
            )
        )


@storeledger.repository(part_of=TenantMember)
class TenantMemberRepository:
    def membership(self, actor_id, tenant_id) -> TenantMember | None:
        return self._dao.query.filter(actor_id=str(actor_id), tenant_id=str(tenant_id)).all().first

    def assigned_to(self, store_id) -> list[TenantMember]:
        return fetch_all(self._dao.query.filter(assigned_store_id=str(store_id)))
