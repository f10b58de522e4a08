"""Domain events for the Tenant aggregate."""

from protean.fields import DateTime, Identifier, String

from storeledger.domain import storeledger


@storeledger.event(part_of="Tenant")
class TenantOnboarded:
    """A tenant was created together with its main store."""

    __version__ = "v1"

    tenant_id = Identifier(required=True)
    name = String(required=True)
    store_policy = String(required=True)
    onboarded_at = DateTime(required=True)


@storeledger.event(part_of="Tenant")
class StorePolicyChanged:
    """A tenant switched between single-store and multi-store operation."""

    __version__ = "v1"

    tenant_id = Identifier(required=True)
    previous_policy = String(required=True)
    new_policy = String(required=True)
    changed_at = DateTime(required=True)
