"""Domain events for the Store aggregate."""

from protean.fields import Boolean, DateTime, Identifier, String

from storeledger.domain import storeledger


@storeledger.event(part_of="Store")
class StoreOpened:
    """A store was created under a tenant."""

    __version__ = "v1"

    store_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    name = String(required=True)
    is_main = Boolean(default=False)
    opened_at = DateTime(required=True)


@storeledger.event(part_of="Store")
class StoreRenamed:
    __version__ = "v1"

    store_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    previous_name = String(required=True)
    new_name = String(required=True)
    renamed_at = DateTime(required=True)


@storeledger.event(part_of="Store")
class StoreDeactivated:
    __version__ = "v1"

    store_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@storeledger.event(part_of="Store")
class StoreReactivated:
    __version__ = "v1"

    store_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    reactivated_at = DateTime(required=True)
