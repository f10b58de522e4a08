"""Domain events for the InventoryBatch aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storeledger.domain import storeledger


@storeledger.event(part_of="InventoryBatch")
class BatchReceived:
    """A new lot of an inventory item arrived at the tenant's main store."""

    __version__ = "v1"

    batch_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    owner_store_id = Identifier(required=True)
    batch_number = String(required=True)
    quantity = Integer(required=True)
    received_at = DateTime(required=True)


@storeledger.event(part_of="InventoryBatch")
class StockAllocated:
    """Units of a batch were assigned to a store."""

    __version__ = "v1"

    batch_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    allocated_quantity = Integer()
    remaining_quantity = Integer()
    unallocated_quantity = Integer()
    allocated_by = Identifier()
    allocated_at = DateTime(required=True)


@storeledger.event(part_of="InventoryBatch")
class AllocationTransferred:
    """Allocated units moved from one store to another."""

    __version__ = "v1"

    batch_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    transfer_number = String(required=True)
    transfer_type = String(required=True)
    from_store_id = Identifier(required=True)
    to_store_id = Identifier(required=True)
    quantity = Integer(required=True)
    from_remaining_quantity = Integer()
    to_remaining_quantity = Integer()
    notes = Text()
    transferred_by = Identifier()
    transferred_at = DateTime(required=True)


@storeledger.event(part_of="InventoryBatch")
class AllocationConsumed:
    """Units were sold (or otherwise used up) at a store."""

    __version__ = "v1"

    batch_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    store_remaining_quantity = Integer()
    batch_remaining_quantity = Integer()
    reference = String()
    consumed_by = Identifier()
    consumed_at = DateTime(required=True)
