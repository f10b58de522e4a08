"""Batch receiving — command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storeledger.batch.batch import InventoryBatch
from storeledger.domain import storeledger
from storeledger.errors import PolicyViolation
from storeledger.store.directory import StoreDirectory


@storeledger.command(part_of="InventoryBatch")
class ReceiveBatch:
    """Record a lot of stock received at the tenant's main store."""

    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    quantity = Integer(required=True)
    batch_number = String(max_length=100)


@storeledger.command_handler(part_of=InventoryBatch)
class ReceiveBatchHandler:
    @handle(ReceiveBatch)
    def receive_batch(self, command):
        main_store = StoreDirectory().main_store_for(command.tenant_id)
        if main_store is None:
            raise PolicyViolation({"tenant_id": ["Tenant has no main store to receive stock into"]})

        batch = InventoryBatch.receive(
            tenant_id=command.tenant_id,
            inventory_item_id=command.inventory_item_id,
            owner_store_id=str(main_store.id),
            quantity=command.quantity,
            batch_number=command.batch_number,
        )
        current_domain.repository_for(InventoryBatch).add(batch)
        return str(batch.id)
