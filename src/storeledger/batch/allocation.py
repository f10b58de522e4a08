"""Stock allocation — commands and handler.

Each command is one unit of work on one batch: the batch is loaded, the
tenant and store references are checked against the store directory, the
aggregate applies the change and the batch is written back. Nothing is
persisted if any check fails.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storeledger.batch.batch import InventoryBatch, TransferType
from storeledger.domain import storeledger
from storeledger.errors import CrossTenantAccess, InactiveStore
from storeledger.store.directory import StoreDirectory


@storeledger.command(part_of="InventoryBatch")
class AllocateStock:
    tenant_id = Identifier(required=True)
    batch_id = Identifier(required=True)
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    actor_id = Identifier()


@storeledger.command(part_of="InventoryBatch")
class TransferStock:
    tenant_id = Identifier(required=True)
    batch_id = Identifier(required=True)
    from_store_id = Identifier(required=True)
    to_store_id = Identifier(required=True)
    quantity = Integer(required=True)
    transfer_type = String(max_length=30, default=TransferType.DISTRIBUTION.value)
    notes = Text()
    actor_id = Identifier()


@storeledger.command(part_of="InventoryBatch")
class ConsumeStock:
    """Use up allocated stock at a store, typically for a sale."""

    tenant_id = Identifier(required=True)
    batch_id = Identifier(required=True)
    store_id = Identifier(required=True)
    quantity = Integer(required=True)
    reference = String(max_length=255)  # Sale or order reference
    actor_id = Identifier()


def _load_batch(batch_id, tenant_id):
    batch = current_domain.repository_for(InventoryBatch).get(batch_id)
    if str(batch.tenant_id) != str(tenant_id):
        raise CrossTenantAccess({"batch_id": ["Batch belongs to a different tenant"]})
    return batch


def _tenant_store(directory, store_id, tenant_id, field="store_id", must_be_active=False):
    store = directory.find_store(store_id)
    if store is None:
        raise ObjectNotFoundError(f"Store with id {store_id} does not exist")
    if not directory.store_belongs_to(store, tenant_id):
        raise CrossTenantAccess({field: ["Store belongs to a different tenant"]})
    if must_be_active and not store.is_active:
        raise InactiveStore({field: ["Cannot move stock into an inactive store"]})
    return store


@storeledger.command_handler(part_of=InventoryBatch)
class AllocationHandler:
    @handle(AllocateStock)
    def allocate_stock(self, command):
        batch = _load_batch(command.batch_id, command.tenant_id)
        _tenant_store(StoreDirectory(), command.store_id, command.tenant_id, must_be_active=True)

        batch.allocate(
            store_id=command.store_id,
            quantity=command.quantity,
            allocated_by=command.actor_id,
        )
        current_domain.repository_for(InventoryBatch).add(batch)

    @handle(TransferStock)
    def transfer_stock(self, command):
        batch = _load_batch(command.batch_id, command.tenant_id)
        directory = StoreDirectory()
        _tenant_store(directory, command.from_store_id, command.tenant_id, field="from_store_id")
        _tenant_store(directory, command.to_store_id, command.tenant_id, field="to_store_id", must_be_active=True)

        transfer_number = batch.transfer(
            from_store_id=command.from_store_id,
            to_store_id=command.to_store_id,
            quantity=command.quantity,
            transfer_type=command.transfer_type,
            notes=command.notes,
            transferred_by=command.actor_id,
        )
        current_domain.repository_for(InventoryBatch).add(batch)
        return transfer_number

    @handle(ConsumeStock)
    def consume_stock(self, command):
        batch = _load_batch(command.batch_id, command.tenant_id)
        _tenant_store(StoreDirectory(), command.store_id, command.tenant_id)

        batch.consume(
            store_id=command.store_id,
            quantity=command.quantity,
            reference=command.reference,
            consumed_by=command.actor_id,
        )
        current_domain.repository_for(InventoryBatch).add(batch)
