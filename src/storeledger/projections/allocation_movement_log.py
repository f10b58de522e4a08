"""Allocation movement log — append-only audit trail of batch stock movements."""

import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from storeledger.batch.batch import InventoryBatch
from storeledger.batch.events import AllocationConsumed, AllocationTransferred, BatchReceived, StockAllocated
from storeledger.domain import storeledger


@storeledger.projection
class AllocationMovementLog:
    entry_id = Identifier(identifier=True, required=True)
    batch_id = Identifier(required=True)
    tenant_id = Identifier(required=True)
    event_type = String(required=True)
    description = String(required=True)
    store_id = Identifier()
    counterpart_store_id = Identifier()
    quantity = Integer(default=0)
    reference = String(max_length=255)
    actor = String()
    occurred_at = DateTime(required=True)


def _add_entry(
    batch_id,
    tenant_id,
    event_type,
    description,
    occurred_at,
    store_id=None,
    counterpart_store_id=None,
    quantity=0,
    reference=None,
    actor=None,
):
    current_domain.repository_for(AllocationMovementLog).add(
        AllocationMovementLog(
            entry_id=str(uuid.uuid4()),
            batch_id=batch_id,
            tenant_id=tenant_id,
            event_type=event_type,
            description=description,
            store_id=store_id,
            counterpart_store_id=counterpart_store_id,
            quantity=quantity,
            reference=reference,
            actor=actor,
            occurred_at=occurred_at,
        )
    )


@storeledger.projector(projector_for=AllocationMovementLog, aggregates=[InventoryBatch])
class AllocationMovementLogProjector:
    @on(BatchReceived)
    def on_batch_received(self, event):
        _add_entry(
            event.batch_id,
            event.tenant_id,
            "BatchReceived",
            f"Received batch {event.batch_number} with {event.quantity} units",
            event.received_at,
            store_id=event.owner_store_id,
            quantity=event.quantity,
            reference=event.batch_number,
        )

    @on(StockAllocated)
    def on_stock_allocated(self, event):
        _add_entry(
            event.batch_id,
            event.tenant_id,
            "StockAllocated",
            f"Allocated {event.quantity} units ({event.unallocated_quantity} left unallocated)",
            event.allocated_at,
            store_id=event.store_id,
            quantity=event.quantity,
            actor=event.allocated_by,
        )

    @on(AllocationTransferred)
    def on_allocation_transferred(self, event):
        _add_entry(
            event.batch_id,
            event.tenant_id,
            "AllocationTransferred",
            f"Transferred {event.quantity} units ({event.transfer_type})",
            event.transferred_at,
            store_id=event.from_store_id,
            counterpart_store_id=event.to_store_id,
            quantity=event.quantity,
            reference=event.transfer_number,
            actor=event.transferred_by,
        )

    @on(AllocationConsumed)
    def on_allocation_consumed(self, event):
        _add_entry(
            event.batch_id,
            event.tenant_id,
            "AllocationConsumed",
            f"Consumed {event.quantity} units ({event.store_remaining_quantity} left at store)",
            event.consumed_at,
            store_id=event.store_id,
            quantity=event.quantity,
            reference=event.reference,
            actor=event.consumed_by,
        )
