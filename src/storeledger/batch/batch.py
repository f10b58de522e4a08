"""InventoryBatch aggregate (CQRS) — a received lot and its store allocations.

The batch is the consistency boundary of the allocation ledger. Every
allocation row for the batch lives inside it, so one load-check-save cycle
sees and writes the whole partition at once.

Quantity model:
    batch.remaining_quantity       units of the lot still in existence (only
                                   consumption lowers it)
    allocation.allocated_quantity  cumulative units ever assigned to a store
    allocation.remaining_quantity  units assigned to a store still sellable there
    unallocated                    batch.remaining_quantity - sum(allocation.remaining_quantity)

Allocating does not lower ``batch.remaining_quantity``; it only partitions it.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storeledger.batch.events import AllocationConsumed, AllocationTransferred, BatchReceived, StockAllocated
from storeledger.domain import storeledger
from storeledger.errors import InsufficientAllocation, InsufficientBatchQuantity, InvalidQuantity
from storeledger.utils.queries import fetch_all


class TransferType(Enum):
    DISTRIBUTION = "DISTRIBUTION"
    REQUEST_FULFILLMENT = "REQUEST_FULFILLMENT"
    EMERGENCY = "EMERGENCY"
    REBALANCING = "REBALANCING"


def validate_quantity(quantity):
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise InvalidQuantity({"quantity": ["Quantity must be a positive whole number"]})


def _transfer_number(now):
    return f"BT-{now:%Y%m%d%H%M%S}-{uuid4().hex[:6].upper()}"


@storeledger.entity(part_of="InventoryBatch")
class Allocation:
    """The share of a batch assigned to one store."""

    store_id = Identifier(required=True)
    allocated_quantity = Integer(default=0, min_value=0)
    remaining_quantity = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()


@storeledger.aggregate
class InventoryBatch:
    """A physical lot of an inventory item, owned by the tenant's main store."""

    tenant_id = Identifier(required=True)
    inventory_item_id = Identifier(required=True)
    owner_store_id = Identifier(required=True)
    batch_number = String(required=True, max_length=100)
    initial_quantity = Integer(default=0, min_value=0)
    remaining_quantity = Integer(default=0, min_value=0)
    allocations = HasMany(Allocation)
    received_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def allocations_fit_within_remaining_stock(self):
        total = sum(a.remaining_quantity or 0 for a in self.allocations or [])
        if total > (self.remaining_quantity or 0):
            raise ValidationError(
                {"allocations": [f"Allocated stock ({total}) exceeds batch remaining quantity ({self.remaining_quantity or 0})"]}
            )

    @invariant.post
    def allocation_remaining_within_allocated(self):
        for allocation in self.allocations or []:
            if (allocation.remaining_quantity or 0) > (allocation.allocated_quantity or 0):
                raise ValidationError(
                    {"allocations": [f"Store {allocation.store_id} holds more than was ever allocated to it"]}
                )

    @invariant.post
    def one_allocation_per_store(self):
        store_ids = [str(a.store_id) for a in self.allocations or []]
        if len(store_ids) != len(set(store_ids)):
            raise ValidationError({"allocations": ["A store can hold only one allocation per batch"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def receive(cls, tenant_id, inventory_item_id, owner_store_id, quantity, batch_number=None):
        """Record a newly received lot at the tenant's main store."""
        validate_quantity(quantity)

        now = datetime.now(UTC)
        batch_number = batch_number or f"B-{now:%Y%m%d}-{uuid4().hex[:8].upper()}"
        batch = cls(
            tenant_id=tenant_id,
            inventory_item_id=inventory_item_id,
            owner_store_id=owner_store_id,
            batch_number=batch_number,
            initial_quantity=quantity,
            remaining_quantity=quantity,
            received_at=now,
            updated_at=now,
        )
        batch.raise_(
            BatchReceived(
                batch_id=str(batch.id),
                tenant_id=str(tenant_id),
                inventory_item_id=str(inventory_item_id),
                owner_store_id=str(owner_store_id),
                batch_number=batch_number,
                quantity=quantity,
                received_at=now,
            )
        )
        return batch

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def allocation_for(self, store_id):
        return next(
            (a for a in (self.allocations or []) if str(a.store_id) == str(store_id)),
            None,
        )

    @property
    def allocated_remaining(self):
        """Units currently held by stores through allocation rows."""
        return sum(a.remaining_quantity or 0 for a in self.allocations or [])

    @property
    def unallocated_quantity(self):
        return (self.remaining_quantity or 0) - self.allocated_remaining

    def available_at(self, store_id, main_store_id):
        """Units sellable at ``store_id``.

        A store with an allocation row has exactly that row's remaining units.
        Without a row, only the main store has access, and only to the
        unallocated part of the batch.
        """
        allocation = self.allocation_for(store_id)
        if allocation is not None:
            return allocation.remaining_quantity or 0
        if main_store_id is not None and str(store_id) == str(main_store_id):
            return self.unallocated_quantity
        return 0

    # -------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------
    def allocate(self, store_id, quantity, allocated_by=None):
        """Assign ``quantity`` unallocated units to a store, creating or topping up its row."""
        validate_quantity(quantity)

        unallocated = self.unallocated_quantity
        if quantity > unallocated:
            raise InsufficientBatchQuantity(
                {"quantity": [f"Insufficient batch quantity: {unallocated} unallocated, {quantity} requested"]}
            )

        now = datetime.now(UTC)
        allocation = self.allocation_for(store_id)
        with atomic_change(self):
            if allocation is None:
                allocation = Allocation(
                    store_id=str(store_id),
                    allocated_quantity=quantity,
                    remaining_quantity=quantity,
                    created_at=now,
                    updated_at=now,
                )
                self.add_allocations(allocation)
            else:
                allocation.allocated_quantity = (allocation.allocated_quantity or 0) + quantity
                allocation.remaining_quantity = (allocation.remaining_quantity or 0) + quantity
                allocation.updated_at = now
            self.updated_at = now

        self.raise_(
            StockAllocated(
                batch_id=str(self.id),
                tenant_id=str(self.tenant_id),
                store_id=str(store_id),
                quantity=quantity,
                allocated_quantity=allocation.allocated_quantity,
                remaining_quantity=allocation.remaining_quantity,
                unallocated_quantity=self.unallocated_quantity,
                allocated_by=str(allocated_by) if allocated_by else None,
                allocated_at=now,
            )
        )
        return allocation

    def transfer(
        self,
        from_store_id,
        to_store_id,
        quantity,
        transfer_type=TransferType.DISTRIBUTION.value,
        notes=None,
        transferred_by=None,
    ):
        """Move allocated units between two stores. Returns the transfer number.

        The source keeps its cumulative ``allocated_quantity``; the destination's
        grows, so allocated totals may exceed the batch over time. Only
        remaining quantities are conserved.
        """
        validate_quantity(quantity)
        if str(from_store_id) == str(to_store_id):
            raise InvalidQuantity({"to_store_id": ["Source and destination stores must differ"]})

        source = self.allocation_for(from_store_id)
        available = (source.remaining_quantity or 0) if source is not None else 0
        if quantity > available:
            raise InsufficientAllocation(
                {"quantity": [f"Insufficient quantity in source store: {available} available, {quantity} requested"]}
            )

        now = datetime.now(UTC)
        destination = self.allocation_for(to_store_id)
        with atomic_change(self):
            source.remaining_quantity = available - quantity
            source.updated_at = now
            if destination is None:
                destination = Allocation(
                    store_id=str(to_store_id),
                    allocated_quantity=quantity,
                    remaining_quantity=quantity,
                    created_at=now,
                    updated_at=now,
                )
                self.add_allocations(destination)
            else:
                destination.allocated_quantity = (destination.allocated_quantity or 0) + quantity
                destination.remaining_quantity = (destination.remaining_quantity or 0) + quantity
                destination.updated_at = now
            self.updated_at = now

        transfer_number = _transfer_number(now)
        self.raise_(
            AllocationTransferred(
                batch_id=str(self.id),
                tenant_id=str(self.tenant_id),
                transfer_number=transfer_number,
                transfer_type=transfer_type or TransferType.DISTRIBUTION.value,
                from_store_id=str(from_store_id),
                to_store_id=str(to_store_id),
                quantity=quantity,
                from_remaining_quantity=source.remaining_quantity,
                to_remaining_quantity=destination.remaining_quantity,
                notes=notes,
                transferred_by=str(transferred_by) if transferred_by else None,
                transferred_at=now,
            )
        )
        return transfer_number

    def consume(self, store_id, quantity, reference=None, consumed_by=None):
        """Use up allocated units at a store; the batch shrinks by the same amount."""
        validate_quantity(quantity)

        allocation = self.allocation_for(store_id)
        available = (allocation.remaining_quantity or 0) if allocation is not None else 0
        if quantity > available:
            raise InsufficientAllocation(
                {"quantity": [f"Insufficient allocation at store: {available} available, {quantity} requested"]}
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            allocation.remaining_quantity = available - quantity
            allocation.updated_at = now
            self.remaining_quantity = (self.remaining_quantity or 0) - quantity
            self.updated_at = now

        self.raise_(
            AllocationConsumed(
                batch_id=str(self.id),
                tenant_id=str(self.tenant_id),
                store_id=str(store_id),
                quantity=quantity,
                store_remaining_quantity=allocation.remaining_quantity,
                batch_remaining_quantity=self.remaining_quantity,
                reference=reference,
                consumed_by=str(consumed_by) if consumed_by else None,
                consumed_at=now,
            )
        )


@storeledger.repository(part_of=InventoryBatch)
class InventoryBatchRepository:
    def for_tenant(self, tenant_id) -> list[InventoryBatch]:
        return fetch_all(self._dao.query.filter(tenant_id=str(tenant_id)))
