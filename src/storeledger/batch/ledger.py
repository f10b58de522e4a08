"""Allocation ledger — the store-scoped face of inventory batches.

Every operation takes the caller's ``RequestContext`` explicitly. The ledger
never works out who the caller is; it checks that the role may write, that
the context may act for the store in question, and that the batch and stores
belong to ``context.tenant_id``.

Mutations hold the batch's lock for the whole load-check-write and run as
one command, so a failed precondition leaves the batch exactly as it was.
"""

from contextlib import contextmanager

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain

from storeledger.access.permissions import Action, RolePermissionMatrix
from storeledger.batch.allocation import AllocateStock, ConsumeStock, TransferStock
from storeledger.batch.batch import InventoryBatch, TransferType, validate_quantity
from storeledger.batch.locks import default_locks
from storeledger.batch.receiving import ReceiveBatch
from storeledger.errors import CrossTenantAccess, DomainRuleError, PermissionDenied, StorageFault
from storeledger.store.directory import StoreDirectory

logger = structlog.get_logger(__name__)

SUBJECT = "Store"


class AllocationLedger:
    def __init__(self, permissions=None, locks=None, directory=None):
        self.permissions = permissions or RolePermissionMatrix()
        self.locks = locks or default_locks()
        self.directory = directory or StoreDirectory()

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def receive_batch(self, context, inventory_item_id, quantity, batch_number=None) -> InventoryBatch:
        """Receive a new lot into the tenant's main store."""
        validate_quantity(quantity)
        self._authorize_main_store(context, "receive_batch")

        batch_id = current_domain.process(
            ReceiveBatch(
                tenant_id=context.tenant_id,
                inventory_item_id=inventory_item_id,
                quantity=quantity,
                batch_number=batch_number,
            ),
            asynchronous=False,
        )
        logger.info(
            "Batch received",
            tenant_id=context.tenant_id,
            batch_id=batch_id,
            quantity=quantity,
            actor_id=context.actor_id,
        )
        return self._batch(batch_id)

    def allocate(self, context, batch_id, store_id, quantity):
        """Assign unallocated stock of a batch to a store. Returns the store's allocation."""
        validate_quantity(quantity)
        self._authorize_main_store(context, "allocate")

        with self._mutation("allocate", context, batch_id, store_id=str(store_id), quantity=quantity):
            current_domain.process(
                AllocateStock(
                    tenant_id=context.tenant_id,
                    batch_id=batch_id,
                    store_id=store_id,
                    quantity=quantity,
                    actor_id=context.actor_id,
                ),
                asynchronous=False,
            )
            return self._batch(batch_id).allocation_for(store_id)

    def transfer(
        self,
        context,
        from_store_id,
        to_store_id,
        batch_id,
        quantity,
        transfer_type=TransferType.DISTRIBUTION.value,
        notes=None,
    ) -> str:
        """Move allocated stock between two stores of the tenant. Returns the transfer number."""
        validate_quantity(quantity)
        self._authorize(context, "transfer", from_store_id)

        with self._mutation(
            "transfer",
            context,
            batch_id,
            from_store_id=str(from_store_id),
            to_store_id=str(to_store_id),
            quantity=quantity,
        ):
            return current_domain.process(
                TransferStock(
                    tenant_id=context.tenant_id,
                    batch_id=batch_id,
                    from_store_id=from_store_id,
                    to_store_id=to_store_id,
                    quantity=quantity,
                    transfer_type=transfer_type or TransferType.DISTRIBUTION.value,
                    notes=notes,
                    actor_id=context.actor_id,
                ),
                asynchronous=False,
            )

    def consume(self, context, store_id, batch_id, quantity, reference=None) -> None:
        """Use up allocated stock at a store (a sale)."""
        validate_quantity(quantity)
        self._authorize(context, "consume", store_id)

        with self._mutation("consume", context, batch_id, store_id=str(store_id), quantity=quantity):
            current_domain.process(
                ConsumeStock(
                    tenant_id=context.tenant_id,
                    batch_id=batch_id,
                    store_id=store_id,
                    quantity=quantity,
                    reference=reference,
                    actor_id=context.actor_id,
                ),
                asynchronous=False,
            )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def available_quantity(self, context, store_id, batch_id) -> int:
        self._require_tenant_store(context, store_id)
        batch = self._tenant_batch(context, batch_id)
        main_store = self.directory.main_store_for(context.tenant_id)
        return batch.available_at(store_id, main_store.id if main_store else None)

    def list_allocations(self, context, store_id) -> list:
        """Allocation rows held by a store across the tenant's batches."""
        return [allocation for _, allocation in self.holdings(context, store_id)]

    def holdings(self, context, store_id) -> list[tuple]:
        """``(batch, allocation)`` pairs for every batch the store has a row in."""
        self._require_tenant_store(context, store_id)
        pairs = []
        for batch in current_domain.repository_for(InventoryBatch).for_tenant(context.tenant_id):
            allocation = batch.allocation_for(store_id)
            if allocation is not None:
                pairs.append((batch, allocation))
        return pairs

    def store_summary(self, context, store_id) -> dict:
        """Batches a store holds stock of, with remaining and cumulative allocated units."""
        batches_held = 0
        units_remaining = 0
        units_allocated = 0
        for allocation in self.list_allocations(context, store_id):
            if allocation.remaining_quantity:
                batches_held += 1
            units_remaining += allocation.remaining_quantity or 0
            units_allocated += allocation.allocated_quantity or 0
        return {
            "store_id": str(store_id),
            "batches_held": batches_held,
            "units_remaining": units_remaining,
            "units_allocated": units_allocated,
        }

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _authorize(self, context, operation, store_id):
        if not self.permissions.can(context.role, Action.WRITE.value, SUBJECT):
            logger.warning("Ledger write denied", operation=operation, actor_id=context.actor_id, role=context.role)
            raise PermissionDenied(f"Role {context.role} may not {operation}", action=Action.WRITE.value, subject=SUBJECT)
        if not context.may_act_for(store_id):
            logger.warning(
                "Ledger store access denied",
                operation=operation,
                actor_id=context.actor_id,
                store_id=str(store_id),
            )
            raise PermissionDenied(
                f"Actor may not {operation} for store {store_id}",
                action=Action.WRITE.value,
                subject=SUBJECT,
            )

    def _authorize_main_store(self, context, operation):
        main_store = self.directory.main_store_for(context.tenant_id)
        if main_store is None:
            raise ObjectNotFoundError(f"Tenant {context.tenant_id} has no main store")
        self._authorize(context, operation, main_store.id)

    def _require_tenant_store(self, context, store_id):
        store = self.directory.find_store(store_id)
        if store is None:
            raise ObjectNotFoundError(f"Store with id {store_id} does not exist")
        if not self.directory.store_belongs_to(store, context.tenant_id):
            raise CrossTenantAccess({"store_id": ["Store belongs to a different tenant"]})
        return store

    def _tenant_batch(self, context, batch_id):
        batch = self._batch(batch_id)
        if str(batch.tenant_id) != str(context.tenant_id):
            raise CrossTenantAccess({"batch_id": ["Batch belongs to a different tenant"]})
        return batch

    def _batch(self, batch_id) -> InventoryBatch:
        return current_domain.repository_for(InventoryBatch).get(str(batch_id))

    @contextmanager
    def _mutation(self, operation, context, batch_id, **details):
        with self.locks.hold(batch_id):
            try:
                yield
            except DomainRuleError as exc:
                logger.warning(
                    "Ledger operation rejected",
                    operation=operation,
                    code=exc.code,
                    batch_id=str(batch_id),
                    tenant_id=context.tenant_id,
                    **details,
                )
                raise
            except (ExpectedVersionError, ConnectionError, OSError) as exc:
                logger.error("Ledger storage failure", operation=operation, batch_id=str(batch_id), error=str(exc))
                raise StorageFault(f"Storage failure during {operation}") from exc

        logger.info(
            "Ledger operation applied",
            operation=operation,
            batch_id=str(batch_id),
            tenant_id=context.tenant_id,
            actor_id=context.actor_id,
            **details,
        )
