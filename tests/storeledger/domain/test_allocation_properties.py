"""Randomised checks of the batch quantity rules.

Seeded sequences of allocate, transfer and consume calls, some valid and some
not, must never leave a batch whose store holdings exceed its remaining
stock, and every rejected call must leave the batch untouched.
"""

import random

import pytest
from storeledger.batch.batch import InventoryBatch
from storeledger.errors import InvariantError

STORES = ["store-main", "store-a", "store-b", "store-c"]


def _snapshot(batch):
    return (
        batch.remaining_quantity,
        sorted(
            (str(a.store_id), a.allocated_quantity, a.remaining_quantity)
            for a in batch.allocations
        ),
    )


def _random_step(rng, batch):
    operation = rng.choice(["allocate", "transfer", "consume"])
    quantity = rng.randint(-2, 40)
    if operation == "allocate":
        batch.allocate(rng.choice(STORES), quantity)
    elif operation == "transfer":
        source, destination = rng.choice(STORES), rng.choice(STORES)
        batch.transfer(source, destination, quantity)
    else:
        batch.consume(rng.choice(STORES), quantity)


@pytest.mark.parametrize("seed", range(25))
def test_holdings_never_exceed_remaining_stock(seed):
    rng = random.Random(seed)
    batch = InventoryBatch.receive(
        tenant_id="tenant-001",
        inventory_item_id="item-001",
        owner_store_id="store-main",
        quantity=rng.randint(1, 150),
    )

    for _ in range(60):
        before = _snapshot(batch)
        try:
            _random_step(rng, batch)
        except InvariantError:
            assert _snapshot(batch) == before

        assert batch.allocated_remaining <= batch.remaining_quantity
        assert batch.remaining_quantity >= 0
        for allocation in batch.allocations:
            assert 0 <= allocation.remaining_quantity <= allocation.allocated_quantity


@pytest.mark.parametrize("seed", range(10))
def test_transfers_conserve_store_pair_totals(seed):
    rng = random.Random(seed)
    batch = InventoryBatch.receive(
        tenant_id="tenant-001",
        inventory_item_id="item-001",
        owner_store_id="store-main",
        quantity=200,
    )
    for store in STORES:
        batch.allocate(store, 40)

    for _ in range(40):
        source, destination = rng.sample(STORES, 2)
        held = batch.allocation_for(source).remaining_quantity
        if held == 0:
            continue
        pair_before = held + batch.allocation_for(destination).remaining_quantity

        batch.transfer(source, destination, rng.randint(1, held))

        pair_after = (
            batch.allocation_for(source).remaining_quantity + batch.allocation_for(destination).remaining_quantity
        )
        assert pair_after == pair_before
        assert batch.allocated_remaining == 160
