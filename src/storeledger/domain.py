"""Store ledger bounded context — tenants, stores, staff and the allocation ledger.

Tracks which store holds how many units of every inventory batch, moves stock
between stores without losing units, and resolves the (tenant, store, actor)
context every request runs under.
"""

from protean.domain import Domain

from storeledger.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storeledger = Domain(name="storeledger")
