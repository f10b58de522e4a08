"""Pydantic request/response schemas for the store ledger API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Tenant Request Schemas
# ---------------------------------------------------------------------------
class OnboardTenantRequest(BaseModel):
    name: str
    store_policy: str = "SINGLE_STORE"
    email: str | None = None
    phone: str | None = None
    main_store_name: str | None = None
    owner_actor_id: str | None = None


class ChangeStorePolicyRequest(BaseModel):
    store_policy: str


# ---------------------------------------------------------------------------
# Store Request Schemas
# ---------------------------------------------------------------------------
class OpenStoreRequest(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None


class RenameStoreRequest(BaseModel):
    name: str


# ---------------------------------------------------------------------------
# Member Request Schemas
# ---------------------------------------------------------------------------
class AddMemberRequest(BaseModel):
    actor_id: str
    role: str = "STAFF"
    store_id: str | None = None


class AssignStoreRequest(BaseModel):
    store_id: str


class ChangeRoleRequest(BaseModel):
    role: str


# ---------------------------------------------------------------------------
# Batch Request Schemas
# ---------------------------------------------------------------------------
class ReceiveBatchRequest(BaseModel):
    inventory_item_id: str
    quantity: int
    batch_number: str | None = None


class AllocateRequest(BaseModel):
    store_id: str
    quantity: int


class TransferRequest(BaseModel):
    from_store_id: str
    to_store_id: str
    quantity: int
    transfer_type: str = "DISTRIBUTION"
    notes: str | None = None


class ConsumeRequest(BaseModel):
    store_id: str
    quantity: int
    reference: str | None = None


# ---------------------------------------------------------------------------
# Auth Request Schemas
# ---------------------------------------------------------------------------
class SelectStoreRequest(BaseModel):
    store_id: str


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class TenantIdResponse(BaseModel):
    tenant_id: str


class StoreIdResponse(BaseModel):
    store_id: str


class MemberIdResponse(BaseModel):
    member_id: str


class BatchIdResponse(BaseModel):
    batch_id: str


class TransferResponse(BaseModel):
    transfer_number: str


class CredentialResponse(BaseModel):
    credential: str
    token_type: str = "bearer"


class StoreResponse(BaseModel):
    store_id: str
    name: str
    is_main: bool
    is_active: bool
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None


class MemberResponse(BaseModel):
    actor_id: str
    role: str
    assigned_store_id: str | None = None


class AllocationResponse(BaseModel):
    batch_id: str
    store_id: str
    allocated_quantity: int = Field(ge=0)
    remaining_quantity: int = Field(ge=0)


class AvailabilityResponse(BaseModel):
    batch_id: str
    store_id: str
    available_quantity: int


class StoreSummaryResponse(BaseModel):
    store_id: str
    batches_held: int
    units_remaining: int
    units_allocated: int


class StatusResponse(BaseModel):
    status: str = "ok"
