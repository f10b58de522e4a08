"""FastAPI routes for the store ledger — tenants, stores, members, batches and store selection.

Every route except tenant onboarding and health resolves a ``RequestContext``
from the bearer credential first; the context then flows explicitly into the
directory commands and the allocation ledger.
"""

from fastapi import APIRouter, Depends, Request
from protean.utils.globals import current_domain

from storeledger.access.codec import IdentityCodec
from storeledger.access.context import ContextResolver, RequestContext
from storeledger.access.credentials import CredentialReader
from storeledger.access.permissions import Action, RolePermissionMatrix
from storeledger.access.selection import StoreSelection
from storeledger.api.schemas import (
    AddMemberRequest,
    AllocateRequest,
    AllocationResponse,
    AssignStoreRequest,
    AvailabilityResponse,
    BatchIdResponse,
    ChangeRoleRequest,
    ChangeStorePolicyRequest,
    ConsumeRequest,
    CredentialResponse,
    MemberIdResponse,
    MemberResponse,
    OnboardTenantRequest,
    OpenStoreRequest,
    ReceiveBatchRequest,
    RenameStoreRequest,
    SelectStoreRequest,
    StatusResponse,
    StoreIdResponse,
    StoreResponse,
    StoreSummaryResponse,
    TenantIdResponse,
    TransferRequest,
    TransferResponse,
)
from storeledger.batch.ledger import AllocationLedger
from storeledger.errors import CrossTenantAccess, PermissionDenied, Unauthenticated
from storeledger.staff.assignment import AddMember, AssignActorToStore, ChangeMemberRole
from storeledger.store.directory import StoreDirectory
from storeledger.store.management import DeactivateStore, OpenSubStore, ReactivateStore, RenameStore
from storeledger.tenant.onboarding import ChangeStorePolicy, OnboardTenant
from storeledger.utils.settings import get_settings

permissions = RolePermissionMatrix()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def _bearer(request: Request) -> str | None:
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, credential = header.partition(" ")
    if scheme.lower() != "bearer" or not credential.strip():
        return None
    return credential.strip()


async def request_context(request: Request) -> RequestContext | None:
    settings = get_settings()
    resolver = ContextResolver(
        reader=CredentialReader(settings.jwt_secret),
        codec=IdentityCodec(settings.codec_key),
        directory=StoreDirectory(),
    )
    return resolver.resolve(_bearer(request), f"{request.method} {request.url.path}")


async def authenticated_context(context: RequestContext | None = Depends(request_context)) -> RequestContext:
    if context is None:
        raise Unauthenticated("Authentication required", reason="missing_credential")
    return context


def _require(context, action, subject):
    if not permissions.can(context.role, action.value, subject):
        raise PermissionDenied(f"Role {context.role} may not {action.value} {subject}", action=action.value, subject=subject)


def _tenant_store(context, store_id):
    directory = StoreDirectory()
    store = directory.get_store(store_id)
    if not directory.store_belongs_to(store, context.tenant_id):
        raise CrossTenantAccess({"store_id": ["Store belongs to a different tenant"]})
    return store


# ---------------------------------------------------------------------------
# Tenant Router
# ---------------------------------------------------------------------------
tenant_router = APIRouter(prefix="/tenants", tags=["tenants"])


@tenant_router.post("", status_code=201, response_model=TenantIdResponse)
async def onboard_tenant(body: OnboardTenantRequest) -> TenantIdResponse:
    command = OnboardTenant(
        name=body.name,
        store_policy=body.store_policy,
        email=body.email,
        phone=body.phone,
        main_store_name=body.main_store_name,
        owner_actor_id=body.owner_actor_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return TenantIdResponse(tenant_id=result)


@tenant_router.put("/{tenant_id}/store-policy", response_model=StatusResponse)
async def change_store_policy(
    tenant_id: str,
    body: ChangeStorePolicyRequest,
    context: RequestContext = Depends(authenticated_context),
) -> StatusResponse:
    if tenant_id != context.tenant_id:
        raise CrossTenantAccess({"tenant_id": ["Cannot change another tenant"]})
    _require(context, Action.MANAGE, "Tenant")
    current_domain.process(
        ChangeStorePolicy(tenant_id=tenant_id, store_policy=body.store_policy),
        asynchronous=False,
    )
    return StatusResponse()


# ---------------------------------------------------------------------------
# Store Router
# ---------------------------------------------------------------------------
store_router = APIRouter(prefix="/stores", tags=["stores"])


def _store_response(store) -> StoreResponse:
    return StoreResponse(
        store_id=str(store.id),
        name=store.name,
        is_main=store.is_main,
        is_active=store.is_active,
        email=store.email,
        phone=store.phone,
        created_at=store.created_at,
    )


@store_router.get("", response_model=list[StoreResponse])
async def list_stores(context: RequestContext = Depends(authenticated_context)) -> list[StoreResponse]:
    return [_store_response(store) for store in StoreDirectory().list_stores(context.tenant_id)]


@store_router.post("", status_code=201, response_model=StoreIdResponse)
async def open_store(
    body: OpenStoreRequest,
    context: RequestContext = Depends(authenticated_context),
) -> StoreIdResponse:
    _require(context, Action.MANAGE, "Store")
    command = OpenSubStore(
        tenant_id=context.tenant_id,
        name=body.name,
        email=body.email,
        phone=body.phone,
    )
    result = current_domain.process(command, asynchronous=False)
    return StoreIdResponse(store_id=result)


@store_router.get("/{store_id}", response_model=StoreResponse)
async def get_store(store_id: str, context: RequestContext = Depends(authenticated_context)) -> StoreResponse:
    return _store_response(_tenant_store(context, store_id))


@store_router.put("/{store_id}/rename", response_model=StatusResponse)
async def rename_store(
    store_id: str,
    body: RenameStoreRequest,
    context: RequestContext = Depends(authenticated_context),
) -> StatusResponse:
    _require(context, Action.MANAGE, "Store")
    _tenant_store(context, store_id)
    current_domain.process(RenameStore(store_id=store_id, name=body.name), asynchronous=False)
    return StatusResponse()


@store_router.put("/{store_id}/deactivate", response_model=StatusResponse)
async def deactivate_store(store_id: str, context: RequestContext = Depends(authenticated_context)) -> StatusResponse:
    _require(context, Action.MANAGE, "Store")
    _tenant_store(context, store_id)
    current_domain.process(DeactivateStore(store_id=store_id), asynchronous=False)
    return StatusResponse()


@store_router.put("/{store_id}/reactivate", response_model=StatusResponse)
async def reactivate_store(store_id: str, context: RequestContext = Depends(authenticated_context)) -> StatusResponse:
    _require(context, Action.MANAGE, "Store")
    _tenant_store(context, store_id)
    current_domain.process(ReactivateStore(store_id=store_id), asynchronous=False)
    return StatusResponse()


@store_router.get("/{store_id}/members", response_model=list[MemberResponse])
async def list_store_members(
    store_id: str,
    context: RequestContext = Depends(authenticated_context),
) -> list[MemberResponse]:
    _tenant_store(context, store_id)
    return [
        MemberResponse(
            actor_id=str(member.actor_id),
            role=member.role,
            assigned_store_id=str(member.assigned_store_id) if member.assigned_store_id else None,
        )
        for member in StoreDirectory().list_store_members(store_id)
    ]


@store_router.get("/{store_id}/allocations", response_model=list[AllocationResponse])
async def list_allocations(
    store_id: str,
    context: RequestContext = Depends(authenticated_context),
) -> list[AllocationResponse]:
    return [
        AllocationResponse(
            batch_id=str(batch.id),
            store_id=str(allocation.store_id),
            allocated_quantity=allocation.allocated_quantity,
            remaining_quantity=allocation.remaining_quantity,
        )
        for batch, allocation in AllocationLedger().holdings(context, store_id)
    ]


@store_router.get("/{store_id}/summary", response_model=StoreSummaryResponse)
async def store_summary(store_id: str, context: RequestContext = Depends(authenticated_context)) -> StoreSummaryResponse:
    return StoreSummaryResponse(**AllocationLedger().store_summary(context, store_id))


# ---------------------------------------------------------------------------
# Member Router
# ---------------------------------------------------------------------------
member_router = APIRouter(prefix="/members", tags=["members"])


@member_router.post("", status_code=201, response_model=MemberIdResponse)
async def add_member(body: AddMemberRequest, context: RequestContext = Depends(authenticated_context)) -> MemberIdResponse:
    _require(context, Action.MANAGE, "Member")
    command = AddMember(
        tenant_id=context.tenant_id,
        actor_id=body.actor_id,
        role=body.role,
        store_id=body.store_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return MemberIdResponse(member_id=result)


@member_router.put("/{actor_id}/store", response_model=StatusResponse)
async def assign_store(
    actor_id: str,
    body: AssignStoreRequest,
    context: RequestContext = Depends(authenticated_context),
) -> StatusResponse:
    _require(context, Action.MANAGE, "Member")
    _tenant_store(context, body.store_id)
    current_domain.process(AssignActorToStore(actor_id=actor_id, store_id=body.store_id), asynchronous=False)
    return StatusResponse()


@member_router.put("/{actor_id}/role", response_model=StatusResponse)
async def change_role(
    actor_id: str,
    body: ChangeRoleRequest,
    context: RequestContext = Depends(authenticated_context),
) -> StatusResponse:
    _require(context, Action.MANAGE, "Member")
    current_domain.process(
        ChangeMemberRole(tenant_id=context.tenant_id, actor_id=actor_id, role=body.role),
        asynchronous=False,
    )
    return StatusResponse()


# ---------------------------------------------------------------------------
# Batch Router
# ---------------------------------------------------------------------------
batch_router = APIRouter(prefix="/batches", tags=["batches"])


@batch_router.post("", status_code=201, response_model=BatchIdResponse)
async def receive_batch(body: ReceiveBatchRequest, context: RequestContext = Depends(authenticated_context)) -> BatchIdResponse:
    batch = AllocationLedger().receive_batch(
        context,
        inventory_item_id=body.inventory_item_id,
        quantity=body.quantity,
        batch_number=body.batch_number,
    )
    return BatchIdResponse(batch_id=str(batch.id))


@batch_router.post("/{batch_id}/allocations", status_code=201, response_model=AllocationResponse)
async def allocate(
    batch_id: str,
    body: AllocateRequest,
    context: RequestContext = Depends(authenticated_context),
) -> AllocationResponse:
    allocation = AllocationLedger().allocate(context, batch_id, body.store_id, body.quantity)
    return AllocationResponse(
        batch_id=batch_id,
        store_id=str(allocation.store_id),
        allocated_quantity=allocation.allocated_quantity,
        remaining_quantity=allocation.remaining_quantity,
    )


@batch_router.post("/{batch_id}/transfers", status_code=201, response_model=TransferResponse)
async def transfer(
    batch_id: str,
    body: TransferRequest,
    context: RequestContext = Depends(authenticated_context),
) -> TransferResponse:
    transfer_number = AllocationLedger().transfer(
        context,
        body.from_store_id,
        body.to_store_id,
        batch_id,
        body.quantity,
        transfer_type=body.transfer_type,
        notes=body.notes,
    )
    return TransferResponse(transfer_number=transfer_number)


@batch_router.post("/{batch_id}/consumptions", response_model=StatusResponse)
async def consume(
    batch_id: str,
    body: ConsumeRequest,
    context: RequestContext = Depends(authenticated_context),
) -> StatusResponse:
    AllocationLedger().consume(context, body.store_id, batch_id, body.quantity, reference=body.reference)
    return StatusResponse()


@batch_router.get("/{batch_id}/availability", response_model=AvailabilityResponse)
async def availability(
    batch_id: str,
    store_id: str | None = None,
    context: RequestContext = Depends(authenticated_context),
) -> AvailabilityResponse:
    store_id = store_id or context.store_id
    quantity = AllocationLedger().available_quantity(context, store_id, batch_id)
    return AvailabilityResponse(batch_id=batch_id, store_id=str(store_id), available_quantity=quantity)


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/select-store", response_model=CredentialResponse)
async def select_store(
    body: SelectStoreRequest,
    context: RequestContext = Depends(authenticated_context),
) -> CredentialResponse:
    return CredentialResponse(credential=StoreSelection().select_store(context, body.store_id))
