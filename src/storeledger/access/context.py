"""Request context resolution.

Turns a presented credential into the (tenant, store, actor) triple every
ledger operation runs under. Resolution is read-only and fails closed: any
problem surfaces as a ``ContextError`` subclass, never as a context with
guessed values.

Fallback chain for the store:
    1. the store claim in the credential, if present and still valid
    2. the actor's assigned store
    3. the tenant's main store, for tenant-wide actors
"""

from dataclasses import dataclass

import structlog

from storeledger.errors import (
    DecodeError,
    InvalidCredential,
    NoStoreAssigned,
    StoreTenantMismatch,
    Unauthenticated,
)

logger = structlog.get_logger(__name__)

# Operations that may run without a resolved store. Plain paths match the
# path and everything below it; method-qualified entries match exactly.
EXEMPT_OPERATIONS = (
    "/auth",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "POST /tenants",
)


def is_exempt(operation) -> bool:
    """Whether ``operation`` (``"/path"`` or ``"METHOD /path"``) runs without a store."""
    if not operation:
        return False

    method, _, path = operation.rpartition(" ")
    path = path.rstrip("/") or "/"
    for rule in EXEMPT_OPERATIONS:
        rule_method, _, rule_path = rule.rpartition(" ")
        if rule_method:
            if rule_method == method.upper() and path == rule_path:
                return True
        elif path == rule_path or path.startswith(rule_path + "/"):
            return True
    return False


@dataclass(frozen=True)
class RequestContext:
    tenant_id: str
    store_id: str | None
    actor_id: str
    role: str
    tenant_wide: bool = False

    def may_act_for(self, store_id) -> bool:
        """Tenant-wide actors act for every store; everyone else only for their own."""
        if self.tenant_wide:
            return True
        return self.store_id is not None and str(store_id) == str(self.store_id)


class ContextResolver:
    def __init__(self, reader, codec, directory):
        self.reader = reader
        self.codec = codec
        self.directory = directory

    def resolve(self, credential, operation=None) -> RequestContext | None:
        exempt = is_exempt(operation)
        if not credential:
            if exempt:
                return None
            raise Unauthenticated("Authentication required", reason="missing_credential")

        try:
            claims = self.reader.read(credential)
        except InvalidCredential as exc:
            logger.info("Credential rejected", reason=exc.reason, operation=operation)
            raise Unauthenticated("Invalid credential", reason=exc.reason) from exc

        try:
            tenant_id = self.codec.decode(claims.tenant_token)
        except DecodeError as exc:
            logger.info("Tenant claim rejected", actor_id=claims.actor_id, operation=operation)
            raise Unauthenticated("Invalid tenant claim", reason="bad_tenant_claim") from exc

        tenant = self.directory.find_tenant(tenant_id)
        if tenant is None or not tenant.is_active:
            logger.info("Unknown or inactive tenant", actor_id=claims.actor_id, tenant_id=tenant_id)
            raise Unauthenticated("Unknown tenant", reason="unknown_tenant")

        member = self.directory.membership(claims.actor_id, tenant_id)
        if member is None:
            logger.info("Actor is not a tenant member", actor_id=claims.actor_id, tenant_id=tenant_id)
            raise Unauthenticated("Actor is not a member of this tenant", reason="not_a_member")

        try:
            store_id = self._resolve_store(claims, member, tenant_id)
        except NoStoreAssigned:
            if not exempt:
                raise
            store_id = None

        return RequestContext(
            tenant_id=str(tenant_id),
            store_id=store_id,
            actor_id=claims.actor_id,
            role=member.role,
            tenant_wide=member.is_tenant_wide,
        )

    def _resolve_store(self, claims, member, tenant_id) -> str:
        if claims.store_token:
            try:
                store_id = self.codec.decode(claims.store_token)
            except DecodeError as exc:
                logger.info("Store claim rejected", actor_id=claims.actor_id, tenant_id=tenant_id)
                raise Unauthenticated("Invalid store claim", reason="bad_store_claim") from exc

            store = self.directory.find_store(store_id)
            if store is None or not self.directory.store_belongs_to(store, tenant_id):
                logger.warning(
                    "Store claim does not belong to tenant",
                    actor_id=claims.actor_id,
                    tenant_id=tenant_id,
                    store_id=store_id,
                )
                raise StoreTenantMismatch("Store does not belong to tenant", reason="store_tenant_mismatch")

            if not store.is_active:
                raise NoStoreAssigned("Selected store is no longer active; select another", reason="inactive_store")
            if not member.is_tenant_wide and str(member.assigned_store_id) != str(store.id):
                raise NoStoreAssigned("Selected store is no longer assigned; select another", reason="stale_claim")
            return str(store.id)

        if member.is_tenant_wide:
            main_store = self.directory.main_store_for(tenant_id)
            if main_store is None:
                raise NoStoreAssigned("Tenant has no main store", reason="no_main_store")
            return str(main_store.id)

        store = self.directory.resolve_default_store(claims.actor_id, tenant_id)
        if store is None:
            raise NoStoreAssigned("No store assigned; select a store", reason="no_assignment")
        return str(store.id)
