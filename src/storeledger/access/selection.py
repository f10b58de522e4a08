"""Store selection — re-issuing credentials with a store claim."""

import structlog

from storeledger.access.codec import IdentityCodec
from storeledger.access.credentials import CredentialIssuer
from storeledger.errors import CrossTenantAccess, InactiveStore, PermissionDenied
from storeledger.store.directory import StoreDirectory
from storeledger.utils.settings import get_settings

logger = structlog.get_logger(__name__)


class StoreSelection:
    def __init__(self, codec=None, issuer=None, directory=None):
        settings = get_settings()
        self.codec = codec or IdentityCodec(settings.codec_key)
        self.issuer = issuer or CredentialIssuer(settings.jwt_secret, settings.jwt_ttl_minutes)
        self.directory = directory or StoreDirectory()

    def issue_for_tenant(self, actor_id, tenant_id) -> str:
        """Credential for a member of ``tenant_id`` with no store claim yet."""
        tenant = self.directory.get_tenant(tenant_id)
        if self.directory.membership(actor_id, tenant.id) is None:
            raise PermissionDenied(f"Actor {actor_id} is not a member of tenant {tenant_id}", subject="Tenant")
        return self.issuer.issue(actor_id, self.codec.encode(str(tenant.id)))

    def select_store(self, context, store_id) -> str:
        """Credential embedding ``store_id`` for an actor allowed to act for it."""
        store = self.directory.get_store(store_id)
        if not self.directory.store_belongs_to(store, context.tenant_id):
            raise CrossTenantAccess({"store_id": ["Store belongs to a different tenant"]})
        if not store.is_active:
            raise InactiveStore({"store_id": ["Cannot select an inactive store"]})

        if not context.tenant_wide:
            member = self.directory.membership(context.actor_id, context.tenant_id)
            if member is None or str(member.assigned_store_id) != str(store.id):
                logger.warning(
                    "Store selection denied",
                    actor_id=context.actor_id,
                    tenant_id=context.tenant_id,
                    store_id=str(store.id),
                )
                raise PermissionDenied(f"Actor may not act for store {store.id}", subject="Store")

        logger.info("Store selected", actor_id=context.actor_id, tenant_id=context.tenant_id, store_id=str(store.id))
        return self.issuer.issue(
            context.actor_id,
            self.codec.encode(context.tenant_id),
            self.codec.encode(str(store.id)),
        )
