"""Store management — commands and handler."""

from protean import handle
from protean.fields import Identifier, String

from storeledger.domain import storeledger
from storeledger.store.directory import StoreDirectory
from storeledger.store.store import Store


@storeledger.command(part_of="Store")
class OpenSubStore:
    """Open an additional store under a multi-store tenant."""

    tenant_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    email = String(max_length=254)
    phone = String(max_length=30)


@storeledger.command(part_of="Store")
class RenameStore:
    store_id = Identifier(required=True)
    name = String(required=True, max_length=255)


@storeledger.command(part_of="Store")
class DeactivateStore:
    store_id = Identifier(required=True)


@storeledger.command(part_of="Store")
class ReactivateStore:
    store_id = Identifier(required=True)


@storeledger.command_handler(part_of=Store)
class StoreManagementHandler:
    @handle(OpenSubStore)
    def open_sub_store(self, command):
        store = StoreDirectory().create_sub_store(
            tenant_id=command.tenant_id,
            name=command.name,
            email=command.email,
            phone=command.phone,
        )
        return str(store.id)

    @handle(RenameStore)
    def rename_store(self, command):
        StoreDirectory().rename_store(command.store_id, command.name)

    @handle(DeactivateStore)
    def deactivate_store(self, command):
        StoreDirectory().deactivate(command.store_id)

    @handle(ReactivateStore)
    def reactivate_store(self, command):
        StoreDirectory().reactivate(command.store_id)
