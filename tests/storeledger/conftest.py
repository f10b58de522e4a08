import os

import pytest


@pytest.fixture(scope="session")
def _storeledger_domain(request):
    """Initialize the storeledger domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from storeledger.domain import storeledger

    storeledger.init()
    return storeledger


@pytest.fixture(autouse=True)
def run_around_tests(_storeledger_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storeledger_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture()
def onboard():
    """Factory: onboard a tenant and return its id."""
    from protean import current_domain
    from storeledger.tenant.onboarding import OnboardTenant

    def _onboard(name="Acme Retail", store_policy="MULTI_STORE", owner_actor_id="owner-1", **overrides):
        command = OnboardTenant(
            name=name,
            store_policy=store_policy,
            owner_actor_id=owner_actor_id,
            **overrides,
        )
        return current_domain.process(command, asynchronous=False)

    return _onboard


@pytest.fixture()
def open_store():
    """Factory: open a sub-store under a tenant and return its id."""
    from protean import current_domain
    from storeledger.store.management import OpenSubStore

    def _open(tenant_id, name="Downtown"):
        return current_domain.process(OpenSubStore(tenant_id=tenant_id, name=name), asynchronous=False)

    return _open


@pytest.fixture()
def add_member():
    """Factory: add an actor to a tenant and return the member id."""
    from protean import current_domain
    from storeledger.staff.assignment import AddMember

    def _add(tenant_id, actor_id, role="STAFF", store_id=None):
        command = AddMember(tenant_id=tenant_id, actor_id=actor_id, role=role, store_id=store_id)
        return current_domain.process(command, asynchronous=False)

    return _add


@pytest.fixture()
def main_store_id():
    from storeledger.store.directory import StoreDirectory

    def _main(tenant_id):
        return str(StoreDirectory().main_store_for(tenant_id).id)

    return _main


@pytest.fixture()
def context_for():
    """Factory: build a RequestContext the way the resolver would."""
    from storeledger.access.context import RequestContext
    from storeledger.staff.member import is_tenant_wide

    def _context(tenant_id, store_id=None, actor_id="owner-1", role="OWNER"):
        return RequestContext(
            tenant_id=str(tenant_id),
            store_id=str(store_id) if store_id else None,
            actor_id=actor_id,
            role=role,
            tenant_wide=is_tenant_wide(role),
        )

    return _context
