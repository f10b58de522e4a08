"""Exception handlers mapping ledger failures to HTTP responses.

Protean's own handlers are registered first; the handlers below are keyed
on more specific classes, so they win for every ledger error.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from storeledger.errors import (
    ContextError,
    CrossTenantAccess,
    CrossTenantAssignment,
    InvariantError,
    PermissionDenied,
    PolicyError,
    StorageFault,
    StoreTenantMismatch,
)

STATUS_CODES = {
    ContextError: 401,
    StoreTenantMismatch: 403,
    PermissionDenied: 403,
    CrossTenantAccess: 403,
    CrossTenantAssignment: 403,
    ObjectNotFoundError: 404,
    PolicyError: 409,
    InvariantError: 422,
    StorageFault: 503,
}


def _body(exc) -> dict:
    body = {"error": getattr(exc, "code", exc.__class__.__name__)}
    messages = getattr(exc, "messages", None)
    if messages:
        body["messages"] = messages
    else:
        body["message"] = getattr(exc, "message", None) or str(exc)
    return body


def _handler(status_code):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        response = JSONResponse(status_code=status_code, content=_body(exc))
        if status_code == 401:
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    return handle


def register_exception_handlers(app: FastAPI) -> None:
    register_protean_handlers(app)
    for exc_class, status_code in STATUS_CODES.items():
        app.add_exception_handler(exc_class, _handler(status_code))
