"""Typed failures raised by the store ledger.

Four families, each mapped to one outcome by the HTTP adapter:

* context errors (the caller must re-authenticate or re-select a store),
* policy errors (the request is rejected as submitted),
* invariant errors (the ledger refused a quantity change; nothing was written),
* permission and storage faults.

Policy and invariant errors are Protean ``ValidationError`` subclasses, so they
carry the same ``messages`` mapping aggregates use for their own rule checks.
"""

from protean.exceptions import ValidationError


# ---------------------------------------------------------------------------
# Access layer
# ---------------------------------------------------------------------------
class DecodeError(Exception):
    """A codec token could not be turned back into an identifier."""

    code = "DECODE_ERROR"


class InvalidCredential(Exception):
    """A credential failed verification.

    Callers see one failure kind; ``reason`` tells expired, bad-signature and
    malformed credentials apart for logs.
    """

    code = "INVALID_CREDENTIAL"

    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"
    MALFORMED = "malformed"

    def __init__(self, reason: str, detail: str | None = None):
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail


# ---------------------------------------------------------------------------
# Context resolution
# ---------------------------------------------------------------------------
class ContextError(Exception):
    code = "CONTEXT_ERROR"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class Unauthenticated(ContextError):
    code = "UNAUTHENTICATED"


class StoreTenantMismatch(ContextError):
    code = "STORE_TENANT_MISMATCH"


class NoStoreAssigned(ContextError):
    code = "NO_STORE_ASSIGNED"


# ---------------------------------------------------------------------------
# Domain rules
# ---------------------------------------------------------------------------
class DomainRuleError(ValidationError):
    code = "RULE_VIOLATION"


class PolicyError(DomainRuleError):
    code = "POLICY_ERROR"


class PolicyViolation(PolicyError):
    code = "POLICY_VIOLATION"


class DuplicateMainStore(PolicyError):
    code = "DUPLICATE_MAIN_STORE"


class DuplicateStoreName(PolicyError):
    code = "DUPLICATE_STORE_NAME"


class MainStoreProtected(PolicyError):
    code = "MAIN_STORE_PROTECTED"


class CrossTenantAssignment(PolicyError):
    code = "CROSS_TENANT_ASSIGNMENT"


class CrossTenantAccess(PolicyError):
    code = "CROSS_TENANT_ACCESS"


class InactiveStore(PolicyError):
    code = "INACTIVE_STORE"


class InvariantError(DomainRuleError):
    code = "INVARIANT_ERROR"


class InsufficientBatchQuantity(InvariantError):
    code = "INSUFFICIENT_BATCH_QUANTITY"


class InsufficientAllocation(InvariantError):
    code = "INSUFFICIENT_ALLOCATION"


class InvalidQuantity(InvariantError):
    code = "INVALID_QUANTITY"


# ---------------------------------------------------------------------------
# Permission and storage
# ---------------------------------------------------------------------------
class PermissionDenied(Exception):
    code = "PERMISSION_DENIED"

    def __init__(self, message: str, action: str | None = None, subject: str | None = None):
        super().__init__(message)
        self.message = message
        self.action = action
        self.subject = subject


class StorageFault(Exception):
    """The durable store failed in a way the ledger cannot classify. Safe to retry."""

    code = "STORAGE_FAULT"


class LedgerBusy(StorageFault):
    """A batch stayed locked past the configured timeout."""

    code = "LEDGER_BUSY"
