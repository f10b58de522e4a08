"""Signed credentials — reading and issuing HS256 JWTs.

Claims:
    sub     actor id (plain)
    tenant  encoded tenant id (IdentityCodec token)
    store   encoded store id, absent until a store is selected
    iat/exp issue and expiry times
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
import structlog

from storeledger.errors import InvalidCredential

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class CredentialClaims:
    actor_id: str
    tenant_token: str
    store_token: str | None = None
    issued_at: datetime | None = None
    expires_at: datetime | None = None


class CredentialReader:
    def __init__(self, secret: str):
        self.secret = secret

    def read(self, token) -> CredentialClaims:
        if not isinstance(token, str) or not token:
            raise InvalidCredential(InvalidCredential.MALFORMED, "Credential is empty")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidCredential(InvalidCredential.EXPIRED, "Credential has expired") from exc
        except jwt.InvalidSignatureError as exc:
            raise InvalidCredential(InvalidCredential.BAD_SIGNATURE, "Credential signature mismatch") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidCredential(InvalidCredential.MALFORMED, str(exc)) from exc

        actor_id = payload.get("sub")
        tenant_token = payload.get("tenant")
        store_token = payload.get("store")
        if not isinstance(actor_id, str) or not actor_id:
            raise InvalidCredential(InvalidCredential.MALFORMED, "Credential has no subject")
        if not isinstance(tenant_token, str) or not tenant_token:
            raise InvalidCredential(InvalidCredential.MALFORMED, "Credential has no tenant claim")
        if store_token is not None and (not isinstance(store_token, str) or not store_token):
            raise InvalidCredential(InvalidCredential.MALFORMED, "Store claim must be a non-empty string")

        return CredentialClaims(
            actor_id=actor_id,
            tenant_token=tenant_token,
            store_token=store_token,
            issued_at=_timestamp(payload.get("iat")),
            expires_at=_timestamp(payload.get("exp")),
        )


class CredentialIssuer:
    def __init__(self, secret: str, ttl_minutes: int = 60):
        self.secret = secret
        self.ttl = timedelta(minutes=ttl_minutes)

    def issue(self, actor_id, tenant_token: str, store_token: str | None = None, now: datetime | None = None) -> str:
        now = now or datetime.now(UTC)
        payload = {
            "sub": str(actor_id),
            "tenant": tenant_token,
            "iat": now,
            "exp": now + self.ttl,
        }
        if store_token:
            payload["store"] = store_token
        logger.debug("Credential issued", actor_id=str(actor_id), with_store=bool(store_token))
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)


def _timestamp(value):
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, UTC)
    return None
