from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Iterable, Optional

import httpx
from fastapi import Depends, HTTPException, Request, status
from jose.exceptions import JWTError
from pydantic import BaseModel

from product_catalog.core.config import get_settings
from product_catalog.core.logging import get_logger
from product_catalog.core.security import OIDCJWKSVerifier

logger = get_logger(__name__)


class Identity(BaseModel):
    """Who is calling, as far as the catalog cares. The provider itself stays opaque."""

    subject: str
    roles: frozenset[str] = frozenset()
    anonymous: bool = False


ANONYMOUS = Identity(subject="anonymous", anonymous=True)


@lru_cache(maxsize=1)
def get_verifier() -> OIDCJWKSVerifier:
    settings = get_settings()
    return OIDCJWKSVerifier(
        settings.oidc_discovery_url,
        jwks_cache_seconds=settings.oidc_jwks_cache_seconds,
        http_timeout_seconds=settings.oidc_http_timeout_seconds,
    )


def parse_bearer(auth_header: Optional[str]) -> Optional[str]:
    """Extract the token from an Authorization header; the scheme is case-insensitive."""
    if not auth_header:
        return None

    parts = auth_header.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    token = parts[1].strip()
    return token or None


def client_roles(claims: Dict[str, Any], client_id: str) -> frozenset[str]:
    """Roles from Keycloak's resource_access.<client_id>.roles claim."""
    resource_access = claims.get("resource_access") or {}
    client_access = resource_access.get(client_id) if isinstance(resource_access, dict) else None
    roles = client_access.get("roles") if isinstance(client_access, dict) else None
    if not isinstance(roles, list):
        return frozenset()
    return frozenset(str(r) for r in roles)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(request: Request) -> Identity:
    settings = get_settings()
    if not settings.auth_enabled:
        return ANONYMOUS

    token = parse_bearer(request.headers.get("Authorization"))
    if not token:
        raise _unauthorized("Missing bearer token")

    try:
        claims = await get_verifier().decode_and_verify(
            token,
            audience=settings.oidc_audience,
            issuer=settings.oidc_issuer_expected,
            algorithms=settings.oidc_algorithms_list,
            leeway_seconds=settings.oidc_leeway_seconds,
        )
    except JWTError as e:
        # JWTClaimsError is a JWTError subclass.
        logger.info("Token validation failed: %s", e)
        raise _unauthorized("Invalid token") from e
    except (httpx.HTTPError, RuntimeError) as e:
        logger.exception("Identity provider unavailable: %s", e)
        raise _unauthorized("Invalid token") from e

    return Identity(
        subject=str(claims.get("sub", "")),
        roles=client_roles(claims, settings.oidc_audience),
    )


def require_roles(required: Iterable[str]):
    """
    Dependency factory: the caller must hold every role in ``required``.

    Skipped entirely for the anonymous identity (AUTH_ENABLED=false).
    """
    required_set = frozenset(str(r) for r in required)

    async def _dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.anonymous:
            return identity
        if not required_set.issubset(identity.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return identity

    return _dependency


def require_read():
    return require_roles([get_settings().read_role])


def require_write():
    return require_roles([get_settings().write_role])
