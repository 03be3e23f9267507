from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx
from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError

from product_catalog.core.logging import get_logger

logger = get_logger(__name__)


class OIDCJWKSVerifier:
    """
    Verifies bearer tokens minted by the external identity provider.

    Discovery and the JWKS (JSON Web Key Set) are fetched with httpx and the key
    set is cached for ``jwks_cache_seconds``. python-jose has no leeway option, so
    exp/nbf are checked here with the configured tolerance.
    """

    def __init__(
        self,
        discovery_url: str,
        *,
        jwks_cache_seconds: int = 300,
        http_timeout_seconds: float = 10.0,
    ) -> None:
        self._discovery_url = discovery_url
        self._jwks_uri: Optional[str] = None
        self._jwks: Optional[Dict[str, Any]] = None
        self._jwks_fetched_at: float = 0.0
        self._jwks_cache_seconds = jwks_cache_seconds
        self._timeout = http_timeout_seconds

    async def _fetch_json(self, url: str) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            r = await client.get(url)
            r.raise_for_status()
            return r.json()

    async def _get_jwks(self) -> Dict[str, Any]:
        now = time.time()
        if self._jwks and (now - self._jwks_fetched_at) < self._jwks_cache_seconds:
            return self._jwks

        if not self._jwks_uri:
            discovery = await self._fetch_json(self._discovery_url)
            jwks_uri = discovery.get("jwks_uri") if isinstance(discovery, dict) else None
            if not jwks_uri or not isinstance(jwks_uri, str):
                raise RuntimeError("OIDC discovery missing jwks_uri")
            self._jwks_uri = jwks_uri

        jwks = await self._fetch_json(self._jwks_uri)
        if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
            raise RuntimeError("Invalid JWKS response")

        self._jwks = jwks
        self._jwks_fetched_at = now
        logger.debug("JWKS refreshed from %s (%d keys)", self._jwks_uri, len(jwks["keys"]))
        return jwks

    @staticmethod
    def pick_key(jwks: Dict[str, Any], kid: str) -> Dict[str, Any]:
        for k in jwks.get("keys", []):
            if isinstance(k, dict) and k.get("kid") == kid:
                return k
        raise JWTError(f"Signing key not found for kid={kid!r}")

    @staticmethod
    def check_time_claims(claims: Dict[str, Any], leeway_seconds: int, now: Optional[int] = None) -> None:
        now = int(time.time()) if now is None else now

        exp = claims.get("exp")
        if exp is not None:
            try:
                exp_i = int(exp)
            except (TypeError, ValueError) as e:
                raise JWTClaimsError("Invalid exp claim") from e
            if now > exp_i + leeway_seconds:
                raise JWTClaimsError("Token has expired")

        nbf = claims.get("nbf")
        if nbf is not None:
            try:
                nbf_i = int(nbf)
            except (TypeError, ValueError) as e:
                raise JWTClaimsError("Invalid nbf claim") from e
            if now < nbf_i - leeway_seconds:
                raise JWTClaimsError("Token not yet valid (nbf)")

    async def decode_and_verify(
        self,
        token: str,
        *,
        audience: str,
        issuer: str,
        algorithms: list[str],
        leeway_seconds: int = 10,
    ) -> Dict[str, Any]:
        """
        Return the claims of a valid token.

        Raises jose.exceptions.JWTError/JWTClaimsError when verification fails.
        """
        token = (token or "").strip()
        if not token:
            raise JWTError("Empty token")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise JWTError("Invalid JWT header") from e

        kid = header.get("kid")
        if not kid:
            raise JWTError("Missing kid in JWT header")

        key = self.pick_key(await self._get_jwks(), kid)
        claims = jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=audience,
            issuer=issuer.rstrip("/"),
            options={"verify_exp": False, "verify_nbf": False},
        )
        self.check_time_claims(claims, leeway_seconds)
        return claims
