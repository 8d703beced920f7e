from __future__ import annotations

import asyncio

import jwt
from jwt import PyJWKClient

from portfolio_service.application.dto.principal import Principal
from portfolio_service.infrastructure.auth.hs256_verifier import principal_from_claims


class JWKSVerifier:
    """Verify identity-provider JWTs against the realm's JWKS endpoint."""

    def __init__(
        self,
        jwks_url: str,
        audience: str | None = None,
        issuer: str | None = None,
    ) -> None:
        self._jwk_client = PyJWKClient(jwks_url)
        self._audience = audience
        self._issuer = issuer

    async def verify(self, token: str) -> Principal:
        # PyJWKClient fetches keys with blocking urllib
        signing_key = await asyncio.to_thread(
            self._jwk_client.get_signing_key_from_jwt, token,
        )
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            audience=self._audience,
            issuer=self._issuer,
            options={"verify_aud": self._audience is not None},
        )
        return principal_from_claims(payload)
