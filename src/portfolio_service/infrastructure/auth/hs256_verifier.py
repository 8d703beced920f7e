from __future__ import annotations

import jwt

from portfolio_service.application.dto.principal import Principal


def principal_from_claims(payload: dict) -> Principal:
    """The ``sub`` claim is the identity provider's id for the caller."""
    return Principal(identity_id=str(payload["sub"]))


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: str | None = None,
        issuer: str | None = None,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience
        self._issuer = issuer

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            audience=self._audience,
            issuer=self._issuer,
            options={"verify_aud": self._audience is not None},
        )
        return principal_from_claims(payload)
