"""Keycloak client: admin API for identities, token endpoint for user log-in."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from portfolio_service.application.dto.auth import AuthorizationToken
from portfolio_service.application.exceptions import (
    AuthenticationError,
    ConflictError,
    IdentityProviderError,
)
from portfolio_service.domain.entities.user import User

logger = logging.getLogger(__name__)

PASSWORD_CREDENTIAL_TYPE = "password"
USERS_SEGMENT = "users/"

# Keycloak answers a bad password with 401 and a bad refresh token with 400
REJECTED_GRANT_STATUSES = frozenset({httpx.codes.BAD_REQUEST, httpx.codes.UNAUTHORIZED})


def _user_representation(user: User, password: str) -> dict[str, Any]:
    return {
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
        "username": user.email,
        "enabled": True,
        "emailVerified": True,
        "credentials": [
            {
                "value": password,
                "temporary": False,
                "type": PASSWORD_CREDENTIAL_TYPE,
            }
        ],
    }


def identity_id_from_location(location: str | None) -> str:
    """``.../admin/realms/<realm>/users/<id>`` -> ``<id>``."""
    if not location:
        raise IdentityProviderError("Location header can't be empty")
    path = httpx.URL(location).path
    index = path.lower().rfind(USERS_SEGMENT)
    if index < 0:
        raise IdentityProviderError(f"Unexpected Location header: {location}")
    return path[index + len(USERS_SEGMENT):]


def _log_rejection(exc: httpx.HTTPStatusError) -> None:
    logger.warning(
        "Keycloak rejected %s %s with %d",
        exc.request.method,
        exc.request.url,
        exc.response.status_code,
    )


class KeycloakIdentityProvider:
    """Implements application.ports.identity.IdentityProvider.

    ``client`` must have ``base_url`` set to the realm's admin URL. Admin
    calls first obtain a token through the client-credentials grant of the
    admin client; ``login`` and ``renew_token`` use the auth client.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_url: str,
        client_id: str,
        client_secret: str,
        auth_client_id: str = "",
        auth_client_secret: str = "",
    ) -> None:
        self._client = client
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._auth_client_id = auth_client_id
        self._auth_client_secret = auth_client_secret

    async def _admin_token(self) -> str:
        response = await self._client.post(
            self._token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "scope": "openid email",
            },
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def register(self, user: User, password: str) -> str:
        try:
            token = await self._admin_token()
            response = await self._client.post(
                "users",
                json=_user_representation(user, password),
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == httpx.codes.CONFLICT:
                raise ConflictError("The user with provided email already exists") from exc
            _log_rejection(exc)
            raise IdentityProviderError(
                "Identity provider error occurred while creating user"
            ) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError("Identity provider is unreachable") from exc

        return identity_id_from_location(response.headers.get("Location"))

    async def delete(self, identity_id: str) -> None:
        try:
            token = await self._admin_token()
            response = await self._client.delete(
                f"users/{identity_id}",
                headers={"Authorization": f"Bearer {token}"},
            )
            if response.status_code == httpx.codes.NOT_FOUND:
                logger.info("Identity %s was already deleted", identity_id)
                return
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            _log_rejection(exc)
            raise IdentityProviderError(
                "Identity provider error occurred while deleting user"
            ) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError("Identity provider is unreachable") from exc

    async def _user_token(self, grant: dict[str, str], rejected: str) -> AuthorizationToken:
        try:
            response = await self._client.post(
                self._token_url,
                data={
                    "client_id": self._auth_client_id,
                    "client_secret": self._auth_client_secret,
                    **grant,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in REJECTED_GRANT_STATUSES:
                raise AuthenticationError(rejected) from exc
            _log_rejection(exc)
            raise IdentityProviderError(
                "Identity provider error occurred while issuing token"
            ) from exc
        except httpx.HTTPError as exc:
            raise IdentityProviderError("Identity provider is unreachable") from exc

        payload = response.json()
        return AuthorizationToken(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
        )

    async def login(self, email: str, password: str) -> AuthorizationToken:
        return await self._user_token(
            {
                "grant_type": "password",
                "scope": "openid email",
                "username": email,
                "password": password,
            },
            "The provided credentials were invalid",
        )

    async def renew_token(self, refresh_token: str) -> AuthorizationToken:
        return await self._user_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            "The user provided invalid refresh token",
        )
