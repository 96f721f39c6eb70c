# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_registry

"""
ClientRegistry component holding client definitions and the per-request checks on them.
"""

import secrets
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from coreason_registry.exceptions import (
    AuthenticationError,
    DuplicateNameError,
    InvalidScopeError,
    RegistrySealedError,
    UnauthorizedRedirectError,
    UnknownClientError,
    UnsupportedGrantTypeError,
)
from coreason_registry.hashing import hash_secret, verify_secret
from coreason_registry.models import (
    OFFLINE_ACCESS_SCOPE,
    OPENID_SCOPE,
    ApiResource,
    ApiScope,
    Client,
    GrantType,
    HashedSecret,
    IdentityResource,
    RedirectKind,
    ResolvedResources,
)
from coreason_registry.scopes import ScopeCatalog
from coreason_registry.utils.logger import logger

tracer = trace.get_tracer(__name__)

# Compared against when there is no stored secret to compare; never matches a real secret
_DUMMY_SECRETS = (hash_secret(secrets.token_urlsafe(32)),)

_AUTHENTICATION_FAILED = "Client authentication failed."


class ClientRegistry:
    """
    Holds Client definitions keyed by client id.

    Attributes:
        scopes (ScopeCatalog): Used to resolve requested scopes into resources.
    """

    def __init__(self, scopes: ScopeCatalog) -> None:
        self.scopes = scopes
        self._clients: dict[str, Client] = {}
        self._sealed = False

    def register(self, client: Client) -> None:
        """
        Adds a client.

        Raises:
            DuplicateNameError: If the client id is already registered.
            RegistrySealedError: If the registry has already been sealed.
        """
        if self._sealed:
            raise RegistrySealedError("Client registry is sealed; build a new registry instead.")
        if client.client_id in self._clients:
            raise DuplicateNameError("client", client.client_id)
        self._clients[client.client_id] = client
        logger.debug(f"Registered client '{client.client_id}' with {len(client.client_secrets)} secret(s)")

    def get(self, client_id: str) -> Client:
        """
        Returns the client registered under `client_id`, enabled or not.

        Raises:
            UnknownClientError: If the client id is not registered.
        """
        try:
            return self._clients[client_id]
        except KeyError:
            raise UnknownClientError(client_id) from None

    def _active(self, client_id: str) -> Client:
        client = self._clients.get(client_id)
        if client is None or not client.enabled:
            raise UnknownClientError(client_id)
        return client

    def authenticate(self, client_id: str, presented_secret: str | None) -> Client:
        """
        Authenticates a client by its secret.

        Every stored hash is compared in constant time. The error raised on failure is
        the same whether the client is unknown, disabled, or presented a wrong secret.

        Emits an OpenTelemetry span `authenticate_client`.

        Args:
            client_id: The client id presented by the caller.
            presented_secret: The plaintext secret presented by the caller, or None for public clients.

        Returns:
            Client: The authenticated client.

        Raises:
            AuthenticationError: If authentication fails for any reason.
        """
        with tracer.start_as_current_span("authenticate_client", set_status_on_exception=False) as span:
            span.set_attribute("client.id", client_id)
            client = self._clients.get(client_id)

            # Always hash and compare at least once, whatever the outcome
            stored: tuple[HashedSecret, ...] = _DUMMY_SECRETS
            if client is not None and client.enabled and client.client_secrets:
                stored = client.client_secrets
            matched = verify_secret(presented_secret or "", stored)

            if client is None or not client.enabled:
                authenticated = False
            elif not presented_secret:
                # Only public clients may omit the secret
                authenticated = not client.require_client_secret
            else:
                authenticated = matched and stored is client.client_secrets

            if client is None or not authenticated:
                logger.warning(f"Client authentication failed for client '{client_id}'")
                span.set_status(Status(StatusCode.ERROR, _AUTHENTICATION_FAILED))
                raise AuthenticationError(_AUTHENTICATION_FAILED)

            logger.info(f"Client '{client_id}' authenticated")
            span.set_status(Status(StatusCode.OK))
            return client

    def validate_redirect(
        self, client_id: str, uri: str, kind: RedirectKind | str = RedirectKind.REDIRECT
    ) -> str:
        """
        Checks a redirect URI against the client's registered URIs.

        Matching is exact string equality: no prefix, host-only or normalized matching.
        A URI differing by a trailing slash or a query string is rejected.

        Args:
            client_id: The client id.
            uri: The redirect URI presented in the request.
            kind: Which registered set to match against.

        Returns:
            str: The matched URI.

        Raises:
            UnknownClientError: If the client is unknown or disabled.
            UnauthorizedRedirectError: If the URI is not registered verbatim, or `kind` is unknown.
        """
        client = self._active(client_id)
        try:
            kind = RedirectKind(kind)
        except ValueError:
            raise UnauthorizedRedirectError(f"Unknown redirect URI kind '{kind}'.") from None
        if uri not in client.redirect_uris_for(kind):
            logger.warning(f"Rejected unregistered {kind} URI for client '{client_id}'")
            raise UnauthorizedRedirectError(f"The {kind} URI is not registered for client '{client_id}'.")
        return uri

    def grant_type_allowed(self, client_id: str, grant_type: GrantType | str) -> None:
        """
        Checks that the client may use the grant type.

        Raises:
            UnknownClientError: If the client is unknown or disabled.
            UnsupportedGrantTypeError: If the grant type is unknown or not allowed for the client.
        """
        client = self._active(client_id)
        try:
            requested = GrantType(grant_type)
        except ValueError:
            raise UnsupportedGrantTypeError(f"Unknown grant type '{grant_type}'.") from None

        if requested not in client.allowed_grant_types:
            logger.info(f"Client '{client_id}' is not allowed to use grant type '{requested}'")
            raise UnsupportedGrantTypeError(f"Grant type '{requested}' is not allowed for client '{client_id}'.")

    def validate_requested_scopes(self, client_id: str, requested: str | Iterable[str]) -> ResolvedResources:
        """
        Resolves a scope request into the resources it grants.

        Args:
            client_id: The requesting client.
            requested: Space-delimited scope string, or an iterable of scope names.

        Returns:
            ResolvedResources: Identity resources, API scopes and the API resources exposing them.

        Raises:
            UnknownClientError: If the client is unknown or disabled.
            InvalidScopeError: If nothing was requested, or any requested name is unknown,
                disabled, or not allowed for the client, or identity scopes lack `openid`.
        """
        client = self._active(client_id)
        raw = requested.split() if isinstance(requested, str) else [str(name) for name in requested]
        names = list(dict.fromkeys(name for name in raw if name))
        if not names:
            raise InvalidScopeError("No scope requested.")

        resources = self.scopes.resources
        identity: list[IdentityResource] = []
        api_scopes: list[ApiScope] = []
        offline_access = False
        invalid: list[str] = []

        for name in names:
            if name == OFFLINE_ACCESS_SCOPE:
                if client.allow_offline_access:
                    offline_access = True
                else:
                    invalid.append(name)
                continue

            if name not in client.allowed_scopes:
                invalid.append(name)
            elif resources.has_identity(name):
                identity_resource = resources.lookup_identity(name)
                if identity_resource.enabled:
                    identity.append(identity_resource)
                else:
                    invalid.append(name)
            elif self.scopes.has_scope(name):
                api_scope = self.scopes.resolve(name)
                if api_scope.enabled:
                    api_scopes.append(api_scope)
                else:
                    invalid.append(name)
            else:
                invalid.append(name)

        if invalid:
            logger.info(f"Client '{client_id}' requested invalid scope(s): {sorted(invalid)}")
            raise InvalidScopeError(f"Invalid scope(s) requested: {', '.join(sorted(invalid))}", invalid)

        if identity and not any(r.name == OPENID_SCOPE for r in identity):
            raise InvalidScopeError(
                f"Identity scopes require the '{OPENID_SCOPE}' scope.", [r.name for r in identity]
            )

        api_resources: dict[str, ApiResource] = {}
        for api_scope in api_scopes:
            for api_resource in resources.api_resources_for_scope(api_scope.name):
                api_resources.setdefault(api_resource.name, api_resource)

        return ResolvedResources(
            identity_resources=tuple(identity),
            api_scopes=tuple(api_scopes),
            api_resources=tuple(api_resources.values()),
            offline_access=offline_access,
        )

    @property
    def clients(self) -> Mapping[str, Client]:
        return MappingProxyType(self._clients)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed
