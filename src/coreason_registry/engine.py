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
Adapters exposing the registry to an Authlib authorization server.

The engine owns the HTTP endpoints, token signing and consent. It looks clients
up through `make_query_client` and turns registry errors into OAuth2 error
responses with `to_oauth2_error`, which never carries internal detail.
"""

from collections.abc import Callable

from authlib.oauth2.rfc6749 import ClientMixin
from authlib.oauth2.rfc6749.errors import (
    InvalidClientError,
    InvalidRequestError,
    OAuth2Error,
    UnauthorizedClientError,
)
from authlib.oauth2.rfc6749.errors import InvalidScopeError as OAuth2InvalidScopeError
from authlib.oauth2.rfc6749.util import list_to_scope, scope_to_list

from coreason_registry.exceptions import (
    AuthenticationError,
    CoreasonRegistryError,
    InvalidScopeError,
    NotFoundError,
    UnauthorizedRedirectError,
    UnknownClientError,
    UnsupportedGrantTypeError,
)
from coreason_registry.models import Client, GrantType, RedirectKind
from coreason_registry.registry import RegistryHolder, ResourceRegistry
from coreason_registry.utils.logger import logger

DEVICE_CODE_GRANT_URN = "urn:ietf:params:oauth:grant-type:device_code"

# Token endpoint grant_type values mapped onto the registry's grant types
_TOKEN_GRANT_TYPES: dict[str, GrantType] = {
    "authorization_code": GrantType.AUTHORIZATION_CODE,
    "client_credentials": GrantType.CLIENT_CREDENTIALS,
    "refresh_token": GrantType.REFRESH_TOKEN,
    DEVICE_CODE_GRANT_URN: GrantType.DEVICE_CODE,
}

# Authorization endpoint response_type values mapped onto the flow they imply
_RESPONSE_TYPE_GRANTS: dict[frozenset[str], GrantType] = {
    frozenset({"code"}): GrantType.AUTHORIZATION_CODE,
    frozenset({"token"}): GrantType.IMPLICIT,
    frozenset({"id_token"}): GrantType.IMPLICIT,
    frozenset({"id_token", "token"}): GrantType.IMPLICIT,
    frozenset({"code", "id_token"}): GrantType.HYBRID,
    frozenset({"code", "token"}): GrantType.HYBRID,
    frozenset({"code", "id_token", "token"}): GrantType.HYBRID,
}

_SECRET_AUTH_METHODS = frozenset({"client_secret_basic", "client_secret_post"})


class RegisteredClient(ClientMixin):
    """
    Authlib ClientMixin backed by a registry Client.

    Every check delegates to the registry so that the rules (exact redirect
    matching, constant-time secret comparison, allowed grant types) live in one place.

    Attributes:
        registry (ResourceRegistry): The registry the client was looked up in.
        client (Client): The registry client.
    """

    def __init__(self, registry: ResourceRegistry, client: Client) -> None:
        self.registry = registry
        self.client = client

    def get_client_id(self) -> str:
        return self.client.client_id

    def get_default_redirect_uri(self) -> str | None:
        if self.client.redirect_uris:
            return self.client.redirect_uris[0]
        return None

    def get_allowed_scope(self, scope: str) -> str:
        """Filters a requested scope string down to the client's allowed scopes."""
        if not scope:
            return ""
        allowed = [name for name in scope_to_list(scope) if name in self.client.allowed_scopes]
        return list_to_scope(allowed)

    def check_redirect_uri(self, redirect_uri: str) -> bool:
        try:
            self.registry.validate_redirect(self.client.client_id, redirect_uri, RedirectKind.REDIRECT)
        except (UnauthorizedRedirectError, UnknownClientError):
            return False
        return True

    def check_post_logout_redirect_uri(self, redirect_uri: str) -> bool:
        try:
            self.registry.validate_redirect(self.client.client_id, redirect_uri, RedirectKind.POST_LOGOUT_REDIRECT)
        except (UnauthorizedRedirectError, UnknownClientError):
            return False
        return True

    def check_client_secret(self, client_secret: str) -> bool:
        try:
            self.registry.authenticate(self.client.client_id, client_secret)
        except AuthenticationError:
            return False
        return True

    def check_endpoint_auth_method(self, method: str, endpoint: str) -> bool:
        if endpoint != "token":
            return True
        if self.client.require_client_secret:
            return method in _SECRET_AUTH_METHODS
        return method == "none"

    def check_response_type(self, response_type: str) -> bool:
        grant_type = _RESPONSE_TYPE_GRANTS.get(frozenset(response_type.split()))
        if grant_type is None:
            return False
        return grant_type in self.client.allowed_grant_types

    def check_grant_type(self, grant_type: str) -> bool:
        mapped = _TOKEN_GRANT_TYPES.get(grant_type)
        if mapped is None:
            return False
        try:
            self.registry.grant_type_allowed(self.client.client_id, mapped)
        except (UnsupportedGrantTypeError, UnknownClientError):
            return False
        return True


def make_query_client(holder: RegistryHolder) -> Callable[[str], RegisteredClient | None]:
    """
    Returns a `query_client` callable for `authlib` AuthorizationServer.

    Each call reads the holder's current registry, so reloads take effect for the
    next request without restarting the engine. Unknown and disabled clients yield None.
    """

    def query_client(client_id: str) -> RegisteredClient | None:
        registry = holder.current
        try:
            client = registry.get_client(client_id)
        except UnknownClientError:
            return None
        if not client.enabled:
            return None
        return RegisteredClient(registry, client)

    return query_client


def to_oauth2_error(error: CoreasonRegistryError) -> OAuth2Error:
    """
    Maps a request-time registry error to the OAuth2 error the engine should return.

    Descriptions are generic so that the response never reveals which check failed
    internally (for example which stored secret was compared).
    """
    oauth_error: OAuth2Error
    if isinstance(error, (AuthenticationError, UnknownClientError)):
        oauth_error = InvalidClientError(description="Client authentication failed.")
    elif isinstance(error, UnauthorizedRedirectError):
        oauth_error = InvalidRequestError(description="Invalid redirect URI.")
    elif isinstance(error, UnsupportedGrantTypeError):
        oauth_error = UnauthorizedClientError(description="The client is not authorized to use this grant type.")
    elif isinstance(error, (InvalidScopeError, NotFoundError)):
        oauth_error = OAuth2InvalidScopeError(description="The requested scope is not allowed.")
    else:
        logger.error(f"Unexpected registry error surfaced to the protocol layer: {type(error).__name__}")
        oauth_error = OAuth2Error(
            error="server_error", description="The request could not be processed.", status_code=500
        )
    return oauth_error
