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
RegistryValidator component for cross-checking the populated catalogs at startup.
"""

import ipaddress
from urllib.parse import urlparse

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from coreason_registry.clients import ClientRegistry
from coreason_registry.exceptions import InvalidConfigurationError
from coreason_registry.models import (
    OFFLINE_ACCESS_SCOPE,
    OPENID_SCOPE,
    REDIRECT_GRANT_TYPES,
    Client,
    GrantType,
)
from coreason_registry.resources import ResourceCatalog
from coreason_registry.scopes import ScopeCatalog
from coreason_registry.utils.logger import logger

tracer = trace.get_tracer(__name__)

# Grant types that must not be combined on a single client
_EXCLUSIVE_GRANT_TYPES = (
    (GrantType.IMPLICIT, GrantType.AUTHORIZATION_CODE),
    (GrantType.IMPLICIT, GrantType.HYBRID),
    (GrantType.AUTHORIZATION_CODE, GrantType.HYBRID),
)

_LOOPBACK_HOSTS = frozenset({"localhost"})


def _is_loopback(host: str) -> bool:
    if host in _LOOPBACK_HOSTS:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class RegistryValidator:
    """
    Validates cross-references between the resource catalog, the scope catalog and
    the client registry.

    Every check runs to completion and all violations are reported together, so a
    configuration author gets the full list of fixes in one pass.

    Attributes:
        resources (ResourceCatalog): Identity and API resources.
        scopes (ScopeCatalog): API scopes.
        clients (ClientRegistry): Client definitions.
        strict_uri_scheme (bool): Require https redirect URIs except for loopback hosts.
    """

    def __init__(
        self,
        resources: ResourceCatalog,
        scopes: ScopeCatalog,
        clients: ClientRegistry,
        strict_uri_scheme: bool = True,
    ) -> None:
        self.resources = resources
        self.scopes = scopes
        self.clients = clients
        self.strict_uri_scheme = strict_uri_scheme

    def collect_violations(self) -> list[str]:
        """
        Runs every check and returns the violations found, in check order.
        """
        violations: list[str] = []
        violations.extend(self._check_identity_resources())
        violations.extend(self._check_api_resource_scopes())
        for client in self.clients.clients.values():
            violations.extend(self._check_client_scopes(client))
            violations.extend(self._check_client_redirects(client))
            violations.extend(self._check_client_grant_types(client))
            violations.extend(self._check_client_secrets(client))
        violations.extend(self._check_duplicates())
        violations.extend(self._check_namespace_collisions())
        return violations

    def validate(self) -> None:
        """
        Validates the registry.

        Emits an OpenTelemetry span `validate_registry`.

        Raises:
            InvalidConfigurationError: If any violation was found.
        """
        with tracer.start_as_current_span("validate_registry", set_status_on_exception=False) as span:
            violations = self.collect_violations()

            span.set_attribute("registry.identity_resources", len(self.resources.identity_resources))
            span.set_attribute("registry.api_resources", len(self.resources.api_resources))
            span.set_attribute("registry.api_scopes", len(self.scopes.api_scopes))
            span.set_attribute("registry.clients", len(self.clients.clients))

            if violations:
                for violation in violations:
                    logger.error(f"Registry violation: {violation}")
                span.set_attribute("registry.violations", len(violations))
                span.set_status(Status(StatusCode.ERROR, f"{len(violations)} violation(s)"))
                raise InvalidConfigurationError(violations)

            logger.info(
                f"Registry validated: {len(self.resources.identity_resources)} identity resource(s), "
                f"{len(self.resources.api_resources)} API resource(s), "
                f"{len(self.scopes.api_scopes)} API scope(s), {len(self.clients.clients)} client(s)"
            )
            span.set_status(Status(StatusCode.OK))

    def _check_identity_resources(self) -> list[str]:
        if not self.resources.identity_resources:
            return [f"At least one identity resource is required, including the standard '{OPENID_SCOPE}' resource"]
        if not self.resources.has_identity(OPENID_SCOPE):
            return [f"The standard '{OPENID_SCOPE}' identity resource is missing"]
        return []

    def _check_api_resource_scopes(self) -> list[str]:
        violations = []
        for name, api_resource in sorted(self.resources.api_resources.items()):
            for scope_name in sorted(api_resource.scope_names):
                if not self.scopes.has_scope(scope_name):
                    violations.append(f"API resource '{name}' references undefined scope '{scope_name}'")
        return violations

    def _check_client_scopes(self, client: Client) -> list[str]:
        violations = []
        for scope_name in sorted(client.allowed_scopes):
            if scope_name == OFFLINE_ACCESS_SCOPE and client.allow_offline_access:
                continue
            if not self.scopes.is_known_scope_name(scope_name):
                violations.append(f"Client '{client.client_id}' references undefined scope '{scope_name}'")
        return violations

    def _check_client_redirects(self, client: Client) -> list[str]:
        violations = []
        if client.allowed_grant_types & REDIRECT_GRANT_TYPES and not client.redirect_uris:
            grants = ", ".join(sorted(client.allowed_grant_types & REDIRECT_GRANT_TYPES))
            violations.append(f"Client '{client.client_id}' allows {grants} but has no redirect URIs")

        for uri in (*client.redirect_uris, *client.post_logout_redirect_uris):
            problem = self._uri_problem(uri)
            if problem:
                violations.append(f"Client '{client.client_id}' has invalid redirect URI '{uri}': {problem}")
        return violations

    def _uri_problem(self, uri: str) -> str | None:
        try:
            parsed = urlparse(uri)
            hostname = parsed.hostname
        except ValueError:
            return "malformed URI"
        if not parsed.scheme:
            return "not an absolute URI"
        if parsed.fragment or "#" in uri:
            return "must not contain a fragment"
        if parsed.scheme in ("http", "https"):
            if not hostname:
                return "missing host"
            if self.strict_uri_scheme and parsed.scheme == "http" and not _is_loopback(hostname):
                return "https is required for non-loopback hosts"
        elif self.strict_uri_scheme:
            return f"scheme '{parsed.scheme}' is not allowed"
        return None

    def _check_client_grant_types(self, client: Client) -> list[str]:
        violations = []
        for first, second in _EXCLUSIVE_GRANT_TYPES:
            if first in client.allowed_grant_types and second in client.allowed_grant_types:
                violations.append(f"Client '{client.client_id}' combines incompatible grant types {first} and {second}")
        return violations

    def _check_client_secrets(self, client: Client) -> list[str]:
        if (
            GrantType.CLIENT_CREDENTIALS in client.allowed_grant_types
            and client.require_client_secret
            and not client.client_secrets
        ):
            return [f"Client '{client.client_id}' allows client_credentials but has no client secret"]
        return []

    def _check_duplicates(self) -> list[str]:
        # Registration rejects duplicates already; this sweep catches stores keyed inconsistently
        violations = []
        for kind, entries in (
            ("identity resource", self.resources.identity_resources.items()),
            ("API resource", self.resources.api_resources.items()),
            ("API scope", self.scopes.api_scopes.items()),
        ):
            seen: set[str] = set()
            for key, entity in entries:
                if key != entity.name or entity.name in seen:
                    violations.append(f"Duplicate {kind} name '{entity.name}'")
                seen.add(entity.name)

        seen_clients: set[str] = set()
        for key, client in self.clients.clients.items():
            if key != client.client_id or client.client_id in seen_clients:
                violations.append(f"Duplicate client id '{client.client_id}'")
            seen_clients.add(client.client_id)
        return violations

    def _check_namespace_collisions(self) -> list[str]:
        shared = set(self.resources.identity_resources) & set(self.scopes.api_scopes)
        return [
            f"Name '{name}' is used by both an identity resource and an API scope" for name in sorted(shared)
        ]
