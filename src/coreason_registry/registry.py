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
The combined, validated registry handed to the token-issuance engine.
"""

import threading
from collections.abc import Callable, Iterable

from coreason_registry.clients import ClientRegistry
from coreason_registry.config import RegistrySettings
from coreason_registry.exceptions import CoreasonRegistryError
from coreason_registry.models import (
    ApiResource,
    ApiScope,
    Client,
    GrantType,
    IdentityResource,
    RedirectKind,
    ResolvedResources,
)
from coreason_registry.resources import ResourceCatalog
from coreason_registry.scopes import ScopeCatalog
from coreason_registry.utils.logger import logger
from coreason_registry.validator import RegistryValidator


class ResourceRegistry:
    """
    An immutable, validated registry of resources, scopes and clients.

    Instances are only produced by `RegistryBuilder.build()`, after validation, with
    every catalog sealed. They may be shared between threads without locking.
    """

    __slots__ = ("_resources", "_scopes", "_clients")

    def __init__(self, resources: ResourceCatalog, scopes: ScopeCatalog, clients: ClientRegistry) -> None:
        if not (resources.sealed and scopes.sealed and clients.sealed):
            raise CoreasonRegistryError("ResourceRegistry requires sealed catalogs; use RegistryBuilder.")
        object.__setattr__(self, "_resources", resources)
        object.__setattr__(self, "_scopes", scopes)
        object.__setattr__(self, "_clients", clients)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ResourceRegistry is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("ResourceRegistry is immutable")

    def __repr__(self) -> str:
        return (
            f"ResourceRegistry(identity_resources={len(self._resources.identity_resources)}, "
            f"api_resources={len(self._resources.api_resources)}, "
            f"api_scopes={len(self._scopes.api_scopes)}, "
            f"clients={len(self._clients.clients)})"
        )

    @property
    def resources(self) -> ResourceCatalog:
        return self._resources

    @property
    def scopes(self) -> ScopeCatalog:
        return self._scopes

    @property
    def clients(self) -> ClientRegistry:
        return self._clients

    def lookup_identity(self, name: str) -> IdentityResource:
        return self._resources.lookup_identity(name)

    def lookup_api(self, name: str) -> ApiResource:
        return self._resources.lookup_api(name)

    def resolve(self, name: str) -> ApiScope:
        return self._scopes.resolve(name)

    def is_known_scope_name(self, name: str) -> bool:
        return self._scopes.is_known_scope_name(name)

    def get_client(self, client_id: str) -> Client:
        return self._clients.get(client_id)

    def authenticate(self, client_id: str, presented_secret: str | None) -> Client:
        return self._clients.authenticate(client_id, presented_secret)

    def validate_redirect(self, client_id: str, uri: str, kind: RedirectKind | str = RedirectKind.REDIRECT) -> str:
        return self._clients.validate_redirect(client_id, uri, kind)

    def grant_type_allowed(self, client_id: str, grant_type: GrantType | str) -> None:
        self._clients.grant_type_allowed(client_id, grant_type)

    def validate_requested_scopes(self, client_id: str, requested: str | Iterable[str]) -> ResolvedResources:
        return self._clients.validate_requested_scopes(client_id, requested)


class RegistryBuilder:
    """
    Populates the catalogs and produces a validated ResourceRegistry.

    Duplicates fail at registration time with DuplicateNameError. Cross-reference
    problems are collected and reported together by `build()`.
    """

    def __init__(self, settings: RegistrySettings | None = None) -> None:
        self.settings = settings or RegistrySettings()
        self._resources = ResourceCatalog()
        self._scopes = ScopeCatalog(self._resources)
        self._clients = ClientRegistry(self._scopes)
        self._built = False

    def add_identity_resource(self, resource: IdentityResource) -> "RegistryBuilder":
        self._resources.register(resource)
        return self

    def add_api_resource(self, resource: ApiResource) -> "RegistryBuilder":
        self._resources.register(resource)
        return self

    def add_api_scope(self, scope: ApiScope) -> "RegistryBuilder":
        self._scopes.register(scope)
        return self

    def add_client(self, client: Client) -> "RegistryBuilder":
        """
        Registers a client.

        Raises:
            DuplicateNameError: If the client id is already registered.
        """
        self._clients.register(client)
        return self

    def build(self) -> ResourceRegistry:
        """
        Validates the populated catalogs, seals them and returns the registry.

        Returns:
            ResourceRegistry: The immutable registry.

        Raises:
            InvalidConfigurationError: With every violation found, if the configuration is inconsistent.
            CoreasonRegistryError: If the builder was already used.
        """
        if self._built:
            raise CoreasonRegistryError("RegistryBuilder.build() may only be called once.")

        validator = RegistryValidator(
            self._resources,
            self._scopes,
            self._clients,
            strict_uri_scheme=self.settings.strict_uri_scheme,
        )
        validator.validate()

        self._resources.seal()
        self._scopes.seal()
        self._clients.seal()
        self._built = True
        return ResourceRegistry(self._resources, self._scopes, self._clients)


class RegistryHolder:
    """
    Publishes the current registry to request handlers and swaps it on reload.

    Readers use `current` without locking. A reload builds and validates the
    replacement first and publishes it with a single reference assignment, so a
    reader sees either the old or the new registry, never a mixture. A failed
    reload leaves the current registry in place.
    """

    def __init__(self, registry: ResourceRegistry) -> None:
        self._current = registry
        self._reload_lock = threading.Lock()

    @property
    def current(self) -> ResourceRegistry:
        return self._current

    def reload(self, build: Callable[[], ResourceRegistry]) -> ResourceRegistry:
        """
        Builds a replacement registry and publishes it.

        Args:
            build: Callable producing a fully validated ResourceRegistry.

        Returns:
            ResourceRegistry: The newly published registry.

        Raises:
            InvalidConfigurationError: If the replacement is invalid. The current registry is kept.
        """
        # Serializes concurrent reloads; readers never take this lock
        with self._reload_lock:
            try:
                replacement = build()
            except CoreasonRegistryError:
                logger.exception("Registry reload failed; keeping the current registry")
                raise
            if not isinstance(replacement, ResourceRegistry):
                raise CoreasonRegistryError("Registry reload must produce a ResourceRegistry.")
            self._current = replacement
            logger.info(f"Registry reloaded: {replacement!r}")
            return replacement
