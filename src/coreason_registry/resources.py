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
ResourceCatalog component holding Identity Resources and API Resources.
"""

from collections.abc import Mapping
from types import MappingProxyType

from coreason_registry.exceptions import DuplicateNameError, NotFoundError, RegistrySealedError
from coreason_registry.models import ApiResource, IdentityResource
from coreason_registry.utils.logger import logger


class ResourceCatalog:
    """
    Holds Identity Resources and API Resources in two separate namespaces.

    The catalog is populated during startup and sealed once the registry has
    been validated. It performs no I/O.
    """

    def __init__(self) -> None:
        self._identity: dict[str, IdentityResource] = {}
        self._api: dict[str, ApiResource] = {}
        self._sealed = False

    def register(self, resource: IdentityResource | ApiResource) -> None:
        """
        Adds an Identity or API resource.

        Args:
            resource: The resource to add.

        Raises:
            DuplicateNameError: If the name already exists in the resource's namespace.
            RegistrySealedError: If the catalog has already been sealed.
            TypeError: If the object is not a resource.
        """
        if self._sealed:
            raise RegistrySealedError("Resource catalog is sealed; build a new registry instead.")

        if isinstance(resource, IdentityResource):
            store: dict[str, IdentityResource] | dict[str, ApiResource] = self._identity
            kind = "identity resource"
        elif isinstance(resource, ApiResource):
            store = self._api
            kind = "API resource"
        else:
            raise TypeError(f"Expected IdentityResource or ApiResource, got {type(resource).__name__}")

        if resource.name in store:
            raise DuplicateNameError(kind, resource.name)

        store[resource.name] = resource  # type: ignore[assignment]
        logger.debug(f"Registered {kind} '{resource.name}'")

    def lookup_identity(self, name: str) -> IdentityResource:
        try:
            return self._identity[name]
        except KeyError:
            raise NotFoundError("identity resource", name) from None

    def lookup_api(self, name: str) -> ApiResource:
        try:
            return self._api[name]
        except KeyError:
            raise NotFoundError("API resource", name) from None

    def has_identity(self, name: str) -> bool:
        return name in self._identity

    @property
    def identity_resources(self) -> Mapping[str, IdentityResource]:
        return MappingProxyType(self._identity)

    @property
    def api_resources(self) -> Mapping[str, ApiResource]:
        return MappingProxyType(self._api)

    def api_resources_for_scope(self, scope_name: str) -> tuple[ApiResource, ...]:
        """
        Returns the enabled API resources that expose the given scope, ordered by name.
        """
        return tuple(
            resource
            for _, resource in sorted(self._api.items())
            if resource.enabled and scope_name in resource.scope_names
        )

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed
