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
ScopeCatalog component holding API Scopes.
"""

from collections.abc import Mapping
from types import MappingProxyType

from coreason_registry.exceptions import DuplicateNameError, NotFoundError, RegistrySealedError
from coreason_registry.models import ApiScope
from coreason_registry.resources import ResourceCatalog
from coreason_registry.utils.logger import logger


class ScopeCatalog:
    """
    Holds API Scopes.

    Clients may list either API scope names or identity resource names in their
    allowed scopes, so the catalog is linked to the ResourceCatalog to answer
    `is_known_scope_name` across both namespaces.

    Attributes:
        resources (ResourceCatalog): The catalog holding identity resources.
    """

    def __init__(self, resources: ResourceCatalog) -> None:
        self.resources = resources
        self._scopes: dict[str, ApiScope] = {}
        self._sealed = False

    def register(self, scope: ApiScope) -> None:
        """
        Adds an API scope.

        Raises:
            DuplicateNameError: If a scope with the same name exists.
            RegistrySealedError: If the catalog has already been sealed.
        """
        if self._sealed:
            raise RegistrySealedError("Scope catalog is sealed; build a new registry instead.")
        if scope.name in self._scopes:
            raise DuplicateNameError("API scope", scope.name)
        self._scopes[scope.name] = scope
        logger.debug(f"Registered API scope '{scope.name}'")

    def resolve(self, name: str) -> ApiScope:
        """
        Returns the API scope registered under `name`.

        Raises:
            NotFoundError: If no such scope exists.
        """
        try:
            return self._scopes[name]
        except KeyError:
            raise NotFoundError("API scope", name) from None

    def has_scope(self, name: str) -> bool:
        return name in self._scopes

    def is_known_scope_name(self, name: str) -> bool:
        """True if `name` is an API scope or an identity resource name."""
        return name in self._scopes or self.resources.has_identity(name)

    @property
    def api_scopes(self) -> Mapping[str, ApiScope]:
        return MappingProxyType(self._scopes)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed
