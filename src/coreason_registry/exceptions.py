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
Custom exceptions for the coreason-registry package.
"""

from collections.abc import Iterable


class CoreasonRegistryError(Exception):
    """Base exception for all coreason-registry errors."""


class DuplicateNameError(CoreasonRegistryError):
    """Raised when a resource, scope or client is registered under a name that is already taken."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Duplicate {kind} name: '{name}'")


class NotFoundError(CoreasonRegistryError):
    """Raised when a lookup by name does not resolve."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind}: '{name}'")


class UnknownClientError(NotFoundError):
    """Raised when a client id is not registered, or the client is disabled."""

    def __init__(self, client_id: str) -> None:
        super().__init__("client", client_id)


class AuthenticationError(CoreasonRegistryError):
    """
    Raised when client authentication fails.
    The message is deliberately generic and never says which secret was compared.
    """


class UnauthorizedRedirectError(CoreasonRegistryError):
    """Raised when a redirect URI is not registered verbatim for the client."""


class UnsupportedGrantTypeError(CoreasonRegistryError):
    """Raised when the client is not allowed to use the requested grant type."""


class InvalidScopeError(CoreasonRegistryError):
    """Raised when requested scopes are unknown, disabled or not allowed for the client."""

    def __init__(self, message: str, invalid_scopes: Iterable[str] = ()) -> None:
        self.invalid_scopes = tuple(sorted(set(invalid_scopes)))
        super().__init__(message)


class RegistrySealedError(CoreasonRegistryError):
    """Raised when a catalog is modified after the registry has been validated."""


class InvalidConfigurationError(CoreasonRegistryError):
    """
    Raised at startup when the registry configuration is inconsistent.
    Carries every violation found, not only the first one.
    """

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations = tuple(violations)
        summary = "; ".join(self.violations)
        super().__init__(f"Invalid registry configuration ({len(self.violations)} violation(s)): {summary}")
