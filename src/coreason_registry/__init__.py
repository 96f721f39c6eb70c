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
Resource and client registry for an OpenID Connect / OAuth2 authorization server.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import RegistrySettings
from .exceptions import (
    AuthenticationError,
    CoreasonRegistryError,
    DuplicateNameError,
    InvalidConfigurationError,
    InvalidScopeError,
    NotFoundError,
    UnauthorizedRedirectError,
    UnsupportedGrantTypeError,
)
from .loader import RegistryDefinition, build_registry, load_registry
from .models import ApiResource, ApiScope, Client, GrantType, IdentityResource, RedirectKind
from .registry import RegistryBuilder, RegistryHolder, ResourceRegistry

__all__ = [
    "ApiResource",
    "ApiScope",
    "AuthenticationError",
    "Client",
    "CoreasonRegistryError",
    "DuplicateNameError",
    "GrantType",
    "IdentityResource",
    "InvalidConfigurationError",
    "InvalidScopeError",
    "NotFoundError",
    "RedirectKind",
    "RegistryBuilder",
    "RegistryDefinition",
    "RegistryHolder",
    "RegistrySettings",
    "ResourceRegistry",
    "UnauthorizedRedirectError",
    "UnsupportedGrantTypeError",
    "build_registry",
    "load_registry",
]
