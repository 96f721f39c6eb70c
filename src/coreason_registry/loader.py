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
Builds a ResourceRegistry from plain configuration records.
"""

from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from coreason_registry.config import RegistrySettings
from coreason_registry.exceptions import InvalidConfigurationError, NotFoundError
from coreason_registry.hashing import HMAC_SHA256, hash_secret
from coreason_registry.models import ApiResource, ApiScope, Client, GrantType, IdentityResource
from coreason_registry.registry import RegistryBuilder, ResourceRegistry
from coreason_registry.standard import standard_identity_resource
from coreason_registry.utils.logger import logger


class SecretDefinition(BaseModel):
    """
    A client secret as it arrives from configuration. Hashed before registration.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: SecretStr
    description: str | None = None
    expiration: datetime | None = None

    @field_validator("value", mode="before")
    @classmethod
    def reject_empty(cls, v: Any) -> Any:
        raw = v.get_secret_value() if isinstance(v, SecretStr) else v
        if not raw:
            raise ValueError("Client secret must not be empty.")
        return v


class ClientDefinition(BaseModel):
    """
    A client record from configuration, with plaintext secrets.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    client_id: str = Field(..., min_length=1)
    client_name: str | None = None
    allowed_grant_types: frozenset[GrantType] = Field(default_factory=frozenset)
    redirect_uris: tuple[str, ...] = ()
    post_logout_redirect_uris: tuple[str, ...] = ()
    allowed_scopes: frozenset[str] = Field(default_factory=frozenset)
    client_secrets: tuple[SecretDefinition, ...] = ()
    require_consent: bool = False
    enabled: bool = True
    require_client_secret: bool = True
    allow_offline_access: bool = False
    access_token_lifetime: int = Field(default=3600, gt=0)
    identity_token_lifetime: int = Field(default=300, gt=0)
    allowed_cors_origins: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("client_secrets", mode="before")
    @classmethod
    def accept_bare_secrets(cls, v: Any) -> Any:
        """Accepts plain strings as shorthand for `{"value": ...}`."""
        if isinstance(v, (list, tuple)):
            return [{"value": item} if isinstance(item, str) else item for item in v]
        return v

    def to_client(self, salt_bytes: int, algorithm: str = HMAC_SHA256) -> Client:
        """
        Hashes the plaintext secrets and returns the registry Client.
        """
        hashed = tuple(
            hash_secret(
                s.value,
                salt_bytes=salt_bytes,
                description=s.description,
                expiration=s.expiration,
                algorithm=algorithm,
            )
            for s in self.client_secrets
        )
        return Client(**self.model_dump(exclude={"client_secrets"}), client_secrets=hashed)


class RegistryDefinition(BaseModel):
    """
    The complete configuration source for a registry.

    Identity resources may be given as full records, or as the bare name of a
    standard OpenID Connect resource (e.g. "openid", "profile").
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    identity_resources: tuple[IdentityResource, ...] = ()
    api_resources: tuple[ApiResource, ...] = ()
    api_scopes: tuple[ApiScope, ...] = ()
    clients: tuple[ClientDefinition, ...] = ()

    @field_validator("identity_resources", mode="before")
    @classmethod
    def expand_standard_resources(cls, v: Any) -> Any:
        if not isinstance(v, (list, tuple)):
            return v
        expanded = []
        for item in v:
            if isinstance(item, str):
                try:
                    expanded.append(standard_identity_resource(item))
                except NotFoundError as e:
                    raise ValueError(str(e)) from e
            else:
                expanded.append(item)
        return expanded


def _violations_from(error: ValidationError) -> list[str]:
    # Input values are left out: they may hold plaintext secrets
    return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in error.errors(include_input=False)]


def parse_definition(data: Mapping[str, Any]) -> RegistryDefinition:
    """
    Parses a mapping of configuration records into a RegistryDefinition.

    Raises:
        InvalidConfigurationError: If the records do not match the expected schema.
    """
    try:
        return RegistryDefinition.model_validate(data)
    except ValidationError as e:
        raise InvalidConfigurationError(_violations_from(e)) from e


def load_definition(path: Path | str) -> RegistryDefinition:
    """
    Reads a registry definition from a JSON file.

    Args:
        path: Path to the JSON document.

    Returns:
        RegistryDefinition: The parsed definition.

    Raises:
        InvalidConfigurationError: If the file cannot be read or does not match the schema.
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidConfigurationError([f"Unable to read registry definition '{path}': {e}"]) from e

    try:
        definition = RegistryDefinition.model_validate_json(content)
    except ValidationError as e:
        raise InvalidConfigurationError(_violations_from(e)) from e

    logger.info(f"Loaded registry definition from {path}")
    return definition


def build_registry(definition: RegistryDefinition, settings: RegistrySettings | None = None) -> ResourceRegistry:
    """
    Populates, validates and seals a registry from a definition.

    Args:
        definition: The configuration records.
        settings: Registry settings. Defaults to settings read from the environment.

    Returns:
        ResourceRegistry: The validated, immutable registry.

    Raises:
        InvalidConfigurationError: With every violation found.
    """
    settings = settings or RegistrySettings()
    builder = RegistryBuilder(settings)

    for identity_resource in definition.identity_resources:
        builder.add_identity_resource(identity_resource)
    for api_scope in definition.api_scopes:
        builder.add_api_scope(api_scope)
    for api_resource in definition.api_resources:
        builder.add_api_resource(api_resource)
    for client_definition in definition.clients:
        builder.add_client(client_definition.to_client(settings.salt_bytes, settings.secret_algorithm))

    return builder.build()


def load_registry(settings: RegistrySettings | None = None) -> ResourceRegistry:
    """
    Builds the registry from the JSON file named by `settings.definition_path`.

    Raises:
        InvalidConfigurationError: If no path is configured, or the definition is invalid.
    """
    settings = settings or RegistrySettings()
    if settings.definition_path is None:
        raise InvalidConfigurationError(["No registry definition path configured (COREASON_REGISTRY_DEFINITION_PATH)"])
    return build_registry(load_definition(settings.definition_path), settings)
