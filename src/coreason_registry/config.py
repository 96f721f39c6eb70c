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
Configuration for the coreason-registry package.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RegistrySettings(BaseSettings):
    """
    Configuration settings for coreason-registry.

    Attributes:
        definition_path (Path | None): JSON file holding the registry definition.
        secret_algorithm (str): Algorithm used to hash client secrets at registration.
        salt_bytes (int): Number of random salt bytes per hashed secret.
        strict_uri_scheme (bool): Require https redirect URIs, except for loopback hosts.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_REGISTRY_",
        case_sensitive=False,
    )

    definition_path: Path | None = None
    secret_algorithm: Literal["hmac-sha256"] = "hmac-sha256"
    salt_bytes: int = Field(default=16, ge=16, le=64, description="Random salt bytes per hashed client secret.")
    strict_uri_scheme: bool = True

    @field_validator("definition_path", mode="after")
    @classmethod
    def expand_definition_path(cls, v: Path | None) -> Path | None:
        """
        Expands a leading `~` so paths from environment variables behave like shell paths.
        """
        if v is None:
            return None
        return v.expanduser()
