# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_registry

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from coreason_registry.config import RegistrySettings


def test_defaults() -> None:
    settings = RegistrySettings()
    assert settings.definition_path is None
    assert settings.secret_algorithm == "hmac-sha256"
    assert settings.salt_bytes == 16
    assert settings.strict_uri_scheme is True


def test_reads_environment() -> None:
    env = {
        "COREASON_REGISTRY_DEFINITION_PATH": "/etc/coreason/registry.json",
        "COREASON_REGISTRY_SALT_BYTES": "32",
        "COREASON_REGISTRY_STRICT_URI_SCHEME": "false",
    }
    with patch.dict(os.environ, env):
        settings = RegistrySettings()
    assert settings.definition_path == Path("/etc/coreason/registry.json")
    assert settings.salt_bytes == 32
    assert settings.strict_uri_scheme is False


def test_environment_is_case_insensitive() -> None:
    with patch.dict(os.environ, {"coreason_registry_salt_bytes": "24"}):
        assert RegistrySettings().salt_bytes == 24


def test_expands_home_directory() -> None:
    settings = RegistrySettings(definition_path=Path("~/registry.json"))
    assert settings.definition_path == Path.home() / "registry.json"


@pytest.mark.parametrize("salt_bytes", [0, 8, 15, 65])
def test_rejects_out_of_range_salt(salt_bytes: int) -> None:
    with pytest.raises(ValidationError):
        RegistrySettings(salt_bytes=salt_bytes)


def test_rejects_unsupported_algorithm() -> None:
    with patch.dict(os.environ, {"COREASON_REGISTRY_SECRET_ALGORITHM": "md5"}):
        with pytest.raises(ValidationError):
            RegistrySettings()
