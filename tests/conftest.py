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
from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import Tracer

from coreason_registry.config import RegistrySettings
from coreason_registry.hashing import hash_secret
from coreason_registry.models import ApiResource, ApiScope, Client, GrantType
from coreason_registry.registry import RegistryBuilder, ResourceRegistry
from coreason_registry.standard import standard_identity_resource

GALLERY_REDIRECT = "https://localhost:7184/signin-oidc"
GALLERY_LOGOUT_REDIRECT = "https://localhost:7184/signout-callback-oidc"
GALLERY_SECRET = "secret"
GALLERY_SCOPE = "imagegalleryapi.fullaccess"


@pytest.fixture(autouse=True)
def clean_registry_env() -> Generator[None, None, None]:
    """
    Removes COREASON_REGISTRY_* variables from the environment so settings
    defaults are predictable regardless of the developer's shell.
    """
    cleaned = {k: v for k, v in os.environ.items() if not k.upper().startswith("COREASON_REGISTRY_")}
    with patch.dict(os.environ, cleaned, clear=True):
        yield


@pytest.fixture
def settings() -> RegistrySettings:
    return RegistrySettings()


@pytest.fixture
def gallery_client() -> Client:
    return Client(
        client_id="imagegalleryclient",
        client_name="Image Gallery",
        allowed_grant_types=frozenset({GrantType.AUTHORIZATION_CODE}),
        redirect_uris=(GALLERY_REDIRECT,),
        post_logout_redirect_uris=(GALLERY_LOGOUT_REDIRECT,),
        allowed_scopes=frozenset({"openid", "profile", GALLERY_SCOPE}),
        client_secrets=(hash_secret(GALLERY_SECRET),),
        require_consent=True,
    )


@pytest.fixture
def gallery_builder(settings: RegistrySettings, gallery_client: Client) -> RegistryBuilder:
    """A builder populated with the image gallery configuration, ready to build."""
    builder = RegistryBuilder(settings)
    builder.add_identity_resource(standard_identity_resource("openid"))
    builder.add_identity_resource(standard_identity_resource("profile"))
    builder.add_api_scope(ApiScope(name=GALLERY_SCOPE, display_name="Full access to Image Gallery API"))
    builder.add_api_resource(
        ApiResource(
            name="imagegalleryapi",
            display_name="Image Gallery API",
            claim_types=frozenset({"role"}),
            scope_names=frozenset({GALLERY_SCOPE}),
        )
    )
    builder.add_client(gallery_client)
    return builder


@pytest.fixture
def gallery_registry(gallery_builder: RegistryBuilder) -> ResourceRegistry:
    return gallery_builder.build()


@pytest.fixture
def gallery_definition() -> dict[str, Any]:
    """The image gallery configuration as plain records."""
    return {
        "identity_resources": ["openid", "profile"],
        "api_scopes": [{"name": GALLERY_SCOPE, "display_name": "Full access to Image Gallery API"}],
        "api_resources": [
            {
                "name": "imagegalleryapi",
                "display_name": "Image Gallery API",
                "claim_types": ["role"],
                "scope_names": [GALLERY_SCOPE],
            }
        ],
        "clients": [
            {
                "client_id": "imagegalleryclient",
                "client_name": "Image Gallery",
                "allowed_grant_types": ["authorization_code"],
                "redirect_uris": [GALLERY_REDIRECT],
                "post_logout_redirect_uris": [GALLERY_LOGOUT_REDIRECT],
                "allowed_scopes": ["openid", "profile", GALLERY_SCOPE],
                "client_secrets": [GALLERY_SECRET],
                "require_consent": True,
            }
        ],
    }


@pytest.fixture
def telemetry_setup() -> tuple[InMemorySpanExporter, Tracer]:
    """Sets up an OpenTelemetry tracer with an in-memory exporter."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    tracer = provider.get_tracer("test_tracer")
    return exporter, tracer
