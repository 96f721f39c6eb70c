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
End-to-end checks over the image gallery configuration.
"""

import pytest

from coreason_registry.clients import ClientRegistry
from coreason_registry.exceptions import (
    AuthenticationError,
    DuplicateNameError,
    InvalidConfigurationError,
    UnauthorizedRedirectError,
)
from coreason_registry.hashing import hash_secret
from coreason_registry.models import ApiScope, Client, GrantType
from coreason_registry.registry import RegistryBuilder, ResourceRegistry
from coreason_registry.resources import ResourceCatalog
from coreason_registry.scopes import ScopeCatalog
from coreason_registry.standard import standard_identity_resource


def test_gallery_configuration_validates(gallery_registry: ResourceRegistry) -> None:
    client = gallery_registry.authenticate("imagegalleryclient", "secret")
    assert client.allowed_scopes == frozenset({"openid", "profile", "imagegalleryapi.fullaccess"})

    resolved = gallery_registry.validate_requested_scopes(
        "imagegalleryclient", "openid profile imagegalleryapi.fullaccess"
    )
    assert resolved.scope_names == frozenset({"openid", "profile", "imagegalleryapi.fullaccess"})
    assert resolved.audiences == ("imagegalleryapi",)
    assert "role" in resolved.access_token_claim_types
    assert "given_name" in resolved.identity_claim_types


def test_second_client_with_unknown_scope_fails(gallery_builder: RegistryBuilder) -> None:
    gallery_builder.add_client(
        Client(
            client_id="reportingclient",
            allowed_grant_types=frozenset({GrantType.CLIENT_CREDENTIALS}),
            allowed_scopes=frozenset({"unknown_scope"}),
            client_secrets=(hash_secret("reporting-secret"),),
        )
    )
    with pytest.raises(InvalidConfigurationError) as excinfo:
        gallery_builder.build()
    assert excinfo.value.violations == ("Client 'reportingclient' references undefined scope 'unknown_scope'",)


def test_duplicate_client_registration(gallery_client: Client) -> None:
    clients = ClientRegistry(ScopeCatalog(ResourceCatalog()))
    clients.register(gallery_client)
    with pytest.raises(DuplicateNameError) as excinfo:
        clients.register(gallery_client.model_copy(update={"client_name": "Impostor"}))
    assert excinfo.value.name == "imagegalleryclient"
    assert clients.get("imagegalleryclient").client_name == "Image Gallery"


def test_missing_openid_fails(gallery_client: Client) -> None:
    builder = RegistryBuilder()
    builder.add_identity_resource(standard_identity_resource("profile"))
    builder.add_api_scope(ApiScope(name="imagegalleryapi.fullaccess"))
    builder.add_client(gallery_client)
    with pytest.raises(InvalidConfigurationError) as excinfo:
        builder.build()
    assert "The standard 'openid' identity resource is missing" in excinfo.value.violations
    assert "Client 'imagegalleryclient' references undefined scope 'openid'" in excinfo.value.violations


@pytest.mark.parametrize("grant_type", [GrantType.AUTHORIZATION_CODE, GrantType.HYBRID])
def test_redirect_flow_without_redirect_uris_fails(gallery_builder: RegistryBuilder, grant_type: GrantType) -> None:
    gallery_builder.add_client(
        Client(
            client_id="mobileclient",
            allowed_grant_types=frozenset({grant_type}),
            allowed_scopes=frozenset({"openid"}),
            require_client_secret=False,
        )
    )
    with pytest.raises(InvalidConfigurationError) as excinfo:
        gallery_builder.build()
    assert excinfo.value.violations == (f"Client 'mobileclient' allows {grant_type} but has no redirect URIs",)


@pytest.mark.parametrize(
    "uri",
    [
        "https://localhost:7184/signin-oidc/",
        "https://localhost:7184/signin-oidc?x=1",
        "https://LOCALHOST:7184/signin-oidc",
        "http://localhost:7184/signin-oidc",
    ],
)
def test_redirect_must_match_exactly(gallery_registry: ResourceRegistry, uri: str) -> None:
    with pytest.raises(UnauthorizedRedirectError):
        gallery_registry.validate_redirect("imagegalleryclient", uri)


def test_resolve_is_idempotent(gallery_registry: ResourceRegistry) -> None:
    first = gallery_registry.resolve("imagegalleryapi.fullaccess")
    assert all(gallery_registry.resolve("imagegalleryapi.fullaccess") == first for _ in range(5))


def test_unknown_and_wrong_secret_fail_alike(gallery_registry: ResourceRegistry) -> None:
    with pytest.raises(AuthenticationError) as unknown:
        gallery_registry.authenticate("nobody", "secret")
    with pytest.raises(AuthenticationError) as wrong:
        gallery_registry.authenticate("imagegalleryclient", "not-the-secret")
    assert str(unknown.value) == str(wrong.value)
