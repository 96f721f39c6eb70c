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
Data models for the coreason-registry package.

All models are frozen (immutable) so that a validated registry can be read
concurrently without locking.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GrantType(StrEnum):
    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    IMPLICIT = "implicit"
    HYBRID = "hybrid"
    DEVICE_CODE = "device_code"
    REFRESH_TOKEN = "refresh_token"


class RedirectKind(StrEnum):
    REDIRECT = "redirect"
    POST_LOGOUT_REDIRECT = "post-logout-redirect"


REDIRECT_GRANT_TYPES = frozenset({GrantType.AUTHORIZATION_CODE, GrantType.HYBRID})

OPENID_SCOPE = "openid"
OFFLINE_ACCESS_SCOPE = "offline_access"


class IdentityResource(BaseModel):
    """
    A named bundle of user claim types released into an identity token.

    Attributes:
        name (str): Unique identity resource name (also the scope value clients request).
        display_name (str | None): Human-readable label shown on consent screens.
        claim_types (frozenset[str]): Claim types this resource contributes to the identity token.
        required (bool): Whether the consent screen may not deselect this resource.
        emphasize (bool): Whether the consent screen highlights this resource.
        show_in_discovery_document (bool): Whether the scope is advertised in discovery metadata.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, examples=["openid"])
    display_name: str | None = None
    description: str | None = None
    claim_types: frozenset[str] = Field(default_factory=frozenset)
    enabled: bool = True
    required: bool = False
    emphasize: bool = False
    show_in_discovery_document: bool = True


class ApiScope(BaseModel):
    """
    A named permission a client can request and a resource owner can grant.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, examples=["imagegalleryapi.fullaccess"])
    display_name: str | None = None
    description: str | None = None
    claim_types: frozenset[str] = Field(
        default_factory=frozenset, description="User claim types added to access tokens carrying this scope."
    )
    enabled: bool = True
    required: bool = False
    emphasize: bool = False


class ApiResource(BaseModel):
    """
    A protected API whose access tokens carry specific claim types, exposed through one or more scopes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, examples=["imagegalleryapi"])
    display_name: str | None = None
    description: str | None = None
    claim_types: frozenset[str] = Field(default_factory=frozenset)
    scope_names: frozenset[str] = Field(default_factory=frozenset)
    enabled: bool = True


class HashedSecret(BaseModel):
    """
    A salted client secret hash. The plaintext is never stored.

    Attributes:
        algorithm (str): Hash algorithm identifier.
        salt (str): Hex-encoded random salt, used as the HMAC key.
        digest (str): Hex-encoded HMAC digest of the secret.
        description (str | None): Free-form label, e.g. which deployment owns the secret.
        expiration (datetime | None): Instant after which the secret no longer authenticates.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    algorithm: str = "hmac-sha256"
    salt: str = Field(..., min_length=2)
    digest: str = Field(..., min_length=2)
    description: str | None = None
    expiration: datetime | None = None

    @field_validator("salt", "digest")
    @classmethod
    def ensure_hex(cls, v: str) -> str:
        """Ensures salt and digest are hex-encoded, normalized to lower case."""
        v = v.strip().lower()
        try:
            bytes.fromhex(v)
        except ValueError as e:
            raise ValueError("Value must be hex-encoded.") from e
        return v

    def __repr__(self) -> str:
        # Digests are not secret, but there is no reason to spread them through logs either
        return f"HashedSecret(algorithm={self.algorithm!r}, description={self.description!r}, digest='<REDACTED>')"

    def __str__(self) -> str:
        return self.__repr__()


class Client(BaseModel):
    """
    A registered application permitted to request tokens.

    Redirect URIs are ordered and matched by exact string equality.
    `require_consent` is passed through untouched to the consent collaborator.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "client_id": "imagegalleryclient",
                "client_name": "Image Gallery",
                "allowed_grant_types": ["authorization_code"],
                "redirect_uris": ["https://localhost:7184/signin-oidc"],
                "allowed_scopes": ["openid", "profile", "imagegalleryapi.fullaccess"],
                "require_consent": True,
            }
        },
    )

    client_id: str = Field(..., min_length=1)
    client_name: str | None = None
    allowed_grant_types: frozenset[GrantType] = Field(default_factory=frozenset)
    redirect_uris: tuple[str, ...] = ()
    post_logout_redirect_uris: tuple[str, ...] = ()
    allowed_scopes: frozenset[str] = Field(default_factory=frozenset)
    client_secrets: tuple[HashedSecret, ...] = ()
    require_consent: bool = False
    enabled: bool = True
    require_client_secret: bool = True
    allow_offline_access: bool = False
    access_token_lifetime: int = Field(default=3600, gt=0, description="Access token lifetime in seconds.")
    identity_token_lifetime: int = Field(default=300, gt=0, description="Identity token lifetime in seconds.")
    allowed_cors_origins: frozenset[str] = Field(default_factory=frozenset)

    def redirect_uris_for(self, kind: RedirectKind) -> tuple[str, ...]:
        if kind == RedirectKind.POST_LOGOUT_REDIRECT:
            return self.post_logout_redirect_uris
        return self.redirect_uris


class ResolvedResources(BaseModel):
    """
    The resources a client's scope request resolved to.
    Handed to the token-issuance engine to decide which claims go into which token.
    """

    model_config = ConfigDict(frozen=True)

    identity_resources: tuple[IdentityResource, ...] = ()
    api_scopes: tuple[ApiScope, ...] = ()
    api_resources: tuple[ApiResource, ...] = ()
    offline_access: bool = False

    @property
    def scope_names(self) -> frozenset[str]:
        names = {r.name for r in self.identity_resources} | {s.name for s in self.api_scopes}
        if self.offline_access:
            names.add(OFFLINE_ACCESS_SCOPE)
        return frozenset(names)

    @property
    def identity_claim_types(self) -> frozenset[str]:
        """Claim types released into the identity token."""
        return frozenset().union(*(r.claim_types for r in self.identity_resources))

    @property
    def access_token_claim_types(self) -> frozenset[str]:
        """Claim types released into the access token (scope claims plus resource claims)."""
        scope_claims = frozenset().union(*(s.claim_types for s in self.api_scopes))
        resource_claims = frozenset().union(*(r.claim_types for r in self.api_resources))
        return scope_claims | resource_claims

    @property
    def audiences(self) -> tuple[str, ...]:
        return tuple(sorted(r.name for r in self.api_resources))
