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
The standard OpenID Connect identity resources (OpenID Connect Core 1.0, section 5.4).
"""

from enum import StrEnum

from coreason_registry.exceptions import NotFoundError
from coreason_registry.models import OFFLINE_ACCESS_SCOPE, OPENID_SCOPE, IdentityResource

__all__ = [
    "OFFLINE_ACCESS_SCOPE",
    "OPENID_SCOPE",
    "StandardScope",
    "standard_identity_resource",
]


class StandardScope(StrEnum):
    OPENID = OPENID_SCOPE
    PROFILE = "profile"
    EMAIL = "email"
    ADDRESS = "address"
    PHONE = "phone"


_STANDARD_RESOURCES: dict[StandardScope, IdentityResource] = {
    StandardScope.OPENID: IdentityResource(
        name=StandardScope.OPENID.value,
        display_name="Your user identifier",
        claim_types=frozenset({"sub"}),
        required=True,
    ),
    StandardScope.PROFILE: IdentityResource(
        name=StandardScope.PROFILE.value,
        display_name="User profile",
        description="Your user profile information (first name, last name, etc.)",
        claim_types=frozenset(
            {
                "name",
                "family_name",
                "given_name",
                "middle_name",
                "nickname",
                "preferred_username",
                "profile",
                "picture",
                "website",
                "gender",
                "birthdate",
                "zoneinfo",
                "locale",
                "updated_at",
            }
        ),
        emphasize=True,
    ),
    StandardScope.EMAIL: IdentityResource(
        name=StandardScope.EMAIL.value,
        display_name="Your email address",
        claim_types=frozenset({"email", "email_verified"}),
        emphasize=True,
    ),
    StandardScope.ADDRESS: IdentityResource(
        name=StandardScope.ADDRESS.value,
        display_name="Your postal address",
        claim_types=frozenset({"address"}),
        emphasize=True,
    ),
    StandardScope.PHONE: IdentityResource(
        name=StandardScope.PHONE.value,
        display_name="Your phone number",
        claim_types=frozenset({"phone_number", "phone_number_verified"}),
        emphasize=True,
    ),
}


def standard_identity_resource(name: str) -> IdentityResource:
    """
    Returns the standard identity resource called `name` (e.g. "openid", "profile").

    Raises:
        NotFoundError: If `name` is not one of the standard OIDC scopes.
    """
    try:
        return _STANDARD_RESOURCES[StandardScope(name)]
    except ValueError:
        raise NotFoundError("standard identity resource", name) from None
