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
Salted hashing and constant-time verification of client secrets.
"""

import hashlib
import hmac
import secrets
from collections.abc import Sequence
from datetime import UTC, datetime

from pydantic import SecretStr

from coreason_registry.models import HashedSecret

HMAC_SHA256 = "hmac-sha256"
SUPPORTED_ALGORITHMS = frozenset({HMAC_SHA256})
DEFAULT_SALT_BYTES = 16


def _digest(salt_hex: str, value: str) -> str:
    # surrogatepass keeps arbitrary presented strings hashable
    encoded = value.encode("utf-8", errors="surrogatepass")
    return hmac.new(bytes.fromhex(salt_hex), encoded, hashlib.sha256).hexdigest()


def hash_secret(
    plaintext: SecretStr | str,
    salt_bytes: int = DEFAULT_SALT_BYTES,
    description: str | None = None,
    expiration: datetime | None = None,
    algorithm: str = HMAC_SHA256,
) -> HashedSecret:
    """
    Hashes a plaintext client secret with a fresh random salt.

    Args:
        plaintext: The secret as received from configuration.
        salt_bytes: Number of random salt bytes.
        description: Optional label stored alongside the hash.
        expiration: Optional instant after which the secret stops authenticating.
        algorithm: Hash algorithm. Only "hmac-sha256" is supported.

    Returns:
        HashedSecret: The salted hash. The plaintext is not retained.

    Raises:
        ValueError: If the secret is empty or the algorithm is not supported.
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported secret algorithm '{algorithm}'.")
    value = plaintext.get_secret_value() if isinstance(plaintext, SecretStr) else plaintext
    if not value:
        raise ValueError("Client secret must not be empty.")

    salt = secrets.token_hex(salt_bytes)
    return HashedSecret(
        algorithm=algorithm,
        salt=salt,
        digest=_digest(salt, value),
        description=description,
        expiration=expiration,
    )


def verify_secret(presented: str, stored: Sequence[HashedSecret], now: datetime | None = None) -> bool:
    """
    Checks a presented secret against every stored hash.

    The loop always visits every stored hash and uses `hmac.compare_digest`, so the
    time taken does not depend on which hash (if any) matched.

    Args:
        presented: The plaintext secret presented by the client.
        stored: The client's stored secret hashes.
        now: Reference time for expiration checks. Defaults to the current UTC time.

    Returns:
        bool: True if any unexpired stored hash matches.
    """
    now = now or datetime.now(UTC)
    matched = False
    for secret in stored:
        candidate = _digest(secret.salt, presented)
        equal = hmac.compare_digest(candidate.encode("ascii"), secret.digest.encode("ascii"))
        live = secret.expiration is None or _aware(secret.expiration) > now
        supported = secret.algorithm in SUPPORTED_ALGORITHMS
        # Non-short-circuiting operators
        matched = matched | (equal & live & supported)
    return matched


def _aware(value: datetime) -> datetime:
    # Naive expirations from configuration are read as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
