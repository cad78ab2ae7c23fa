"""
API key hashing utilities.

Security notes:
  • SHA-256 is used for key hashing — acceptable for API keys because
    they are high-entropy random strings (not low-entropy passwords).
    bcrypt/argon2 would add latency to every authenticated request.
  • Raw keys use the sk- prefix (convention, not security).
  • Key generation lives here for provisioning (see scripts/bootstrap_dev.py);
    the gateway itself only ever hashes.
"""

import hashlib
import secrets

from pool_gateway.schemas.api_key import DEFAULT_KEY_PREFIX, ApiKey

_SUFFIX_LEN = 4


def hash_api_key(raw_key: str) -> str:
    """
    Hash a raw API key using SHA-256.

    Returns the hex digest string for storage/lookup.
    """
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def generate_api_key(prefix: str = DEFAULT_KEY_PREFIX) -> tuple[str, str]:
    """
    Generate a new API key.

    Returns:
        (raw_key, key_hash) — raw_key is shown once, key_hash is stored.
    """
    random_part = secrets.token_hex(32)  # 64 hex chars = 256 bits
    raw_key = f"{prefix}{random_part}"
    return raw_key, hash_api_key(raw_key)


def new_api_key(name: str, prefix: str = DEFAULT_KEY_PREFIX) -> tuple[str, ApiKey]:
    """Generate a key and the record to hand to Store.create_api_key()."""
    raw_key, key_hash = generate_api_key(prefix)
    record = ApiKey(
        name=name,
        key_hash=key_hash,
        key_full=raw_key,
        key_prefix=prefix,
        key_suffix=raw_key[-_SUFFIX_LEN:],
    )
    return raw_key, record
