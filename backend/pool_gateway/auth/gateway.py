"""
API key gateway — decides whether a request may proceed.

Flow:
  1. Extract the credential: x-api-key header, else "Bearer <token>"
  2. Empty → reject as missing (the store is not touched)
  3. Hash the credential (SHA-256) and look it up by hash
  4. Unknown, disabled, or lookup failure → reject as invalid
  5. Accept, and hand the last_used_at write to the background runner

Security:
  • Disabled keys are indistinguishable from unknown keys to the caller
  • Raw keys are NEVER logged — at most a short hash prefix
  • Store errors never reach the client; they become "invalid api key"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pool_gateway.auth.errors import INVALID_API_KEY, MISSING_API_KEY, AuthenticationError
from pool_gateway.auth.hashing import hash_api_key
from pool_gateway.core.background import BackgroundRunner
from pool_gateway.schemas.api_key import ApiKey
from pool_gateway.services.errors import StoreError
from pool_gateway.services.store import Store

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"
AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "


def extract_api_key(headers: Mapping[str, str]) -> str:
    """Return the presented credential, or "" if there is none."""
    key = (headers.get(API_KEY_HEADER) or "").strip()
    if key:
        return key

    authorization = (headers.get(AUTHORIZATION_HEADER) or "").strip()
    if authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip()

    return ""


class ApiKeyGateway:
    """Validates credentials against the Store."""

    def __init__(self, store: Store, runner: BackgroundRunner) -> None:
        self._store = store
        self._runner = runner

    async def validate(self, raw_key: str) -> ApiKey | None:
        """
        Resolve ``raw_key`` to an enabled ApiKey, or None.

        On success exactly one last_used_at write is submitted to the
        background runner; it is not awaited.
        """
        key_hash = hash_api_key(raw_key)

        try:
            api_key = await self._store.get_api_key_by_hash(key_hash)
        except StoreError:
            logger.warning("API key lookup failed for hash %s…", key_hash[:8], exc_info=True)
            return None

        if api_key is None:
            logger.debug("Rejected unknown API key (hash %s…)", key_hash[:8])
            return None
        if not api_key.enabled:
            logger.debug("Rejected disabled API key id=%s", api_key.id)
            return None

        self._runner.submit(
            self._store.touch_api_key(api_key.id),
            name=f"touch-api-key-{api_key.id}",
        )
        return api_key

    async def authenticate(self, headers: Mapping[str, str]) -> ApiKey:
        """
        Allow or deny one request.

        Returns the authenticated ApiKey.

        Raises:
            AuthenticationError: MISSING_API_KEY when no credential was
                presented, INVALID_API_KEY otherwise.
        """
        raw_key = extract_api_key(headers)
        if not raw_key:
            raise AuthenticationError(MISSING_API_KEY)

        api_key = await self.validate(raw_key)
        if api_key is None:
            raise AuthenticationError(INVALID_API_KEY)
        return api_key
