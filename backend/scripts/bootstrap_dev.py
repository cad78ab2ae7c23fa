"""
Dev bootstrap script — create an API key for local development.

Usage (from backend/):
    python -m scripts.bootstrap_dev [key-name]

This will:
  1. Open the store at DATABASE_URL (creating the schema if needed)
  2. Generate an API key and store its hash
  3. Print the raw key

Copy the key now; afterwards only its prefix/suffix are meant for display.
"""

import asyncio
import sys

from pool_gateway.auth.hashing import new_api_key
from pool_gateway.core.config import settings
from pool_gateway.services.store import Store


async def main(name: str) -> None:
    store = await Store.open(settings.DATABASE_URL)
    try:
        raw_key, record = new_api_key(name)
        api_key = await store.create_api_key(record)
    finally:
        await store.close()

    # ── Print results ───────────────────────────────────────
    print()
    print("=" * 60)
    print("  Dev Bootstrap Complete")
    print("=" * 60)
    print()
    print(f"  Key name:   {api_key.name}")
    print(f"  Key ID:     {api_key.id}")
    print(f"  Display:    {api_key.key_prefix}…{api_key.key_suffix}")
    print()
    print(f"  API Key:    {raw_key}")
    print()
    print("  ⚠  Copy this key now.")
    print("=" * 60)
    print()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "dev"))
