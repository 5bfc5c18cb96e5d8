"""Drop cached verification outcomes so the next job asks the authority again.

Usage:
    python -m scripts.invalidate_merchant_cache <merchant_id> [merchant_id ...]
Uses the cache backend configured by CACHE_BACKEND / REDIS_*.
"""

import asyncio
import sys

from merchant_verification.core.config import get_settings
from merchant_verification.domain.exceptions import CacheUnavailableException
from merchant_verification.infrastructure.cache import create_result_cache


async def main() -> None:
    merchant_ids = sys.argv[1:]
    if not merchant_ids:
        print("Usage: invalidate_merchant_cache <merchant_id> [merchant_id ...]", file=sys.stderr)
        sys.exit(1)

    cache = create_result_cache(get_settings())
    await cache.connect()
    try:
        for merchant_id in merchant_ids:
            previous = await cache.get(merchant_id)
            await cache.delete(merchant_id)
            print(f"{merchant_id}: cleared (was {previous})")
    except (CacheUnavailableException, ValueError) as e:
        print(f"Could not invalidate: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await cache.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
