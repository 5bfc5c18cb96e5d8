"""Print verification queue counts (pending, in flight, delayed, dead letter).

Usage:
    python -m scripts.queue_stats
Reads REDIS_* and QUEUE_NAME from the environment like the API and worker.
"""

import asyncio
import sys

from merchant_verification.core.config import get_settings
from merchant_verification.domain.exceptions import QueueUnavailableException
from merchant_verification.infrastructure.queue import create_job_queue


async def main() -> None:
    settings = get_settings()
    queue = create_job_queue(settings)
    try:
        await queue.connect()
        stats = await queue.stats()
    except QueueUnavailableException as e:
        print(f"Queue unavailable: {e.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        await queue.disconnect()

    print(f"Queue {settings.queue_name} ({settings.queue_backend}):")
    for state, count in stats.items():
        print(f"  {state}: {count}")


if __name__ == "__main__":
    asyncio.run(main())
