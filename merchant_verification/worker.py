"""Verification worker process.

Usage:
    merchant-verification-worker
    python -m merchant_verification.worker

Leases jobs from the queue until SIGINT/SIGTERM. The job in hand finishes
(or times out) before the process exits; unacked leases expire and are
re-delivered to another worker.
"""

import asyncio
import logging
import signal

from merchant_verification.core.components import PipelineComponents
from merchant_verification.core.config import get_settings
from merchant_verification.shared.telemetry.logging import setup_logging
from merchant_verification.shared.telemetry.telemetry import (
    init_telemetry,
    shutdown_telemetry,
)

logger = logging.getLogger(__name__)


async def run() -> None:
    """Build components, run the worker loop, close components on exit."""
    settings = get_settings()
    init_telemetry(settings, service_suffix="-worker")
    components = await PipelineComponents.create(settings)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops
            pass

    try:
        await components.worker().run(stop_event)
    finally:
        await components.close()
        shutdown_telemetry()
        logger.info("Verification worker exited")


def main() -> None:
    setup_logging("worker")
    asyncio.run(run())


if __name__ == "__main__":
    main()
