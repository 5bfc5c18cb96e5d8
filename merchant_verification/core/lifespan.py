"""Application lifespan: startup and shutdown.

Single place for API startup/shutdown logic. Builds the pipeline components
(cache, queue, authority, notifier, shared HTTP client), optionally starts an
in-process worker task, and wires telemetry.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from merchant_verification.core.components import PipelineComponents
from merchant_verification.core.config import get_settings
from merchant_verification.shared.telemetry.telemetry import (
    init_telemetry,
    shutdown_telemetry,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: telemetry (if enabled), pipeline components, in-process
    worker (if RUN_WORKER_IN_PROCESS). Shutdown runs in reverse.
    Components already set on app.state (tests) are reused and not closed here.
    """
    settings = get_settings()

    # ---- Startup ----
    telemetry = init_telemetry(settings)
    if telemetry is not None:
        telemetry.instrument_fastapi(app)

    owns_components = getattr(app.state, "components", None) is None
    if owns_components:
        app.state.components = await PipelineComponents.create(settings)
    components: PipelineComponents = app.state.components

    app.state.worker_stop = None
    app.state.worker_task = None
    if settings.run_worker_in_process:
        stop_event = asyncio.Event()
        app.state.worker_stop = stop_event
        app.state.worker_task = asyncio.create_task(components.worker().run(stop_event))
        logger.info("In-process verification worker started")

    yield

    # ---- Shutdown ----
    worker_task = app.state.worker_task
    if worker_task is not None:
        app.state.worker_stop.set()
        try:
            await asyncio.wait_for(worker_task, timeout=settings.job_timeout_seconds)
        except TimeoutError:
            worker_task.cancel()
            try:
                await worker_task
            except asyncio.CancelledError:
                pass
        logger.info("In-process verification worker stopped")

    if owns_components:
        await components.close()
        app.state.components = None

    shutdown_telemetry()
