"""Presentation-layer dependency injection.

Routes depend on these providers, never on app.state or infrastructure
modules directly. Components are built by the lifespan (or set by tests).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from merchant_verification.application.interfaces.services import IJobQueue
from merchant_verification.core.components import PipelineComponents
from merchant_verification.domain.exceptions import QueueUnavailableException


def get_components(request: Request) -> PipelineComponents:
    """Return the pipeline components for this app.

    Raises:
        QueueUnavailableException: Startup did not build components.
    """
    components = getattr(request.app.state, "components", None)
    if components is None:
        raise QueueUnavailableException("resolve", "pipeline not initialized")
    return components


def get_job_queue(
    components: Annotated[PipelineComponents, Depends(get_components)],
) -> IJobQueue:
    return components.queue
