"""FastAPI application exposing the reload endpoint."""

import asyncio
import logging

from fastapi import FastAPI, HTTPException, Query, status
from pydantic import BaseModel

from hotreload import __version__
from hotreload.reload.manager import Manager

logger = logging.getLogger(__name__)

HTTP_TRIGGER_ID = "http"


class TriggerAccepted(BaseModel):
    """Response for an accepted reload trigger."""

    trigger_id: str
    accepted: bool = True


def create_app(manager: Manager, trigger_queue: "asyncio.Queue[str]") -> FastAPI:
    """Create the reload API.

    Args:
        manager: Manager whose status is reported.
        trigger_queue: Queue read by a NotifierFromQueue registered on the
            manager. It should be bounded (maxsize=1) so a trigger that is
            already pending rejects new ones instead of queuing them.
    """
    app = FastAPI(
        title="hotreload",
        description="Hot-reload trigger endpoint",
        version=__version__,
    )
    app.state.manager = manager
    app.state.trigger_queue = trigger_queue

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.post("/-/reload", status_code=status.HTTP_202_ACCEPTED)
    async def trigger_reload(
        trigger_id: str = Query(default=HTTP_TRIGGER_ID, alias="id", min_length=1),
    ) -> TriggerAccepted:
        """Ask the manager to run a reload cycle."""
        try:
            trigger_queue.put_nowait(trigger_id)
        except asyncio.QueueFull:
            logger.info(f"Reload trigger {trigger_id!r} rejected, one is already pending")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A reload trigger is already pending",
            ) from None
        logger.info(f"Reload triggered over HTTP: {trigger_id!r}")
        return TriggerAccepted(trigger_id=trigger_id)

    @app.get("/-/status")
    async def reload_status() -> dict:
        """Current manager state."""
        return manager.status()

    return app
