"""System endpoints: public configuration and manual retention sweeps."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Request

from ..dependencies import ChatClientDep, CurrentIdentityDep

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config(client: ChatClientDep) -> dict[str, Any]:
    """Return a sanitized snapshot of runtime configuration.

    Excludes secrets and connection strings.
    """
    config = client.config
    return {
        "app": {"name": config.app_name, "version": config.app_version},
        "messages": {
            "max_length": config.max_message_length,
            "hard_length": config.hard_message_length,
            "cooldown_seconds": config.message_cooldown_seconds,
        },
        "retention": {
            "hours": config.retention_hours,
            "sweeper_enabled": config.sweeper_enabled,
        },
        "media": {"max_bytes": config.media_max_bytes},
    }


@router.post("/sweep")
async def run_sweep(
    request: Request,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> dict[str, Any]:
    """Run a retention sweep now and report what was removed."""
    worker = getattr(request.app.state, "retention_worker", None)
    result = await worker.trigger() if worker is not None else await client.sweeper.sweep()
    return {**asdict(result), "deleted_count": result.deleted_count}
