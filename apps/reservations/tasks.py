"""Celery tasks for the reservations domain."""

from __future__ import annotations

from celery import shared_task  # type: ignore

from .sweeper import HoldSweeper


# ============================================================================
# PERIODIC TASKS (run by Celery Beat, see config/celery.py)
# ============================================================================

@shared_task(name="reservations.sweep_expired_holds")
def sweep_expired_holds() -> dict[str, int]:
    """
    Expire active holds whose expires_at has passed.

    Returns:
        dict: {"expired": n, "failed": m}
    """
    return HoldSweeper().tick()
