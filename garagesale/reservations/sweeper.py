"""
Tâche de fond: appelle reservations.service.release_expired à intervalle régulier.
Démarrée/arrêtée par le lifespan de l'application (app_setup.lifespan).
"""
import asyncio
import logging
from typing import Optional

from garagesale.reservations import service as reservations_service

logger = logging.getLogger(__name__)

async def run_sweeper(interval_seconds: int, ttl_minutes: Optional[int] = None) -> None:
    """Boucle infinie jusqu'à annulation; le balayage synchrone (Supabase) tourne dans un thread."""
    logger.info("reservations.sweeper started interval=%ss", interval_seconds)
    try:
        while True:
            try:
                await asyncio.to_thread(reservations_service.release_expired, ttl_minutes)
            except Exception:
                logger.exception("reservations.sweeper iteration failed")
            await asyncio.sleep(interval_seconds)
    except asyncio.CancelledError:
        logger.info("reservations.sweeper stopped")
        raise

def start_sweeper(interval_seconds: int, ttl_minutes: Optional[int] = None) -> asyncio.Task:
    return asyncio.create_task(run_sweeper(interval_seconds, ttl_minutes), name="reservation-sweeper")

async def stop_sweeper(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
