"""
Sondes de santé: accès Supabase (DNS puis lecture des tables du vide-grenier) et état
des réservations (items restés 'pending' au-delà du TTL).
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlparse
import logging
import socket

from garagesale import config
import garagesale.infra.supabase_client as supabase_client
from garagesale.items import repository as items_repository
from garagesale.reservations import service as reservations_service

logger = logging.getLogger(__name__)

TABLES = ("garages", "items", "orders")

def _resolve(hostname: Optional[str]) -> Dict[str, Any]:
    if not hostname:
        return {"dns_ok": None, "dns_error": None}
    try:
        socket.getaddrinfo(hostname, 443)
        return {"dns_ok": True, "dns_error": None}
    except OSError as e:
        return {"dns_ok": False, "dns_error": str(e)}

def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        logger.warning("health.supabase table=%s: %s", name, e)
        return {"ok": False, "error": str(e)}

def health_supabase_info() -> Dict[str, Any]:
    hostname = urlparse(config.SUPABASE_URL).hostname if config.SUPABASE_URL else None
    info: Dict[str, Any] = {
        "supabase_url": config.SUPABASE_URL,
        "hostname": hostname,
        **_resolve(hostname),
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_supabase()
    except Exception as e:
        info["error"] = str(e)
        return info
    info["tables"] = {name: _check_table(client, name) for name in TABLES}
    info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
    return info

def health_reservations_info(now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Réservations expirées encore 'pending'. Celles rattachées à un checkout ouvert
    attendent l'événement Stripe; les autres seront libérées au prochain balayage.
    Un compteur 'overdue' élevé avec le balayage actif signale un balayeur bloqué.
    """
    ttl = config.RESERVATION_TTL_MINUTES
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=ttl)
    stale = items_repository.list_pending_reserved_before(cutoff.isoformat())
    awaiting = [i for i in stale if reservations_service.held_by_open_checkout(str(i.get("id")))]
    return {
        "ttl_minutes": ttl,
        "sweep_enabled": config.RESERVATION_SWEEP_ENABLED,
        "sweep_interval_seconds": config.RESERVATION_SWEEP_INTERVAL_SECONDS,
        "expired": len(stale),
        "awaiting_payment": len(awaiting),
        "overdue": len(stale) - len(awaiting),
    }
