"""
Accès aux données 'items' (Item Store).
- Lectures via le client anon, écritures via le client service-role.
- transition_status: seule voie de changement de statut, en compare-and-set
  (UPDATE ... WHERE id = :id AND status = :expected) exécuté atomiquement par Postgres.
"""
from typing import Any, Dict, List, Optional
import logging
import garagesale.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "items"

def _first(res) -> Optional[dict]:
    rows = getattr(res, "data", None) or []
    if isinstance(rows, list) and rows:
        return rows[0]
    return None

def get_item(item_id: str) -> Optional[dict]:
    if not item_id:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", str(item_id))
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("items.repository.get_item failed id=%s", item_id)
        return None

def list_items(status: Optional[str] = None, garage_id: Optional[str] = None) -> List[dict]:
    try:
        query = supabase_client.get_supabase().table(TABLE).select("*")
        if garage_id:
            query = query.eq("garage_id", str(garage_id))
        if status:
            query = query.eq("status", status)
        res = query.execute()
        return res.data or []
    except Exception:
        logger.exception("items.repository.list_items failed status=%s garage_id=%s", status, garage_id)
        return []

def get_items_by_garage(garage_id: str) -> List[dict]:
    return list_items(garage_id=garage_id)

def get_items_by_status(status: str) -> List[dict]:
    return list_items(status=status)

def count_items_in_garage(garage_id: str) -> int:
    return len(get_items_by_garage(garage_id))

def search_items(
    search_term: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    status: Optional[str] = None,
) -> List[dict]:
    """
    Recherche d'items:
    - search_term: correspondance insensible à la casse sur le nom (ilike %terme%)
    - min_price / max_price: bornes inclusives sur sale_price
    - status: filtre exact
    """
    try:
        query = supabase_client.get_supabase().table(TABLE).select("*")
        term = (search_term or "").strip()
        if term:
            query = query.ilike("name", f"%{term}%")
        if min_price is not None:
            query = query.gte("sale_price", min_price)
        if max_price is not None:
            query = query.lte("sale_price", max_price)
        if status:
            query = query.eq("status", status)
        res = query.execute()
        return res.data or []
    except Exception:
        logger.exception("items.repository.search_items failed term=%s", search_term)
        return []

def create_item(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(data).execute()
        return _first(res)
    except Exception:
        logger.exception("items.repository.create_item failed data=%s", data)
        return None

def update_item(item_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(data)
            .eq("id", str(item_id))
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("items.repository.update_item failed id=%s data=%s", item_id, data)
        return None

def delete_item(item_id: str) -> bool:
    try:
        supabase_client.get_service_supabase().table(TABLE).delete().eq("id", str(item_id)).execute()
        return True
    except Exception:
        logger.exception("items.repository.delete_item failed id=%s", item_id)
        return False

def transition_status(
    item_id: str,
    expected: str,
    changes: Dict[str, Any],
    match: Optional[Dict[str, Any]] = None,
) -> Optional[dict]:
    """
    Compare-and-set sur le statut d'un item.
    - N'écrit que si la ligne a encore le statut `expected`
      (et les valeurs de `match`, ex. reserved_at pour le balayage).
    - Retourne la ligne mise à jour, ou None si aucune ligne ne correspond
      (item absent ou statut déjà modifié par un autre appel).
    - Les erreurs Supabase sont propagées: l'appelant doit distinguer échec et conflit.
    """
    try:
        query = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(changes)
            .eq("id", str(item_id))
            .eq("status", expected)
        )
        for column, value in (match or {}).items():
            query = query.eq(column, value)
        res = query.execute()
    except Exception:
        logger.exception("items.repository.transition_status failed id=%s expected=%s", item_id, expected)
        raise
    return _first(res)

def list_pending_reserved_before(cutoff_iso: str) -> List[dict]:
    """Items 'pending' dont la réservation (reserved_at) est antérieure à cutoff_iso."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("status", "pending")
            .lt("reserved_at", cutoff_iso)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("items.repository.list_pending_reserved_before failed cutoff=%s", cutoff_iso)
        return []

def list_pending_without_reservation() -> List[dict]:
    """Items 'pending' sans reserved_at (réservations antérieures au suivi côté serveur)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("status", "pending")
            .is_("reserved_at", "null")
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("items.repository.list_pending_without_reservation failed")
        return []
