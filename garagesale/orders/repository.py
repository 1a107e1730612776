"""
Accès aux données 'orders' (Order Ledger).
- Ecritures via service-role: les commandes sont créées/complétées côté serveur (checkout, webhook).
- update_status_if: changement de statut conditionné au statut courant (compare-and-set).
"""
from typing import Any, Dict, List, Optional
import logging
import garagesale.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "orders"

def _first(res) -> Optional[dict]:
    rows = getattr(res, "data", None) or []
    if isinstance(rows, list) and rows:
        return rows[0]
    return None

def insert_order(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(data).execute()
        return _first(res)
    except Exception:
        logger.exception("orders.repository.insert_order failed customer_id=%s", data.get("customer_id"))
        return None

def get_order(order_id: str) -> Optional[dict]:
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", str(order_id))
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        return None

def list_orders_by_customer(customer_id: str) -> List[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("customer_id", customer_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders_by_customer failed customer_id=%s", customer_id)
        return []

def list_orders_containing_item(item_id: str) -> List[dict]:
    """Commandes dont item_ids contient item_id (opérateur @> sur le tableau)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .contains("item_ids", [str(item_id)])
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders_containing_item failed item_id=%s", item_id)
        return []

def update_session_id(order_id: str, session_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update({"stripe_session_id": session_id})
            .eq("id", str(order_id))
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.update_session_id failed id=%s", order_id)
        raise
    return _first(res)

def update_status_if(order_id: str, expected: str, status: str) -> Optional[dict]:
    """UPDATE orders SET status = :status WHERE id = :id AND status = :expected; None si aucune ligne."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update({"status": status})
            .eq("id", str(order_id))
            .eq("status", expected)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.update_status_if failed id=%s expected=%s status=%s", order_id, expected, status)
        raise
    return _first(res)
