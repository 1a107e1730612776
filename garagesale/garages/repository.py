from typing import List, Optional, Dict, Any
import logging
import garagesale.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "garages"

def list_public_garages() -> List[dict]:
    try:
        res = supabase_client.get_supabase().table(TABLE).select("*").eq("is_public", True).execute()
        return res.data or []
    except Exception:
        logger.exception("garages.repository.list_public_garages failed")
        return []

def list_garages_by_owner(owner_id: str) -> List[dict]:
    if not owner_id:
        return []
    try:
        res = supabase_client.get_supabase().table(TABLE).select("*").eq("owner_id", owner_id).execute()
        return res.data or []
    except Exception:
        logger.exception("garages.repository.list_garages_by_owner failed owner_id=%s", owner_id)
        return []

def get_garage(garage_id: str) -> Optional[dict]:
    if not garage_id:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", str(garage_id))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("garages.repository.get_garage failed id=%s", garage_id)
        return None

def create_garage(data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(data).execute()
        rows = getattr(res, "data", None) or []
        return rows[0] if isinstance(rows, list) and rows else None
    except Exception:
        logger.exception("garages.repository.create_garage failed data=%s", data)
        return None

def update_garage(garage_id: str, data: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(data)
            .eq("id", str(garage_id))
            .execute()
        )
        rows = getattr(res, "data", None) or []
        return rows[0] if isinstance(rows, list) and rows else None
    except Exception:
        logger.exception("garages.repository.update_garage failed id=%s data=%s", garage_id, data)
        return None

def delete_garage(garage_id: str) -> bool:
    try:
        supabase_client.get_service_supabase().table(TABLE).delete().eq("id", str(garage_id)).execute()
        return True
    except Exception:
        logger.exception("garages.repository.delete_garage failed id=%s", garage_id)
        return False
