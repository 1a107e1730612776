"""
Lecture des événements Stripe (webhook): session Checkout et jeton de corrélation orderId.
"""
from typing import Any, Dict, Optional

# module garagesale.payments.metadata
def extract_session(event: Dict[str, Any]) -> Dict[str, Any]:
    """Retourne event.data.object (la session Checkout) ou {}."""
    if not isinstance(event, dict):
        return {}
    return ((event.get("data") or {}).get("object")) or {}

def extract_order_id(event: Dict[str, Any]) -> Optional[str]:
    """
    Extrait l'identifiant de commande depuis event.data.object.metadata.orderId.
    Retourne None si absent (ex: événements de test envoyés depuis le dashboard).
    """
    meta = extract_session(event).get("metadata") or {}
    raw = meta.get("orderId") or meta.get("order_id")
    raw = str(raw or "").strip()
    return raw or None
