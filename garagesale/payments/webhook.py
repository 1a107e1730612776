"""
Webhook Reconciler: applique les événements de paiement (déjà vérifiés) aux commandes
et aux items.

- checkout.session.completed (payé) / async_payment_succeeded: commande completed, items sold
- checkout.session.async_payment_failed / expired: commande failed, items remis en vente
- checkout.session.completed avec payment_status 'unpaid': paiement différé, rien à faire
  avant l'événement async_payment_*.

Tous les effets sont idempotents (transitions gardées): un événement rejoué ne change rien.
Un item en échec n'interrompt pas le traitement des autres; il est listé dans failed_items.
Un item vendu par une autre commande est aussi listé dans failed_items (double paiement).
"""
from typing import Any, Callable, Dict, List
import logging

from garagesale.errors import DomainError
from garagesale.orders import service as orders_service
from garagesale.orders.models import OrderStatus
from garagesale.payments import metadata as payments_metadata
from garagesale.reservations import service as reservations_service

logger = logging.getLogger(__name__)

EVENT_COMPLETED = "checkout.session.completed"
EVENT_ASYNC_SUCCEEDED = "checkout.session.async_payment_succeeded"
EVENT_ASYNC_FAILED = "checkout.session.async_payment_failed"
EVENT_EXPIRED = "checkout.session.expired"

SUCCESS_EVENTS = (EVENT_COMPLETED, EVENT_ASYNC_SUCCEEDED)
FAILURE_EVENTS = (EVENT_ASYNC_FAILED, EVENT_EXPIRED)

def _ignored(kind: Any, reason: str) -> Dict[str, Any]:
    logger.info("payments.webhook ignored type=%s reason=%s", kind, reason)
    return {"status": "ignored", "reason": reason}

def _apply_to_items(order: dict, action: Callable[[str], Any], label: str) -> List[str]:
    failed: List[str] = []
    for item_id in order.get("item_ids") or []:
        try:
            action(str(item_id))
        except DomainError as e:
            logger.warning("payments.webhook %s skipped item_id=%s order_id=%s: %s", label, item_id, order.get("id"), e.message)
            failed.append(str(item_id))
        except Exception:
            logger.exception("payments.webhook %s failed item_id=%s order_id=%s", label, item_id, order.get("id"))
            failed.append(str(item_id))
    return failed

def _set_order_status(order: dict, status: OrderStatus) -> None:
    try:
        orders_service.set_status(str(order.get("id")), status)
    except Exception:
        logger.exception("payments.webhook set_status failed order_id=%s status=%s", order.get("id"), status.value)

def _complete(order: dict) -> List[str]:
    order_id = str(order.get("id"))
    _set_order_status(order, OrderStatus.COMPLETED)
    return _apply_to_items(order, lambda item_id: reservations_service.finalize(item_id, order_id), "finalize")

def _fail(order: dict) -> List[str]:
    # Un item repris par un checkout plus récent reste réservé pour cette session
    order_id = str(order.get("id"))
    failed = _apply_to_items(order, lambda item_id: reservations_service.release_for_order(item_id, order_id), "release")
    _set_order_status(order, OrderStatus.FAILED)
    return failed

def handle_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Traite un événement vérifié. Ne lève pas: toute issue (commande inconnue, item
    supprimé, transition refusée) est loggée et le résultat est renvoyé à l'appelant.
    Retour: {"status": "ok", "order_id", "failed_items"} ou {"status": "ignored", "reason"}
    """
    kind = (event or {}).get("type")
    if kind not in SUCCESS_EVENTS and kind not in FAILURE_EVENTS:
        return _ignored(kind, "unhandled_event_type")

    session = payments_metadata.extract_session(event)
    if kind == EVENT_COMPLETED and session.get("payment_status") == "unpaid":
        return _ignored(kind, "awaiting_async_payment")

    order_id = payments_metadata.extract_order_id(event)
    if not order_id:
        return _ignored(kind, "missing_order_id")
    try:
        order = orders_service.find_by_id(order_id)
    except Exception:
        logger.exception("payments.webhook order lookup failed order_id=%s", order_id)
        order = None
    if not order:
        return _ignored(kind, "unknown_order")

    failed = _complete(order) if kind in SUCCESS_EVENTS else _fail(order)
    logger.info("payments.webhook type=%s order_id=%s items=%s failed=%s", kind, order_id, len(order.get("item_ids") or []), len(failed))
    return {"status": "ok", "order_id": order_id, "failed_items": failed}
