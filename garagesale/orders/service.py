"""Couche service du Order Ledger.
Rôles:
- Enregistrer une tentative d'achat (commande 'pending') agrégeant un ou plusieurs items.
- Rattacher l'identifiant de session de paiement renvoyé par la passerelle.
- Finaliser le statut (completed/failed) de manière idempotente: réappliquer le même
  statut est un no-op, un statut terminal ne change plus.
"""
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from garagesale.orders import repository
from garagesale.orders.models import ALLOWED_TRANSITIONS, OrderStatus
from garagesale.items import repository as items_repository
from garagesale.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from garagesale.utils.security import subject_of

logger = logging.getLogger(__name__)

def _parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Statut de commande inconnu: {value}")

def create_order(customer_id: str, item_ids: Iterable[str], total_amount: float) -> dict:
    """Crée une commande 'pending' sans session de paiement.
    - ValidationError: liste d'items vide, total <= 0.
    - NotFoundError: le premier item introuvable est cité dans le message.
    """
    ids: List[str] = [str(i) for i in (item_ids or [])]
    if not ids:
        raise ValidationError("La commande doit contenir au moins un item")
    if total_amount is None or total_amount <= 0:
        raise ValidationError("Le montant total doit être supérieur à zéro")
    for item_id in ids:
        if not items_repository.get_item(item_id):
            raise NotFoundError(f"Item {item_id} introuvable")

    order = repository.insert_order({
        "customer_id": customer_id,
        "item_ids": ids,
        "stripe_session_id": "",
        "total_amount": total_amount,
        "status": OrderStatus.PENDING.value,
    })
    if not order:
        raise RuntimeError("Impossible de créer la commande")
    logger.info("orders.create id=%s customer_id=%s items=%s total=%s", order.get("id"), customer_id, len(ids), total_amount)
    return order

def attach_payment_session(order_id: str, session_id: str) -> dict:
    session_id = (session_id or "").strip()
    if not session_id:
        raise ValidationError("L'identifiant de session de paiement est requis")
    if not repository.get_order(order_id):
        raise NotFoundError("Commande introuvable")
    updated = repository.update_session_id(order_id, session_id)
    if not updated:
        raise NotFoundError("Commande introuvable")
    return updated

def set_status(order_id: str, status: Union[str, OrderStatus]) -> dict:
    """Transition gardée du statut de commande.
    - Même statut: no-op (retries du webhook).
    - pending -> completed | failed; tout autre changement: InvalidStateError.
    """
    target = _parse_status(status)
    order = repository.get_order(order_id)
    if not order:
        raise NotFoundError("Commande introuvable")
    try:
        current = OrderStatus(order.get("status"))
    except ValueError:
        raise InvalidStateError(f"Statut courant invalide: {order.get('status')}")

    if current == target:
        return order
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStateError(f"Transition {current.value} -> {target.value} interdite")

    updated = repository.update_status_if(order_id, current.value, target.value)
    if updated:
        logger.info("orders.set_status id=%s %s->%s", order_id, current.value, target.value)
        return updated

    # Modifiée entre la lecture et l'écriture
    latest = repository.get_order(order_id) or {}
    if latest.get("status") == target.value:
        return latest
    raise InvalidStateError(f"Commande modifiée concurremment (statut={latest.get('status')})")

def find_by_id(order_id: str) -> Optional[dict]:
    return repository.get_order(order_id)

def find_by_customer(customer_id: str) -> List[dict]:
    return repository.list_orders_by_customer(customer_id)

def find_containing_item(item_id: str) -> List[dict]:
    return repository.list_orders_containing_item(item_id)

# Lectures exposées par l'API (contrôle de propriété)

def get_order_for(identity: Optional[Dict[str, Any]], order_id: str) -> dict:
    subject = subject_of(identity)
    order = repository.get_order(order_id)
    # Une commande d'un autre client est traitée comme inexistante
    if not order or order.get("customer_id") != subject:
        raise NotFoundError("Commande introuvable")
    return order

def orders_for_item(identity: Optional[Dict[str, Any]], item_id: str) -> List[dict]:
    subject = subject_of(identity)
    item = items_repository.get_item(item_id)
    if not item:
        raise NotFoundError("Item introuvable")
    if item.get("owner_id") != subject:
        raise AuthorizationError("Seul le propriétaire de l'item peut consulter ses commandes")
    return find_containing_item(item_id)
