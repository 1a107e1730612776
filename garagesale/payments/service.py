"""
Checkout Orchestrator: transforme un panier d'items réservés en commande 'pending'
et en session de paiement hébergée.

Étapes (create_checkout_session):
  1) Authentification: l'identité client doit être celle de l'utilisateur connecté
  2) Chargement des items (NotFoundError si l'un d'eux a disparu)
  3) Chaque item doit être 'pending' et réservé par ce client (ConflictError sinon)
  4) Total = somme des prix figés à la réservation
  5) Création de la commande 'pending' (Order Ledger)
  6) Création de la session via la passerelle injectée
  7) Rattachement de l'identifiant de session à la commande

Si la passerelle échoue, la commande reste 'pending' sans session et les items restent
réservés; le balayage des réservations expirées les remet en vente.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

from garagesale import config
from garagesale.errors import AuthError, ConflictError, NotFoundError, PaymentGatewayError, ValidationError
from garagesale.items import repository as items_repository
from garagesale.items.models import ItemStatus
from garagesale.orders import service as orders_service
from garagesale.payments import cart
from garagesale.payments.stripe_client import PaymentGateway
from garagesale.utils.security import subject_of

logger = logging.getLogger(__name__)

def _site_url(path: str) -> str:
    return f"{config.SITE_URL.rstrip('/')}/{path.lstrip('/')}"

def _load_checkout_items(item_ids: List[str], subject: str) -> List[dict]:
    items: List[dict] = []
    for item_id in item_ids:
        item = items_repository.get_item(item_id)
        if not item:
            raise NotFoundError(f"Item {item_id} introuvable")
        if item.get("status") != ItemStatus.PENDING.value:
            raise ConflictError(f"L'item {item.get('name') or item_id} n'est pas réservé (statut: {item.get('status')})")
        reserved_by = item.get("reserved_by")
        if reserved_by and reserved_by != subject:
            raise ConflictError(f"L'item {item.get('name') or item_id} est réservé par un autre client")
        items.append(item)
    return items

def create_checkout_session(
    gateway: PaymentGateway,
    cart_item_ids: Iterable[Any],
    customer_id: str,
    identity: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Retour: {"session_id": "cs_...", "url": "https://...", "order_id": "<uuid>"}
    Erreurs: AuthError, ValidationError (panier vide), NotFoundError, ConflictError,
    PaymentGatewayError (commande laissée 'pending' sans session).
    """
    subject = subject_of(identity, "Authentification requise pour le paiement")
    if str(customer_id or "") != subject:
        raise AuthError("L'identité client ne correspond pas à l'utilisateur connecté")

    item_ids = cart.unique_ids(cart_item_ids)
    if not item_ids:
        raise ValidationError("Le panier est vide")

    items = _load_checkout_items(item_ids, subject)
    total = cart.cart_total(items)
    order = orders_service.create_order(subject, item_ids, total)
    order_id = str(order.get("id"))

    try:
        session = gateway.create_session(
            line_items=cart.to_line_items(items, gateway.currency),
            success_url=_site_url(config.CHECKOUT_SUCCESS_PATH),
            cancel_url=_site_url(config.CHECKOUT_CANCEL_PATH),
            metadata=cart.make_metadata(order_id, subject),
            customer_email=(identity or {}).get("email"),
        )
    except PaymentGatewayError:
        logger.error("payments.checkout gateway failure order_id=%s left pending", order_id)
        raise

    orders_service.attach_payment_session(order_id, session["id"])
    logger.info("payments.checkout order_id=%s session_id=%s items=%s total=%s", order_id, session["id"], len(item_ids), total)
    return {"session_id": session["id"], "url": session.get("url"), "order_id": order_id}
