"""
Reservation Manager: cycle de vie available -> pending -> sold | available d'un item.

Chaque transition est un compare-and-set (items.repository.transition_status) sur le
statut attendu: deux reserve() concurrents sur le même item ne peuvent pas réussir tous
les deux. La réservation est persistée côté serveur (reserved_at, reserved_by,
reserved_price) pour que release_expired() puisse libérer les paniers abandonnés.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging

from garagesale import config
from garagesale.items import repository as items_repository
from garagesale.items.models import ItemStatus
from garagesale.orders import repository as orders_repository
from garagesale.orders.models import OrderStatus
from garagesale.errors import AuthorizationError, ConflictError, InvalidStateError, NotFoundError
from garagesale.utils.security import subject_of

logger = logging.getLogger(__name__)

_CLEARED_RESERVATION = {"reserved_at": None, "reserved_by": None, "reserved_price": None}

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _load(item_id: str) -> dict:
    item = items_repository.get_item(item_id)
    if not item:
        raise NotFoundError(f"Item {item_id} introuvable")
    return item

def reserve(item_id: str, identity: Optional[Dict[str, Any]]) -> dict:
    """Réserve un item disponible pour l'appelant (available -> pending).
    - AuthError si non authentifié, NotFoundError si absent.
    - ConflictError si l'item n'est plus disponible (déjà réservé ou vendu).
    - Le prix de vente courant est figé dans reserved_price.
    """
    subject = subject_of(identity, "Authentification requise pour réserver un item")
    item = _load(item_id)
    if item.get("status") != ItemStatus.AVAILABLE.value:
        raise ConflictError(f"Item non disponible (statut: {item.get('status')})")

    row = items_repository.transition_status(
        item_id,
        ItemStatus.AVAILABLE.value,
        {
            "status": ItemStatus.PENDING.value,
            "reserved_at": _now().isoformat(),
            "reserved_by": subject,
            "reserved_price": item.get("sale_price"),
        },
    )
    if not row:
        raise ConflictError("Item non disponible (réservé entre-temps)")
    logger.info("reservations.reserve item_id=%s by=%s", item_id, subject)
    return row

def release(item_id: str, identity: Optional[Dict[str, Any]] = None) -> dict:
    """Libère une réservation (pending -> available).
    - Sans identité: appel système (webhook d'échec, balayage).
    - Avec identité: réservée à l'auteur de la réservation ou au propriétaire de l'item.
    - InvalidStateError si l'item n'est pas 'pending'.
    - ConflictError pour un appel utilisateur quand un paiement est en cours sur l'item.
    """
    item = _load(item_id)
    if identity is not None:
        subject = subject_of(identity, "Authentification requise pour libérer un item")
        if subject not in (item.get("reserved_by"), item.get("owner_id")):
            raise AuthorizationError("Vous ne pouvez libérer que vos propres réservations")
    if item.get("status") != ItemStatus.PENDING.value:
        raise InvalidStateError(f"Item non réservé (statut: {item.get('status')})")
    if identity is not None and held_by_open_checkout(item_id):
        raise ConflictError("Paiement en cours pour cet item")

    row = items_repository.transition_status(
        item_id,
        ItemStatus.PENDING.value,
        {"status": ItemStatus.AVAILABLE.value, **_CLEARED_RESERVATION},
    )
    if not row:
        latest = items_repository.get_item(item_id) or {}
        raise InvalidStateError(f"Item non réservé (statut: {latest.get('status')})")
    logger.info("reservations.release item_id=%s", item_id)
    return row

def release_for_order(item_id: str, order_id: str) -> Optional[dict]:
    """Libération suite à l'échec de la commande order_id.
    Retourne None sans rien modifier si une autre commande a encore une session ouverte
    sur l'item (nouveau checkout du même acheteur).
    """
    if held_by_open_checkout(item_id, exclude_order_id=order_id):
        logger.info("reservations.release skipped item_id=%s order_id=%s: autre checkout ouvert", item_id, order_id)
        return None
    return release(item_id)

def _check_sold_by(item: dict, order_id: Optional[str]) -> dict:
    sold_by = item.get("sold_order_id")
    if order_id and sold_by and str(sold_by) != str(order_id):
        raise ConflictError(f"Item {item.get('id')} déjà vendu par la commande {sold_by}")
    return item

def finalize(item_id: str, order_id: Optional[str] = None) -> dict:
    """Marque un item réservé comme vendu (pending -> sold), horodate purchased_at et
    mémorise la commande payée (sold_order_id).
    Un item déjà vendu par la même commande est retourné tel quel (retry du webhook: pas
    de nouvel horodatage); vendu par une autre commande: ConflictError (double paiement).
    """
    item = _load(item_id)
    if item.get("status") == ItemStatus.SOLD.value:
        return _check_sold_by(item, order_id)
    if item.get("status") != ItemStatus.PENDING.value:
        raise InvalidStateError(f"Item non réservé (statut: {item.get('status')})")

    changes = {"status": ItemStatus.SOLD.value, "purchased_at": _now().isoformat()}
    if order_id:
        changes["sold_order_id"] = order_id
    row = items_repository.transition_status(item_id, ItemStatus.PENDING.value, changes)
    if row:
        logger.info("reservations.finalize item_id=%s order_id=%s", item_id, order_id)
        return row
    latest = items_repository.get_item(item_id) or {}
    if latest.get("status") == ItemStatus.SOLD.value:
        return _check_sold_by(latest, order_id)
    raise InvalidStateError(f"Item non réservé (statut: {latest.get('status')})")

def held_by_open_checkout(item_id: str, exclude_order_id: Optional[str] = None) -> bool:
    # Commande pending avec session de paiement: le paiement peut encore aboutir
    for order in orders_repository.list_orders_containing_item(item_id):
        if exclude_order_id and str(order.get("id")) == str(exclude_order_id):
            continue
        if order.get("status") == OrderStatus.PENDING.value and order.get("stripe_session_id"):
            return True
    return False

def release_expired(ttl_minutes: Optional[int] = None, now: Optional[datetime] = None) -> List[str]:
    """
    Balayage de réconciliation: libère les items 'pending' dont la réservation dépasse le TTL.
    - Ignore les items rattachés à un checkout en cours (commande pending avec session).
    - Chaque item est traité indépendamment; un échec est loggé sans interrompre le balayage.
    Retour: identifiants des items libérés.
    """
    ttl = ttl_minutes if ttl_minutes is not None else config.RESERVATION_TTL_MINUTES
    cutoff = (now or _now()) - timedelta(minutes=ttl)
    candidates = items_repository.list_pending_reserved_before(cutoff.isoformat())
    candidates += items_repository.list_pending_without_reservation()

    released: List[str] = []
    for item in candidates:
        item_id = str(item.get("id"))
        try:
            if held_by_open_checkout(item_id):
                continue
            match = {"reserved_at": item["reserved_at"]} if item.get("reserved_at") else None
            row = items_repository.transition_status(
                item_id,
                ItemStatus.PENDING.value,
                {"status": ItemStatus.AVAILABLE.value, **_CLEARED_RESERVATION},
                match=match,
            )
            if row:
                released.append(item_id)
        except Exception:
            logger.exception("reservations.release_expired failed item_id=%s", item_id)
    if released:
        logger.info("reservations.release_expired released=%s ttl_minutes=%s", len(released), ttl)
    return released
