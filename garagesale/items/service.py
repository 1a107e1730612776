"""
Cas d'usage 'items' (catalogue).
- Création/mise à jour/suppression réservées au propriétaire (garage pour la création, item ensuite).
- Le statut n'est jamais modifiable ici: seules les transitions du Reservation Manager le changent.
"""
from typing import Any, Dict, List, Optional
import logging

from garagesale.items import repository
from garagesale.items.models import ItemStatus
from garagesale.garages import repository as garages_repository
from garagesale.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from garagesale.utils.security import subject_of

logger = logging.getLogger(__name__)

def _validate_prices(initial_price: float, sale_price: float) -> None:
    if initial_price is None or sale_price is None or initial_price <= 0 or sale_price <= 0:
        raise ValidationError("Les prix doivent être supérieurs à zéro")
    if sale_price > initial_price:
        raise ValidationError("Le prix de vente ne peut pas dépasser le prix initial")

def get_item(item_id: str) -> Optional[dict]:
    return repository.get_item(item_id)

def list_items(status: Optional[ItemStatus] = None, garage_id: Optional[str] = None) -> List[dict]:
    return repository.list_items(status=status.value if status else None, garage_id=garage_id)

def get_items_by_garage(garage_id: str) -> List[dict]:
    return repository.get_items_by_garage(garage_id)

def get_items_by_status(status: ItemStatus) -> List[dict]:
    return repository.get_items_by_status(status.value)

def search_items(
    search_term: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    status: Optional[ItemStatus] = None,
) -> List[dict]:
    return repository.search_items(
        search_term=search_term,
        min_price=min_price,
        max_price=max_price,
        status=status.value if status else None,
    )

def create_item(
    identity: Optional[Dict[str, Any]],
    garage_id: str,
    name: str,
    image_url: str,
    initial_price: float,
    sale_price: float,
) -> dict:
    """Ajoute un item 'available' dans un garage de l'appelant.
    - AuthError si non authentifié, NotFoundError si garage absent,
      AuthorizationError si le garage appartient à un autre utilisateur.
    - ValidationError: nom ou image vides, prix <= 0, prix de vente > prix initial.
    """
    subject = subject_of(identity, "Authentification requise pour créer un item")
    garage = garages_repository.get_garage(garage_id)
    if not garage:
        raise NotFoundError("Garage introuvable")
    if garage.get("owner_id") != subject:
        raise AuthorizationError("Vous ne pouvez ajouter des items qu'à vos propres garages")

    name = (name or "").strip()
    image_url = (image_url or "").strip()
    if not name:
        raise ValidationError("Le nom de l'item est requis")
    if not image_url:
        raise ValidationError("L'URL de l'image est requise")
    _validate_prices(initial_price, sale_price)

    created = repository.create_item({
        "garage_id": str(garage_id),
        "owner_id": subject,
        "name": name,
        "image_url": image_url,
        "initial_price": initial_price,
        "sale_price": sale_price,
        "status": ItemStatus.AVAILABLE.value,
    })
    if not created:
        raise RuntimeError("Echec de création de l'item")
    logger.info("items.create id=%s garage_id=%s", created.get("id"), garage_id)
    return created

def _load_owned(identity: Optional[Dict[str, Any]], item_id: str, action: str) -> dict:
    subject = subject_of(identity, f"Authentification requise pour {action} un item")
    item = repository.get_item(item_id)
    if not item:
        raise NotFoundError("Item introuvable")
    if item.get("owner_id") != subject:
        raise AuthorizationError(f"Vous ne pouvez {action} que vos propres items")
    return item

def update_item(
    identity: Optional[Dict[str, Any]],
    item_id: str,
    name: Optional[str] = None,
    image_url: Optional[str] = None,
    initial_price: Optional[float] = None,
    sale_price: Optional[float] = None,
) -> dict:
    item = _load_owned(identity, item_id, "modifier")
    updates: Dict[str, Any] = {}
    if name is not None:
        if not name.strip():
            raise ValidationError("Le nom de l'item ne peut pas être vide")
        updates["name"] = name.strip()
    if image_url is not None:
        if not image_url.strip():
            raise ValidationError("L'URL de l'image ne peut pas être vide")
        updates["image_url"] = image_url.strip()
    if initial_price is not None or sale_price is not None:
        new_initial = initial_price if initial_price is not None else float(item.get("initial_price") or 0)
        new_sale = sale_price if sale_price is not None else float(item.get("sale_price") or 0)
        _validate_prices(new_initial, new_sale)
        if initial_price is not None:
            updates["initial_price"] = initial_price
        if sale_price is not None:
            updates["sale_price"] = sale_price
    if not updates:
        return item
    updated = repository.update_item(item_id, updates)
    if not updated:
        raise RuntimeError("Echec de mise à jour de l'item")
    return updated

def delete_item(identity: Optional[Dict[str, Any]], item_id: str) -> str:
    """Supprime un item du propriétaire; refusé tant qu'il est réservé (pending)."""
    item = _load_owned(identity, item_id, "supprimer")
    if item.get("status") == ItemStatus.PENDING.value:
        raise ConflictError("Item réservé: suppression impossible pendant un paiement en cours")
    if not repository.delete_item(item_id):
        raise RuntimeError("Echec de suppression de l'item")
    logger.info("items.delete id=%s", item_id)
    return item_id
