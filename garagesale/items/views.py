"""Endpoints API du catalogue d'items.
- Lecture publique: liste filtrée (status, garage_id), recherche (terme, bornes de prix), détail.
- Ecriture: création/mise à jour/suppression par le propriétaire (require_user).
- Les transitions de statut (réservation) sont exposées par reservations.views.
"""
from typing import Any, Dict, List, Optional
import logging
from fastapi import APIRouter, Depends, HTTPException

from garagesale.items import service as items_service
from garagesale.items.models import ItemCreateRequest, ItemStatus, ItemUpdateRequest
from garagesale.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/items", tags=["Items API"])


@router.get("", response_model=List[Dict[str, Any]])
def list_items(status: Optional[ItemStatus] = None, garage_id: Optional[str] = None):
    return items_service.list_items(status=status, garage_id=garage_id)

@router.get("/search", response_model=List[Dict[str, Any]])
def search_items(
    q: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    status: Optional[ItemStatus] = None,
):
    return items_service.search_items(search_term=q, min_price=min_price, max_price=max_price, status=status)

@router.get("/garage/{garage_id}", response_model=List[Dict[str, Any]])
def items_by_garage(garage_id: str):
    return items_service.get_items_by_garage(garage_id)

@router.get("/{item_id}")
def get_item(item_id: str):
    item = items_service.get_item(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item introuvable")
    return item

@router.post("", status_code=201)
def create_item(body: ItemCreateRequest, user: Dict[str, Any] = Depends(require_user)):
    try:
        return items_service.create_item(
            user,
            garage_id=body.garage_id,
            name=body.name,
            image_url=body.image_url,
            initial_price=body.initial_price,
            sale_price=body.sale_price,
        )
    except RuntimeError as e:
        logger.exception("Erreur create_item")
        raise HTTPException(status_code=500, detail=str(e))

@router.patch("/{item_id}")
def update_item(item_id: str, body: ItemUpdateRequest, user: Dict[str, Any] = Depends(require_user)):
    try:
        return items_service.update_item(
            user,
            item_id,
            name=body.name,
            image_url=body.image_url,
            initial_price=body.initial_price,
            sale_price=body.sale_price,
        )
    except RuntimeError as e:
        logger.exception("Erreur update_item")
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{item_id}")
def delete_item(item_id: str, user: Dict[str, Any] = Depends(require_user)):
    try:
        return {"id": items_service.delete_item(user, item_id)}
    except RuntimeError as e:
        logger.exception("Erreur delete_item")
        raise HTTPException(status_code=500, detail=str(e))
