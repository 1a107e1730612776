"""Endpoints API des garages.
- Lecture: liste/recherche/détail, publiques avec identité optionnelle (les garages privés ne sont visibles que par leur propriétaire).
- Ecriture: création, mise à jour, suppression (require_user + contrôle de propriété dans le service).
- Erreurs métier converties en JSON par app_setup.exceptions (401/403/400/404/409).
"""
from typing import Any, Dict, List, Optional
import logging
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from garagesale.garages import service as garages_service
from garagesale.utils.security import optional_user, require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/garages", tags=["Garages API"])


class GarageCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    is_public: bool = True


class GarageUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


@router.get("", response_model=List[Dict[str, Any]])
def list_garages(user: Optional[Dict[str, Any]] = Depends(optional_user)):
    return garages_service.list_garages(user)

@router.get("/search", response_model=List[Dict[str, Any]])
def search_garages(q: Optional[str] = None, user: Optional[Dict[str, Any]] = Depends(optional_user)):
    """Recherche insensible à la casse sur le nom et la description des garages accessibles."""
    return garages_service.search_garages(user, q)

@router.get("/owner/{owner_id}", response_model=List[Dict[str, Any]])
def garages_by_owner(owner_id: str, user: Optional[Dict[str, Any]] = Depends(optional_user)):
    return garages_service.get_garages_by_owner(user, owner_id)

@router.get("/{garage_id}")
def get_garage(garage_id: str, user: Optional[Dict[str, Any]] = Depends(optional_user)):
    garage = garages_service.get_garage(user, garage_id)
    if not garage:
        raise HTTPException(status_code=404, detail="Garage introuvable")
    return garage

@router.post("", status_code=201)
def create_garage(body: GarageCreateRequest, user: Dict[str, Any] = Depends(require_user)):
    try:
        return garages_service.create_garage(user, body.name, body.description, body.is_public)
    except RuntimeError as e:
        logger.exception("Erreur create_garage")
        raise HTTPException(status_code=500, detail=str(e))

@router.patch("/{garage_id}")
def update_garage(garage_id: str, body: GarageUpdateRequest, user: Dict[str, Any] = Depends(require_user)):
    try:
        return garages_service.update_garage(
            user, garage_id, name=body.name, description=body.description, is_public=body.is_public
        )
    except RuntimeError as e:
        logger.exception("Erreur update_garage")
        raise HTTPException(status_code=500, detail=str(e))

@router.delete("/{garage_id}")
def delete_garage(garage_id: str, user: Dict[str, Any] = Depends(require_user)):
    try:
        return {"id": garages_service.delete_garage(user, garage_id)}
    except RuntimeError as e:
        logger.exception("Erreur delete_garage")
        raise HTTPException(status_code=500, detail=str(e))
