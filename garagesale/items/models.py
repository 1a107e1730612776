"""Statuts d'un item et schémas d'entrée de l'API items."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class ItemStatus(str, Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    SOLD = "sold"


class ItemCreateRequest(BaseModel):
    garage_id: str
    name: str
    image_url: str
    initial_price: float
    sale_price: float


class ItemUpdateRequest(BaseModel):
    name: Optional[str] = None
    image_url: Optional[str] = None
    initial_price: Optional[float] = None
    sale_price: Optional[float] = None
