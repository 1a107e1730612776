"""
Logique panier pure (pas de Stripe, pas de DB).
"""
from typing import Any, Dict, Iterable, List

# module garagesale.payments.cart
def unique_ids(item_ids: Iterable[Any]) -> List[str]:
    """
    Normalise la liste d'identifiants du panier.
    - Ignore les valeurs vides, conserve l'ordre, supprime les doublons
      (un item est unique: il ne peut être acheté qu'une fois).
    """
    seen: List[str] = []
    for raw in item_ids or []:
        item_id = str(raw or "").strip()
        if item_id and item_id not in seen:
            seen.append(item_id)
    return seen

def unit_price(item: Dict[str, Any]) -> float:
    """
    Prix facturé pour un item réservé: le prix figé à la réservation (reserved_price),
    à défaut le prix de vente courant.
    """
    price = item.get("reserved_price")
    if price is None:
        price = item.get("sale_price")
    try:
        return float(price or 0)
    except (TypeError, ValueError):
        return 0.0

def cart_total(items: List[Dict[str, Any]]) -> float:
    return round(sum(unit_price(i) for i in items), 2)

def to_cents(amount: float) -> int:
    return int(round(amount * 100))

def to_line_items(items: List[Dict[str, Any]], currency: str) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe: une ligne par item, quantité 1,
    price_data avec unit_amount en centimes et product_data (nom, image).
    """
    line_items: List[Dict[str, Any]] = []
    for item in items:
        product_data: Dict[str, Any] = {"name": item.get("name") or "Article"}
        if item.get("image_url"):
            product_data["images"] = [item["image_url"]]
        line_items.append({
            "quantity": 1,
            "price_data": {
                "currency": currency,
                "unit_amount": to_cents(unit_price(item)),
                "product_data": product_data,
            },
        })
    return line_items

def make_metadata(order_id: str, customer_id: str) -> Dict[str, str]:
    """Métadonnées de session: orderId sert de jeton de corrélation pour le webhook."""
    return {"orderId": str(order_id), "customerId": str(customer_id)}
