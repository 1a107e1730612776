"""
Module 'payments' (feature-first): point d'entrée public.
Réunit logique panier, lecture des événements Stripe, client de passerelle,
orchestration du checkout et réconciliation des webhooks.
"""

from .cart import unique_ids, unit_price, cart_total, to_line_items, make_metadata
from .metadata import extract_session, extract_order_id
from .stripe_client import GatewayConfig, PaymentGateway, build_gateway, get_gateway
from .service import create_checkout_session
from .webhook import handle_event

__all__ = [
    # cart
    "unique_ids",
    "unit_price",
    "cart_total",
    "to_line_items",
    "make_metadata",
    # metadata
    "extract_session",
    "extract_order_id",
    # stripe
    "GatewayConfig",
    "PaymentGateway",
    "build_gateway",
    "get_gateway",
    # services
    "create_checkout_session",
    "handle_event",
]
