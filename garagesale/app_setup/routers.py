"""
Registre central des routers (API v1 + health).
- API v1: garages, items, reservations, orders, payments
- Health: health_router
"""
from fastapi import FastAPI
from garagesale.garages import views as garages_views
from garagesale.items import views as items_views
from garagesale.reservations import views as reservations_views
from garagesale.orders import views as orders_views
from garagesale.payments import views as payments_views
from garagesale.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l'application.
    - reservations_views partage le préfixe /api/v1/items: ses chemins
      (/{id}/reserve, /{id}/release) ne recouvrent pas ceux du catalogue.
    """
    # API v1
    app.include_router(garages_views.router)
    app.include_router(items_views.router)
    app.include_router(reservations_views.router)
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    # Health & monitoring
    app.include_router(health_router)
