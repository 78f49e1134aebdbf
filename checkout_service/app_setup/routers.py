"""
Registre central des routers.
- API v1: checkout
- Health: health_router
"""
from fastapi import FastAPI
from checkout_service.checkout import views as checkout_views
from checkout_service.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(checkout_views.router)
    # Health & monitoring
    app.include_router(health_router)
