from fastapi import FastAPI

from . import admin, health, places, reservations


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(reservations.router)
    app.include_router(places.router)
    app.include_router(admin.router)
