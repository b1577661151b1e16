# routes.py
from fastapi import FastAPI
from controller.name_controller import name_router


def register_routes(app: FastAPI) -> None:
    """Register API controllers here; static files are mounted after them in main."""
    app.include_router(name_router)
