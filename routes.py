# routes.py
from fastapi import FastAPI
from controller.class_controller import class_router
from controller.parse_controller import parse_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(class_router)
    app.include_router(parse_router)
