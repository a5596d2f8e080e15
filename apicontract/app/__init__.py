"""Service assembly: FastAPI app factory, registration and dependencies."""

from .dependencies import AppContext, get_settings
from .main import make_app, serve
from .registrator import APIRegistry, ComponentRegistrator

__all__ = [
    "APIRegistry",
    "AppContext",
    "ComponentRegistrator",
    "get_settings",
    "make_app",
    "serve",
]
