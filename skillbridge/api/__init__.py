"""HTTP API (FastAPI) over the marketplace services."""

from .app import build_services, create_app
from .dependencies import Services

__all__ = ["create_app", "build_services", "Services"]
