# api/__init__.py
from api.container import ServiceContainer
from api.server import create_app

__all__ = ["ServiceContainer", "create_app"]
