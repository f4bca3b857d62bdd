"""
Librarian - FastAPI Backend.

HTTP surface for the lending service.
"""

from .main import app, create_app, main
from .dependencies import (
    ServiceContainer,
    get_service_container,
    get_repository,
    get_catalog_service,
    get_lending_service,
    get_identity_service,
    get_current_principal,
    require_admin,
)

__all__ = [
    # Application
    "app",
    "create_app",
    "main",
    # Dependencies
    "ServiceContainer",
    "get_service_container",
    "get_repository",
    "get_catalog_service",
    "get_lending_service",
    "get_identity_service",
    "get_current_principal",
    "require_admin",
]
