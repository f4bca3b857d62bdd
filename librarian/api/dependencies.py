"""
Dependency injection for FastAPI routes.

Provides injectable dependencies for:
- Configuration
- The repository and the services built on it
- Authentication and authorization gates
- Path parameters and request bodies read behind those gates
"""

import json
import re
from datetime import timedelta
from typing import Callable, Optional, Type

from fastapi import Depends, Header, Path, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError as PydanticValidationError

from librarian.config import Settings, get_settings
from librarian.exceptions import ValidationError
from librarian.security import parse_authorization_header
from librarian.services import (
    CatalogService,
    LendingService,
    IdentityService,
    Principal,
)
from librarian.storage.repository import Repository


# =============================================================================
# Service Container
# =============================================================================

class ServiceContainer:
    """
    Holds the long-lived collaborators.

    The repository is created on first access. Services themselves are
    stateless and built per request.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._repository: Optional[Repository] = None

    @property
    def repository(self) -> Repository:
        """Get repository instance."""
        if self._repository is None:
            from ..storage.repository import SQLRepository
            self._repository = SQLRepository(
                self.settings.database_url,
                echo=self.settings.database_echo,
            )
        return self._repository

    def close(self) -> None:
        if self._repository is not None and hasattr(self._repository, "dispose"):
            self._repository.dispose()


def init_services(settings: Settings) -> ServiceContainer:
    """Initialize service container."""
    return ServiceContainer(settings)


def get_service_container(request: Request) -> ServiceContainer:
    """
    The application's container.

    The lifespan normally creates it. Without a lifespan (an in-process
    client, for instance) it is built on first use from the settings the
    app was created with.
    """
    state = request.app.state
    container = getattr(state, "services", None)
    if container is None:
        settings = getattr(state, "settings", None) or get_settings()
        container = init_services(settings)
        state.services = container
    return container


def get_app_settings(
    container: ServiceContainer = Depends(get_service_container),
) -> Settings:
    """Settings the running app was created with."""
    return container.settings


# =============================================================================
# Individual Service Dependencies
# =============================================================================

def get_repository(
    container: ServiceContainer = Depends(get_service_container),
) -> Repository:
    """Dependency for the repository."""
    return container.repository


def get_catalog_service(
    repository: Repository = Depends(get_repository),
) -> CatalogService:
    """Dependency for catalog service."""
    return CatalogService(repository)


def get_lending_service(
    repository: Repository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> LendingService:
    """Dependency for lending service."""
    return LendingService(
        repository,
        loan_period=timedelta(days=settings.loan_period_days),
    )


def get_identity_service(
    repository: Repository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> IdentityService:
    """Dependency for identity service."""
    return IdentityService(
        repository,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


# =============================================================================
# Authentication / Authorization Gates
# =============================================================================

def get_current_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
    identity: IdentityService = Depends(get_identity_service),
) -> Principal:
    """
    Authentication gate.

    Raises:
        AuthenticationError: missing, malformed or invalid credential (401).
        ForbiddenError: the account is blocked (403).
    """
    token = parse_authorization_header(authorization)
    principal = identity.authenticate(token)
    request.state.user_id = principal.user_id
    return principal


def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Authorization gate for admin-only routes (403 otherwise)."""
    return IdentityService.require_admin(principal)


# =============================================================================
# Request Parameters
# =============================================================================

BOOK_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_book_id(book_id: str = Path(...)) -> int:
    """Book id from the path. Only a plain, optionally signed, decimal integer is accepted."""
    if not BOOK_ID_PATTERN.fullmatch(book_id):
        raise ValidationError("Invalid book ID", detail=f"'{book_id}' is not an integer")
    return int(book_id)


# =============================================================================
# Request Bodies
# =============================================================================

def gated_body(model: Type[BaseModel], gate: Callable = get_current_principal):
    """
    JSON body dependency that parses only after ``gate`` has passed.

    A body declared as a plain parameter is decoded before any dependency
    runs; this one is decoded after authentication, so a bad token is
    reported ahead of a bad body. Errors go through the usual 400 handler.
    """
    async def parse_body(request: Request, principal: Principal = Depends(gate)):
        raw = await request.body()
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RequestValidationError([{
                "type": "json_invalid",
                "loc": ("body",),
                "msg": "JSON decode error",
                "input": {},
                "ctx": {"error": str(e)},
            }])
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            raise RequestValidationError(e.errors(include_url=False))

    return parse_body


def body_openapi(model: Type[BaseModel]) -> dict:
    """``openapi_extra`` documenting a body read through ``gated_body``."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }
