"""
Order API Routes

The caller's own lending history.
"""

from fastapi import APIRouter, Depends

from librarian.api.dependencies import get_current_principal, get_lending_service
from librarian.api.schemas import OrderResponse, ErrorResponse
from librarian.services import LendingService, Principal


router = APIRouter(
    prefix="/orders",
    tags=["orders"],
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid token"}},
)


@router.get("", response_model=list[OrderResponse])
def list_my_orders(
    principal: Principal = Depends(get_current_principal),
    lending: LendingService = Depends(get_lending_service),
):
    """List the caller's orders, most recent first."""
    return lending.list_orders(principal.user_id)
