"""
Authentication API Routes for Librarian.

Registration and login are not implemented yet; both endpoints answer with
a fixed message. Operators issue tokens with ``librarian issue-token``.
"""

from fastapi import APIRouter

from librarian.api.schemas import MessageResponse

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=MessageResponse)
async def register():
    """Register a new user (not implemented)."""
    return MessageResponse(message="Register endpoint not implemented")


@router.post("/login", response_model=MessageResponse)
async def login():
    """Exchange credentials for a token (not implemented)."""
    return MessageResponse(message="Login endpoint not implemented")
