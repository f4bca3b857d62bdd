"""
Identity Service

Maps a bearer token to the user it was issued for.
"""

from dataclasses import dataclass

from loguru import logger

from librarian.exceptions import AuthenticationError, ForbiddenError
from librarian.security import decode_access_token
from librarian.storage.records import User, Role, UserStatus
from librarian.storage.repository import Repository


@dataclass(frozen=True)
class Principal:
    """The authenticated caller."""
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


class IdentityService:
    """Validates tokens and the accounts behind them."""

    def __init__(self, repository: Repository, secret: str, algorithm: str = "HS256"):
        self.repository = repository
        self.secret = secret
        self.algorithm = algorithm

    def authenticate(self, token: str) -> Principal:
        """
        Resolve a token to a principal.

        Raises:
            AuthenticationError: invalid token or unknown user.
            ForbiddenError: the account is not active.
        """
        user_id = decode_access_token(token, self.secret, self.algorithm)

        user = self.repository.get(User, user_id)
        if user is None:
            logger.warning(f"Token presented for unknown user {user_id}")
            raise AuthenticationError("User not found")

        if user.status != UserStatus.ACTIVE.value:
            logger.warning(f"Blocked user {user_id} attempted access")
            raise ForbiddenError("User account is blocked")

        return Principal(user_id=user.id, role=user.role)

    @staticmethod
    def require_admin(principal: Principal) -> Principal:
        """Raises ForbiddenError unless the principal is an admin."""
        if not principal.is_admin:
            raise ForbiddenError("Admin access required")
        return principal
