"""
Identity provider interface.

The registration core never computes roles or checks passwords itself; it asks
the provider to verify a bearer token and reads back an Identity whose role
claim it treats as opaque until app.core.permissions parses it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: str


class IdentityProvider(ABC):
    """
    Implementations:
    - JWTIdentityProvider: HS256 tokens, accounts in the local users table
    """

    @abstractmethod
    async def verify_token(self, token: str) -> Optional[Identity]:
        """
        Verify a bearer token.

        Returns:
            The identity behind the token, or None if the token is invalid,
            expired, or its account no longer exists.
        """

    @abstractmethod
    async def create_account(self, email: str, password: str, metadata: dict) -> int:
        """
        Create an account and return its id.

        Args:
            email: Login email, unique across accounts
            password: Plain-text password, hashed by the provider
            metadata: first_name, last_name, phone_number, role
        """

    @abstractmethod
    async def update_role_claim(self, account_id: int, role: str) -> None:
        """Replace the role claim stored for an account."""

    @abstractmethod
    async def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        """
        Replace an account's password after checking the current one.

        Raises:
            ValidationError: current_password does not match
            NotFoundError: no such account
        """
