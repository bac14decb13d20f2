"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for CRUD operations on the auth tables.
"""

from gatehouse.repositories.accounts import AccountRepository
from gatehouse.repositories.sessions import SessionRepository
from gatehouse.repositories.users import UserRepository
from gatehouse.repositories.verifications import VerificationRepository

__all__ = [
    "AccountRepository",
    "SessionRepository",
    "UserRepository",
    "VerificationRepository",
]
