"""
Admin authorization.

Callers identify themselves by email only; there is no password or token.
``authorize_admin`` looks the email up and returns one of three outcomes,
which the routing layer turns into a handler call, a 401 or a 403.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from database import Database

ADMIN = "admin"


@dataclass(frozen=True)
class Authorized:
    user: Dict[str, Any]


@dataclass(frozen=True)
class Unauthorized:
    detail: str = "Unauthorized: no email provided"


@dataclass(frozen=True)
class Forbidden:
    detail: str = "Forbidden: admin access required"


AuthResult = Union[Authorized, Unauthorized, Forbidden]


def is_admin(user: Optional[Dict[str, Any]]) -> bool:
    return bool(user) and user.get("role") == ADMIN


def authorize_admin(db: Database, email: Optional[str]) -> AuthResult:
    if not email:
        return Unauthorized()
    user = db.users.find_one({"email": email})
    if not is_admin(user):
        return Forbidden()
    return Authorized(user)
