"""Bearer-token identity resolution."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from jose import JWTError, jwt

from artsite.exceptions import UnauthorizedError


@dataclass(frozen=True)
class Account:
    account_id: str


class JWTIdentityResolver:
    """Resolves the calling account from an ``Authorization: Bearer`` JWT.

    The account id is read from the ``sub`` claim, falling back to
    ``account_id`` and ``user_id``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def authenticate(self, request: Request) -> Account:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise UnauthorizedError("Missing bearer token")

        try:
            payload = jwt.decode(token.strip(), self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise UnauthorizedError(f"Invalid token: {e}") from e

        account_id = payload.get("sub") or payload.get("account_id") or payload.get("user_id")
        if not account_id:
            raise UnauthorizedError("Token has no account identifier")
        return Account(account_id=str(account_id))

    def create_token(self, account_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """Issue a token for ``account_id``; used by tooling and tests."""
        claims: Dict[str, Any] = {"sub": account_id}
        claims["exp"] = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)
