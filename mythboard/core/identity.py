"""Resolution of the acting identity.

Two variants exist and a deployment uses exactly one of them:

* anonymous: a random token generated once and persisted by the client
  (a cookie for browsers, a key/value file for the Python client);
* account: the id of the user authenticated by the bearer token, resolved
  on every request and never cached.
"""
from typing import Optional, Protocol

from fastapi import Request, Response
from sqlalchemy.orm import Session

from mythboard.core.errors import AuthenticationRequired
from mythboard.core.security import find_active_user
from mythboard.core.tokens import (
    IDENTIFIER_KEY,
    AnonymousIdentityProvider,
    Identity,
    TokenStore,
    generate_identifier,
)

IDENTIFIER_MAX_AGE = 60 * 60 * 24 * 365 * 10


class CookieTokenStore:
    """Token storage backed by the browser cookie jar of one request/response pair.

    An explicit header wins over the cookie so non-browser clients can carry
    their own persisted token.
    """

    def __init__(self, request: Request, response: Response, cookie_name: str = IDENTIFIER_KEY,
                 header_name: str = "X-User-Identifier"):
        self.request = request
        self.response = response
        self.cookie_name = cookie_name
        self.header_name = header_name

    def get(self, key: str) -> Optional[str]:
        value = self.request.headers.get(self.header_name) or self.request.cookies.get(self.cookie_name)
        return value.strip() if value and value.strip() else None

    def set(self, key: str, value: str) -> None:
        self.response.set_cookie(
            self.cookie_name,
            value,
            max_age=IDENTIFIER_MAX_AGE,
            samesite="lax",
        )


class IdentityProvider(Protocol):
    def resolve(self) -> Optional[Identity]:
        ...


class AccountIdentityProvider:
    """Identity of the user authenticated by a bearer token"""

    def __init__(self, session: Session, token: Optional[str]):
        self.session = session
        self.token = token

    def resolve(self) -> Optional[Identity]:
        user = find_active_user(self.session, self.token)
        if user is None:
            return None
        return Identity(user.id, anonymous=False)


def require(identity: Optional[Identity]) -> Identity:
    """Refuse to go on without an identity, before any write is attempted"""
    if identity is None:
        raise AuthenticationRequired("Authentication required, please log in first")
    return identity
