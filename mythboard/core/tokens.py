"""Anonymous identity tokens.

Only the standard library is used here so the HTTP client can share this
module without importing the server stack.
"""
import secrets
import string
import time
from dataclasses import dataclass
from typing import Optional, Protocol

IDENTIFIER_KEY = "user_identifier"

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_identifier() -> str:
    """user_<millisecond timestamp in base36>_<8 random base36 chars>"""
    timestamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"user_{timestamp}_{suffix}"


@dataclass(frozen=True)
class Identity:
    value: str
    anonymous: bool = True

    def __str__(self) -> str:
        return self.value


class TokenStore(Protocol):
    """Durable client-side key/value storage"""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class AnonymousIdentityProvider:
    """Anonymous identity with explicit, once-only initialization"""

    def __init__(self, store: TokenStore, key: str = IDENTIFIER_KEY):
        self.store = store
        self.key = key
        self._token: Optional[str] = None
        self.issued = False  # True when initialize() had to generate and persist a new token

    def initialize(self) -> str:
        if self._token is not None:
            return self._token
        token = self.store.get(self.key)
        if not token:
            token = generate_identifier()
            self.store.set(self.key, token)
            self.issued = True
        self._token = token
        return token

    def resolve(self) -> Identity:
        return Identity(self.initialize(), anonymous=True)
