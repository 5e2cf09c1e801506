"""Python client for the mythboard API.

Plays the part of the browser: keeps the anonymous token in a durable
key/value file, shows favorites optimistically and puts them back when the
write fails, and reloads reaction counts after every reaction attempt.
"""
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

from mythboard.core.locks import KeyedLock
from mythboard.core.targets import Target
from mythboard.core.tokens import AnonymousIdentityProvider, IDENTIFIER_KEY

logger = logging.getLogger(__name__)


class FileTokenStore:
    """Key/value pairs in a JSON file, the stand-in for browser local storage"""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable token store %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")


class ApiError(Exception):
    def __init__(self, detail: str, status_code: Optional[int] = None, payload: Optional[dict] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.payload = payload or {}


class FavoriteToggleFailed(Exception):
    pass


class MythboardClient:
    """Thin wrapper over the HTTP API.

    Pass `token_store` for the anonymous variant or `access_token` for the
    account variant. `http` may be any httpx.Client, tests hand in FastAPI's
    TestClient.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token_store=None,
        access_token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        header_name: str = "X-User-Identifier"
    ):
        self.http = http if http is not None else httpx.Client(base_url=base_url, timeout=10.0)
        self.identity = AnonymousIdentityProvider(token_store, key=IDENTIFIER_KEY) if token_store is not None else None
        self.access_token = access_token
        self.header_name = header_name

    def _headers(self) -> dict:
        headers = {}
        if self.identity is not None:
            headers[self.header_name] = self.identity.resolve().value
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"Network error: {e}") from e
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {"detail": response.text}
            detail = payload.get("detail") if isinstance(payload, dict) else None
            raise ApiError(str(detail or response.reason_phrase), response.status_code, payload if isinstance(payload, dict) else None)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def reactions(self, target: Target) -> dict:
        if target.post_id is not None:
            return self.request("GET", f"/api/reactions/post/{target.post_id}")
        return self.request("GET", "/api/reactions/image", params={"url": target.image_url})

    def react(self, target: Target, reaction_type: str) -> dict:
        if target.post_id is not None:
            return self.request("POST", f"/api/reactions/post/{target.post_id}", json={"type": reaction_type})
        return self.request("POST", "/api/reactions/image", json={"image_url": target.image_url, "type": reaction_type})

    def favorite_state(self, post_id: str) -> dict:
        return self.request("GET", f"/api/favorites/{post_id}")

    def toggle_favorite(self, post_id: str) -> dict:
        return self.request("POST", f"/api/favorites/{post_id}")

    def favorites(self) -> list:
        return self.request("GET", "/api/favorites")


def empty_summary(target: Target) -> dict:
    return {"target": target.key, "counts_by_type": {}, "total_count": 0, "mine": []}


class ReactionBar:
    """Reaction counts of one target as a screen shows them"""

    def __init__(self, client: MythboardClient, target: Target, locks: Optional[KeyedLock] = None):
        self.client = client
        self.target = target
        self.locks = locks if locks is not None else KeyedLock()
        self.summary = empty_summary(target)
        self.alert: Optional[str] = None

    @property
    def counts(self) -> dict:
        return self.summary["counts_by_type"]

    @property
    def mine(self) -> list:
        return self.summary["mine"]

    def reload(self) -> dict:
        try:
            self.summary = self.client.reactions(self.target)
        except ApiError as e:
            logger.warning("Could not load reactions of %s: %s", self.target, e.detail)
            self.summary = empty_summary(self.target)
        return self.summary

    def select(self, reaction_type: str) -> dict:
        """Toggle a reaction; counts are reloaded whether the write worked or not"""
        with self.locks.hold(self.target.key):
            self.alert = None
            try:
                self.client.react(self.target, reaction_type)
            except ApiError as e:
                self.alert = e.detail
                logger.warning("Reaction %s on %s failed: %s", reaction_type, self.target, e.detail)
            finally:
                self.reload()
        return self.summary


class OptimisticFavorite:
    """Favorite flag and count shown before the write is confirmed"""

    def __init__(self, favorited: bool = False, count: int = 0):
        self.favorited = favorited
        self.count = count

    def toggle(self, commit: Callable[[], Any]) -> Any:
        """Flip now, run `commit`, put the previous values back if it raises"""
        previous = (self.favorited, self.count)
        self.favorited = not self.favorited
        self.count = self.count + 1 if self.favorited else max(0, self.count - 1)
        try:
            return commit()
        except Exception as e:
            self.favorited, self.count = previous
            raise FavoriteToggleFailed(str(e)) from e


class FavoriteButton:
    """Favorite toggle of one post; clicks on the same post run one at a time"""

    def __init__(self, client: MythboardClient, post_id: str, locks: Optional[KeyedLock] = None):
        self.client = client
        self.post_id = post_id
        self.locks = locks if locks is not None else KeyedLock()
        self.view = OptimisticFavorite()
        self.alert: Optional[str] = None

    @property
    def favorited(self) -> bool:
        return self.view.favorited

    @property
    def count(self) -> int:
        return self.view.count

    def load(self) -> None:
        try:
            state = self.client.favorite_state(self.post_id)
        except ApiError as e:
            logger.warning("Could not load favorite state of post %s: %s", self.post_id, e.detail)
            return
        self.view = OptimisticFavorite(state["favorited"], state["count"])

    def click(self) -> bool:
        """Toggle the favorite, returns False when the write failed and the view was reverted"""
        with self.locks.hold(self.post_id):
            self.alert = None
            try:
                self.view.toggle(lambda: self.client.toggle_favorite(self.post_id))
            except FavoriteToggleFailed as e:
                self.alert = str(e)
                logger.warning("Favorite toggle on post %s reverted: %s", self.post_id, e)
                return False
        return True
