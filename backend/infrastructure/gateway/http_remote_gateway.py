from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Type
from urllib.parse import quote, urljoin

import aiohttp
from pydantic import BaseModel, ValidationError

from application.ports.gateway_errors import (
    Conflict,
    GatewayError,
    NetworkUnavailable,
    NotFound,
    Unauthorized,
    UnknownGatewayError,
)
from application.ports.remote_gateway_port import RemoteGatewayPort
from domain.social import (
    FriendProfile,
    FriendRequest,
    FriendshipStatusView,
    RequestDirection,
    SendRequestResult,
)
from domain.tracking import CatalogEntry, TrackedItem, TrackedItemDraft, TrackedItemPatch
from infrastructure.config.settings import (
    SYNC_API_BASE_URL,
    SYNC_API_TIMEOUT_S,
    SYNC_API_TOKEN,
    SYNC_FRIENDS_PATH,
    SYNC_MOVIES_PATH,
)
from infrastructure.gateway.wire import (
    CatalogSearchResponse,
    CountResponse,
    ErrorBody,
    FriendsResponse,
    MovieCreateBody,
    MovieRow,
    RequestsResponse,
    SendRequestResponse,
    StatusResponse,
)

logger = logging.getLogger(__name__)


def _join(base: str, path: str) -> str:
    base = (base or "").rstrip("/") + "/"
    path = (path or "").lstrip("/")
    return urljoin(base, path)


def _classify(status: int, message: str) -> GatewayError:
    if status in (401, 403):
        return Unauthorized(message, status_code=status)
    if status == 404:
        return NotFound(message, status_code=status)
    if status == 409:
        return Conflict(message, status_code=status)
    return UnknownGatewayError(message, status_code=status)


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        try:
            text = ErrorBody.model_validate(payload).text
        except ValidationError:
            text = ""
        if text:
            return text
    return fallback


class HttpRemoteGateway(RemoteGatewayPort):
    """aiohttp client for the movie/friends REST API.

    One instance per signed-in user: the bearer token is the session. Calls
    never retry; transport failures surface as `NetworkUnavailable` and HTTP
    errors are classified by status code.
    """

    def __init__(
        self,
        *,
        base_url: str = SYNC_API_BASE_URL,
        token: str = SYNC_API_TOKEN,
        timeout_s: float = SYNC_API_TIMEOUT_S,
        movies_path: str = SYNC_MOVIES_PATH,
        friends_path: str = SYNC_FRIENDS_PATH,
    ) -> None:
        self._base_url = (base_url or "").strip()
        self._token = (token or "").strip()
        self._timeout_s = float(timeout_s or 15.0)
        self._movies_path = "/" + (movies_path or "/movies").strip("/")
        self._friends_path = "/" + (friends_path or "/friends").strip("/")
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()  # Protect session creation from concurrent access

    def _headers(self) -> dict[str, str]:
        headers = {"content-type": "application/json", "accept": "application/json"}
        if self._token:
            headers["authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None and not self._session.closed:
            return self._session

        # Double-check under the lock: another coroutine may have created it.
        async with self._lock:
            if self._session is not None and not self._session.closed:
                return self._session

            timeout = aiohttp.ClientTimeout(total=self._timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            return self._session

    def _movies(self, suffix: str = "") -> str:
        return _join(self._base_url, self._movies_path + suffix)

    def _friends(self, suffix: str = "") -> str:
        return _join(self._base_url, self._friends_path + suffix)

    async def _request(self, method: str, url: str, *, json: Optional[dict[str, Any]] = None) -> Any:
        if not self._base_url:
            raise NetworkUnavailable("SYNC_API_BASE_URL is not configured")
        session = await self._get_session()
        try:
            async with session.request(method, url, json=json, headers=self._headers()) as resp:
                if resp.status == 204:
                    return None
                text = await resp.text()
                payload: Any = None
                if text:
                    try:
                        payload = await resp.json(content_type=None)
                    except ValueError:
                        payload = None
                if resp.status >= 400:
                    message = _error_message(payload, text[:200])
                    raise _classify(resp.status, message)
                if text and payload is None:
                    raise UnknownGatewayError(f"{method} {url} returned a non-JSON body", status_code=resp.status)
                return payload
        except GatewayError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkUnavailable(str(exc) or type(exc).__name__) from exc

    @staticmethod
    def _parse(model: Type[BaseModel], payload: Any) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise UnknownGatewayError(f"malformed {model.__name__} payload: {exc.error_count()} error(s)") from exc

    # ---- tracked items ----

    async def list_tracked_items(self) -> list[TrackedItem]:
        payload = await self._request("GET", self._movies())
        if not isinstance(payload, list):
            raise UnknownGatewayError("movie list payload is not a list")
        return [self._parse(MovieRow, row).to_domain() for row in payload]

    async def create_tracked_item(self, *, draft: TrackedItemDraft) -> TrackedItem:
        body = MovieCreateBody.from_draft(draft).model_dump(mode="json")
        payload = await self._request("POST", self._movies(), json=body)
        return self._parse(MovieRow, payload).to_domain()

    async def update_tracked_item(self, *, item_id: int, patch: TrackedItemPatch) -> Optional[TrackedItem]:
        payload = await self._request("PUT", self._movies(f"/{int(item_id)}"), json=patch.as_fields())
        if not payload:
            return None
        return self._parse(MovieRow, payload).to_domain()

    async def delete_tracked_item(self, *, item_id: int) -> None:
        await self._request("DELETE", self._movies(f"/{int(item_id)}"))

    async def search_catalog(self, *, query: str) -> list[CatalogEntry]:
        payload = await self._request("GET", self._movies(f"/search/{quote(str(query), safe='')}"))
        return [hit.to_domain() for hit in self._parse(CatalogSearchResponse, payload or {}).search]

    # ---- friendships ----

    async def list_friends(self) -> list[FriendProfile]:
        payload = await self._request("GET", self._friends())
        return [row.to_profile() for row in self._parse(FriendsResponse, payload or {}).friends]

    async def list_incoming(self) -> list[FriendRequest]:
        payload = await self._request("GET", self._friends("/requests/incoming"))
        rows = self._parse(RequestsResponse, payload or {}).requests
        return [row.to_domain(RequestDirection.INCOMING) for row in rows]

    async def list_outgoing(self) -> list[FriendRequest]:
        payload = await self._request("GET", self._friends("/requests/outgoing"))
        rows = self._parse(RequestsResponse, payload or {}).requests
        return [row.to_domain(RequestDirection.OUTGOING) for row in rows]

    async def get_pending_count(self) -> int:
        payload = await self._request("GET", self._friends("/requests/count"))
        return self._parse(CountResponse, payload or {}).count

    async def send_friend_request(self, *, user_id: int) -> SendRequestResult:
        payload = await self._request("POST", self._friends(f"/request/{int(user_id)}"))
        return self._parse(SendRequestResponse, payload).to_domain()

    async def accept_friend_request(self, *, request_id: int) -> None:
        await self._request("PUT", self._friends(f"/accept/{int(request_id)}"))

    async def reject_friend_request(self, *, request_id: int) -> None:
        await self._request("PUT", self._friends(f"/reject/{int(request_id)}"))

    async def remove_friend(self, *, user_id: int) -> None:
        await self._request("DELETE", self._friends(f"/{int(user_id)}"))

    async def get_friendship_status(self, *, user_id: int) -> FriendshipStatusView:
        payload = await self._request("GET", self._friends(f"/status/{int(user_id)}"))
        return self._parse(StatusResponse, payload).to_domain()

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
