"""Record store adapter: the interface the reconciler persists through.

``HttpRecordStore`` talks to the Streaky API. It sends the in-memory access
token, and on a 401 tries the refresh token exactly once before giving up.
"""

from __future__ import annotations

import abc
import logging
from typing import Any

import httpx

from streaky.errors import AuthError, NotFoundError, TransientStoreError
from streaky.models import Overall, TodoList, from_server, to_server
from streaky.session import Session


logger = logging.getLogger(__name__)


class RecordStore(abc.ABC):
    """CRUD on the caller's List and Overall records."""

    @abc.abstractmethod
    async def get_lists(self) -> list[TodoList]: ...

    @abc.abstractmethod
    async def create_list(self, todo_list: TodoList) -> TodoList: ...

    @abc.abstractmethod
    async def update_list(self, list_id: str, todo_list: TodoList) -> TodoList: ...

    @abc.abstractmethod
    async def delete_list(self, list_id: str) -> None: ...

    @abc.abstractmethod
    async def get_overall(self) -> Overall: ...

    @abc.abstractmethod
    async def put_overall(self, overall: Overall) -> Overall: ...


class HttpRecordStore(RecordStore):
    def __init__(
        self,
        base_url: str,
        session: Session,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpRecordStore:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── Auth ──────────────────────────────────────────────────

    async def login(self, email: str, password: str, *, register: bool = False) -> dict[str, Any]:
        """Exchange email/password for a token pair and store it in the session."""
        path = "/auth/register" if register else "/auth/login"
        try:
            resp = await self._client.post(path, json={"email": email, "password": password})
        except httpx.TransportError as e:
            raise TransientStoreError(str(e)) from e
        if resp.status_code >= 400:
            detail = _error_detail(resp)
            if resp.status_code >= 500:
                raise TransientStoreError(detail)
            raise AuthError(detail)
        body = resp.json()
        self.session.set_tokens(body.get("accessToken"), body.get("refreshToken"))
        return body.get("user", {})

    async def refresh(self) -> bool:
        """Swap the refresh token for a new access token. Clears the session on rejection."""
        refresh_token = self.session.refresh_token
        if not refresh_token:
            return False
        try:
            resp = await self._client.post("/auth/refresh", json={"refreshToken": refresh_token})
        except httpx.TransportError as e:
            raise TransientStoreError(str(e)) from e
        if resp.status_code != 200:
            logger.info("Refresh rejected (%s); session cleared", resp.status_code)
            self.session.clear()
            return False
        self.session.set_tokens(access_token=resp.json().get("accessToken"))
        return True

    async def logout(self) -> None:
        try:
            if self.session.access_token:
                await self._request("POST", "/auth/logout")
        finally:
            self.session.clear()

    # ── Requests ──────────────────────────────────────────────

    async def _send(self, method: str, path: str, body: Any) -> httpx.Response:
        headers = {}
        if self.session.access_token:
            headers["Authorization"] = f"Bearer {self.session.access_token}"
        try:
            return await self._client.request(method, path, json=body, headers=headers)
        except httpx.TransportError as e:
            raise TransientStoreError(f"{method} {path}: {e}") from e

    async def _request(self, method: str, path: str, body: Any = None) -> httpx.Response:
        resp = await self._send(method, path, body)
        if resp.status_code == 401:
            if not await self.refresh():
                raise AuthError(f"{method} {path}: not authenticated")
            resp = await self._send(method, path, body)
            if resp.status_code == 401:
                raise AuthError(f"{method} {path}: not authenticated")
        if resp.status_code == 404:
            raise NotFoundError(f"{method} {path}: not found")
        if resp.status_code >= 400:
            raise TransientStoreError(f"{method} {path} {resp.status_code}: {_error_detail(resp)}")
        return resp

    # ── Records ───────────────────────────────────────────────

    async def get_lists(self) -> list[TodoList]:
        resp = await self._request("GET", "/lists")
        return [from_server(doc) for doc in resp.json()]

    async def create_list(self, todo_list: TodoList) -> TodoList:
        resp = await self._request("POST", "/lists", to_server(todo_list))
        return from_server(resp.json())

    async def update_list(self, list_id: str, todo_list: TodoList) -> TodoList:
        resp = await self._request("PUT", f"/lists/{list_id}", to_server(todo_list))
        return from_server(resp.json())

    async def delete_list(self, list_id: str) -> None:
        await self._request("DELETE", f"/lists/{list_id}")

    async def get_overall(self) -> Overall:
        resp = await self._request("GET", "/overall")
        return Overall.from_dict(resp.json())

    async def put_overall(self, overall: Overall) -> Overall:
        resp = await self._request("PUT", "/overall", overall.to_dict())
        return Overall.from_dict(resp.json())


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or str(resp.status_code)
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)
