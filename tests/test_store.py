"""Tests for streaky/store.py — HTTP record store, token refresh, error mapping."""

import json

import httpx
import pytest

from api.app import app
from streaky.errors import AuthError, NotFoundError, TransientStoreError
from streaky.models import Overall, TodoList, Task
from streaky.session import Session
from streaky.store import HttpRecordStore

pytestmark = pytest.mark.asyncio


def _asgi_store(session):
    return HttpRecordStore("http://testserver", session, transport=httpx.ASGITransport(app=app))


async def test_round_trip_against_api(workspace):
    session = Session(workspace)
    async with _asgi_store(session) as store:
        user = await store.login("asha@example.com", "hunter22", register=True)
        assert user["email"] == "asha@example.com"
        assert session.refresh_token

        created = await store.create_list(TodoList(id="tmp1", title="Morning", tasks=[Task("t1", "Stretch")]))
        assert created.id != "tmp1"

        created.tasks[0].done = True
        created.streak = 1
        created.last_completed_date = "2024-01-10"
        created.completed_today = True
        await store.update_list(created.id, created)

        lists = await store.get_lists()
        assert len(lists) == 1
        assert lists[0].streak == 1
        assert lists[0].tasks[0].done is True

        await store.put_overall(Overall(streak=1, last_completed_date="2024-01-10", completed_today=True))
        assert (await store.get_overall()).streak == 1

        await store.delete_list(created.id)
        with pytest.raises(NotFoundError):
            await store.delete_list(created.id)


async def test_expired_access_token_is_refreshed_once(workspace):
    session = Session(workspace)
    async with _asgi_store(session) as store:
        await store.login("asha@example.com", "hunter22", register=True)
        session.access_token = "stale"

        assert await store.get_lists() == []
        assert session.access_token != "stale"


async def test_failed_refresh_clears_session(workspace):
    session = Session(workspace)
    session.set_tokens(access_token="stale", refresh_token="also-stale")
    async with _asgi_store(session) as store:
        with pytest.raises(AuthError):
            await store.get_overall()
    assert session.access_token is None
    assert session.refresh_token is None
    assert session.is_authenticated() is False


async def test_server_errors_are_transient(workspace):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=json.dumps({"error": "db down"}))

    session = Session(workspace)
    session.set_tokens(access_token="token")
    store = HttpRecordStore("http://testserver", session, transport=httpx.MockTransport(handler))
    with pytest.raises(TransientStoreError):
        await store.put_overall(Overall())
    await store.aclose()


async def test_network_errors_are_transient(workspace):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    session = Session(workspace)
    session.set_tokens(access_token="token")
    store = HttpRecordStore("http://testserver", session, transport=httpx.MockTransport(handler))
    with pytest.raises(TransientStoreError):
        await store.get_lists()
    await store.aclose()


async def test_bearer_header_sent(workspace):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=[])

    session = Session(workspace)
    session.set_tokens(access_token="abc")
    store = HttpRecordStore("http://testserver", session, transport=httpx.MockTransport(handler))
    assert await store.get_lists() == []
    assert seen == ["Bearer abc"]
    await store.aclose()
