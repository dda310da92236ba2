"""Shared test fixtures for Streaky tests."""

from __future__ import annotations

import asyncio
import os
from datetime import datetime
from pathlib import Path

import pytest
import yaml

from streaky.clock import IST
from streaky.errors import AuthError, NotFoundError, TransientStoreError
from streaky.models import (
    AppState,
    Overall,
    Task,
    TodoList,
    new_server_id,
)
from streaky.store import RecordStore


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary data root with a config.yaml."""
    root = tmp_path / "streaky"
    root.mkdir(parents=True)
    config = {
        "api_url": "http://testserver",
        "jwt_access_secret": "test-access-secret",
        "jwt_refresh_secret": "test-refresh-secret",
    }
    (root / "config.yaml").write_text(yaml.dump(config, default_flow_style=False), encoding="utf-8")

    os.environ["STREAKY_ROOT"] = str(root)
    yield root
    if "STREAKY_ROOT" in os.environ:
        del os.environ["STREAKY_ROOT"]


def make_list(
    list_id: str = "a",
    *,
    done: list[bool] | None = None,
    streak: int = 0,
    last: str | None = None,
    completed_today: bool = False,
) -> TodoList:
    done = done if done is not None else [False]
    tasks = [Task(id=f"{list_id}-t{i}", text=f"task {i}", done=d) for i, d in enumerate(done)]
    return TodoList(
        id=list_id,
        title=f"List {list_id}",
        streak=streak,
        last_completed_date=last,
        completed_today=completed_today,
        tasks=tasks,
    )


def make_state(day: str = "2024-01-10", *lists: TodoList, overall: Overall | None = None) -> AppState:
    return AppState(day_key=day, overall=overall or Overall(), lists=list(lists))


class FakeClock:
    """Settable wall clock for the reconciler."""

    def __init__(self, when: datetime) -> None:
        self.now = when

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 10, 9, 0, tzinfo=IST))


class FakeStore(RecordStore):
    """In-memory record store that logs every call and can be told to fail."""

    def __init__(self, lists: list[TodoList] | None = None, overall: Overall | None = None) -> None:
        self.lists: dict[str, TodoList] = {}
        for todo_list in lists or []:
            self.lists[todo_list.id] = todo_list
        self.overall = overall or Overall()
        self.calls: list[tuple] = []
        self.fail_overall = 0
        self.fail_all = False
        self.fail_auth = False
        self.create_gate: asyncio.Event | None = None
        self.overall_gate: asyncio.Event | None = None

    def _check(self) -> None:
        if self.fail_auth:
            raise AuthError("session expired")
        if self.fail_all:
            raise TransientStoreError("offline")

    async def get_lists(self) -> list[TodoList]:
        self._check()
        return [TodoList.from_dict({**l.to_dict(), "_id": l.id}) for l in self.lists.values()]

    async def create_list(self, todo_list: TodoList) -> TodoList:
        self._check()
        if self.create_gate is not None:
            await self.create_gate.wait()
        new_id = new_server_id()
        saved = TodoList.from_dict({**todo_list.to_dict(), "_id": new_id})
        self.lists[new_id] = saved
        self.calls.append(("create", todo_list.id, new_id))
        return saved

    async def update_list(self, list_id: str, todo_list: TodoList) -> TodoList:
        self._check()
        self.calls.append(("update", list_id))
        if list_id not in self.lists:
            raise NotFoundError(list_id)
        saved = TodoList.from_dict({**todo_list.to_dict(), "_id": list_id})
        self.lists[list_id] = saved
        return saved

    async def delete_list(self, list_id: str) -> None:
        self._check()
        self.calls.append(("delete", list_id))
        if self.lists.pop(list_id, None) is None:
            raise NotFoundError(list_id)

    async def get_overall(self) -> Overall:
        self._check()
        return Overall.from_dict(self.overall.to_dict())

    async def put_overall(self, overall: Overall) -> Overall:
        self._check()
        self.calls.append(("put_overall", overall.streak))
        if self.overall_gate is not None:
            await self.overall_gate.wait()
        if self.fail_overall:
            self.fail_overall -= 1
            raise TransientStoreError("overall write failed")
        self.overall = Overall.from_dict(overall.to_dict())
        return self.overall
