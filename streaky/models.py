"""Typed dataclasses for the Streaky data model.

Records map to the server's JSON documents through from_dict/to_dict.
camelCase on the wire is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
Transient undo fields never leave the process.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from typing import Any


SERVER_ID_RE = re.compile(r"^[a-f0-9]{24}$", re.IGNORECASE)


def new_local_id() -> str:
    """Short client-side id, never shaped like a server id."""
    return secrets.token_hex(4)


def new_server_id() -> str:
    return secrets.token_hex(12)


def is_server_id(value: Any) -> bool:
    return isinstance(value, str) and bool(SERVER_ID_RE.match(value))


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    text: str = ""
    done: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id") or d.get("_id") or new_local_id()),
            text=str(d.get("text", "")),
            done=bool(d.get("done", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "done": self.done}


# ── Lists ─────────────────────────────────────────────────────


@dataclass
class TodoList:
    id: str = ""
    title: str = ""
    streak: int = 0
    last_completed_date: str | None = None
    completed_today: bool = False
    tasks: list[Task] = field(default_factory=list)
    # same-day undo snapshot, held between an increment and a rollback
    streak_before_today: int | None = None
    prev_last_completed_date: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TodoList:
        return cls(
            id=str(d.get("_id") or d.get("id") or new_local_id()),
            title=str(d.get("title", "") or ""),
            streak=int(d.get("streak", 0) or 0),
            last_completed_date=d.get("lastCompletedDate"),
            completed_today=bool(d.get("completedToday", False)),
            tasks=[Task.from_dict(t) for t in (d.get("tasks") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        """Server payload: persisted fields only, no id and no undo snapshot."""
        return {
            "title": self.title,
            "streak": self.streak,
            "lastCompletedDate": self.last_completed_date,
            "completedToday": self.completed_today,
            "tasks": [t.to_dict() for t in self.tasks],
        }

    def all_tasks_done(self) -> bool:
        return bool(self.tasks) and all(t.done for t in self.tasks)

    def clear_snapshot(self) -> None:
        self.streak_before_today = None
        self.prev_last_completed_date = None


# ── Overall ───────────────────────────────────────────────────


@dataclass
class Overall:
    streak: int = 0
    last_completed_date: str | None = None
    completed_today: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> Overall:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            streak=int(d.get("streak", 0) or 0),
            last_completed_date=d.get("lastCompletedDate"),
            completed_today=bool(d.get("completedToday", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "streak": self.streak,
            "lastCompletedDate": self.last_completed_date,
            "completedToday": self.completed_today,
        }


@dataclass
class StreakSnapshot:
    streak: int = 0
    last_completed_date: str | None = None


# ── App state ─────────────────────────────────────────────────


@dataclass
class AppState:
    """Full client-visible snapshot. Replaced, never edited in place."""

    day_key: str = ""
    overall: Overall = field(default_factory=Overall)
    lists: list[TodoList] = field(default_factory=list)
    overall_before_today: StreakSnapshot | None = None
    overall_dirty: bool = False

    def find_list(self, list_id: str) -> TodoList | None:
        for todo_list in self.lists:
            if todo_list.id == list_id:
                return todo_list
        return None


def from_server(doc: dict[str, Any]) -> TodoList:
    return TodoList.from_dict(doc)


def to_server(todo_list: TodoList) -> dict[str, Any]:
    return todo_list.to_dict()
