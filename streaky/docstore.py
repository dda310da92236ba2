"""Server-side document store for users, lists and overall records.

Each collection is one JSON file under ``<root>/db`` mapping id -> document.
Writes go through ``edit_json``, which locks each collection across its
read-modify-write cycle. All list/overall access is scoped by the owning
user id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from streaky.config import db_path
from streaky.fileio import edit_json, read_json
from streaky.models import new_server_id


LIST_FIELDS = ("title", "streak", "lastCompletedDate", "completedToday", "tasks")
OVERALL_FIELDS = ("streak", "lastCompletedDate", "completedToday")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _clean_tasks(tasks: Any) -> list[dict[str, Any]]:
    out = []
    for t in tasks or []:
        if isinstance(t, dict):
            out.append({"id": str(t.get("id", "")), "text": str(t.get("text", "")), "done": bool(t.get("done", False))})
    return out


def _pick(body: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    picked = {k: body[k] for k in fields if k in body}
    if "tasks" in picked:
        picked["tasks"] = _clean_tasks(picked["tasks"])
    if "streak" in picked:
        picked["streak"] = max(0, int(picked["streak"] or 0))
    if "completedToday" in picked:
        picked["completedToday"] = bool(picked["completedToday"])
    return picked


class DocumentStore:
    def __init__(self, root: Path | None = None) -> None:
        self.dir = db_path(root)

    def _path(self, collection: str) -> Path:
        return self.dir / f"{collection}.json"

    def _load(self, collection: str) -> dict[str, dict[str, Any]]:
        return read_json(self._path(collection))

    def _edit(self, collection: str):
        """Locked load/change/save cycle over one collection. Never nest on the same collection."""
        return edit_json(self._path(collection))

    # ── Users ─────────────────────────────────────────────────

    def find_user_by_email(self, email: str) -> dict[str, Any] | None:
        for user in self._load("users").values():
            if user.get("email") == email:
                return user
        return None

    def get_user(self, user_id: str) -> dict[str, Any] | None:
        return self._load("users").get(user_id)

    def create_user(self, email: str, password_hash: str) -> dict[str, Any]:
        user = {
            "_id": new_server_id(),
            "email": email,
            "passwordHash": password_hash,
            "tokenVersion": 0,
            "createdAt": _now_iso(),
        }
        with self._edit("users") as users:
            users[user["_id"]] = user
        self.get_overall(user["_id"])
        return user

    def bump_token_version(self, user_id: str) -> None:
        with self._edit("users") as users:
            if user_id in users:
                users[user_id]["tokenVersion"] = int(users[user_id].get("tokenVersion", 0)) + 1

    # ── Lists ─────────────────────────────────────────────────

    def get_lists(self, user_id: str) -> list[dict[str, Any]]:
        return [d for d in self._load("lists").values() if d.get("userId") == user_id]

    def create_list(self, user_id: str, body: dict[str, Any]) -> dict[str, Any]:
        now = _now_iso()
        doc: dict[str, Any] = {
            "_id": new_server_id(),
            "userId": user_id,
            "title": "",
            "streak": 0,
            "lastCompletedDate": None,
            "completedToday": False,
            "tasks": [],
        }
        doc.update(_pick(body, LIST_FIELDS))
        doc["createdAt"] = doc["updatedAt"] = now
        with self._edit("lists") as lists:
            lists[doc["_id"]] = doc
        return doc

    def update_list(self, user_id: str, list_id: str, body: dict[str, Any]) -> dict[str, Any] | None:
        with self._edit("lists") as lists:
            doc = lists.get(list_id)
            if doc is None or doc.get("userId") != user_id:
                return None
            doc.update(_pick(body, LIST_FIELDS))
            doc["updatedAt"] = _now_iso()
        return doc

    def delete_list(self, user_id: str, list_id: str) -> bool:
        with self._edit("lists") as lists:
            doc = lists.get(list_id)
            if doc is None or doc.get("userId") != user_id:
                return False
            del lists[list_id]
        return True

    # ── Overall ───────────────────────────────────────────────

    @staticmethod
    def _overall_doc(overall: dict[str, dict[str, Any]], user_id: str) -> dict[str, Any]:
        doc = overall.get(user_id)
        if doc is None:
            doc = {
                "_id": new_server_id(),
                "userId": user_id,
                "streak": 0,
                "lastCompletedDate": None,
                "completedToday": False,
            }
            overall[user_id] = doc
        return doc

    def get_overall(self, user_id: str) -> dict[str, Any]:
        """Return the user's overall record, creating it on first access."""
        doc = self._load("overall").get(user_id)
        if doc is not None:
            return doc
        with self._edit("overall") as overall:
            return self._overall_doc(overall, user_id)

    def put_overall(self, user_id: str, body: dict[str, Any]) -> dict[str, Any]:
        with self._edit("overall") as overall:
            doc = self._overall_doc(overall, user_id)
            doc.update(_pick(body, OVERALL_FIELDS))
            doc["updatedAt"] = _now_iso()
        return doc
