"""User mutations over AppState.

Every action deep-copies the incoming snapshot, applies list and overall
streak transitions to the copy, and returns it together with the writes the
change needs. Overall writes are not listed: they follow ``overall_dirty``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from streaky.errors import ValidationError
from streaky.models import AppState, Task, TodoList, new_local_id
from streaky.streaks import (
    all_lists_completed,
    apply_overall_transition,
    is_completed_on,
    recompute_list,
    rollover,
)


CREATE_LIST = "create_list"
UPDATE_LIST = "update_list"
DELETE_LIST = "delete_list"


@dataclass
class WriteIntent:
    kind: str
    list_id: str
    todo_list: TodoList | None = None


@dataclass
class Mutation:
    state: AppState
    intents: list[WriteIntent] = field(default_factory=list)


def _clean_text(value: str, what: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{what} must not be empty")
    return text


def _update(todo_list: TodoList) -> WriteIntent:
    return WriteIntent(UPDATE_LIST, todo_list.id, todo_list)


# ── Lists ─────────────────────────────────────────────────────


def add_list(state: AppState, title: str) -> Mutation:
    title = _clean_text(title, "List title")
    s = copy.deepcopy(state)
    prev_all_done = all_lists_completed(s.lists, s.day_key)

    new_list = TodoList(id=new_local_id(), title=title)
    s.lists.append(new_list)

    apply_overall_transition(s, prev_all_done, all_lists_completed(s.lists, s.day_key))
    return Mutation(s, [WriteIntent(CREATE_LIST, new_list.id, new_list)])


def rename_list(state: AppState, list_id: str, title: str) -> Mutation:
    title = _clean_text(title, "List title")
    if state.find_list(list_id) is None:
        return Mutation(state)
    s = copy.deepcopy(state)
    todo_list = s.find_list(list_id)
    todo_list.title = title
    return Mutation(s, [_update(todo_list)])


def delete_list(state: AppState, list_id: str) -> Mutation:
    if state.find_list(list_id) is None:
        return Mutation(state)
    s = copy.deepcopy(state)
    prev_all_done = all_lists_completed(s.lists, s.day_key)
    s.lists = [x for x in s.lists if x.id != list_id]
    apply_overall_transition(s, prev_all_done, all_lists_completed(s.lists, s.day_key))
    return Mutation(s, [WriteIntent(DELETE_LIST, list_id)])


# ── Tasks ─────────────────────────────────────────────────────


def _task_change(state: AppState, list_id: str, change) -> Mutation:
    """Run *change* on a copy of the list, then recompute both streak levels."""
    s = copy.deepcopy(state)
    todo_list = s.find_list(list_id)
    if todo_list is None:
        return Mutation(state)

    prev_all_done = all_lists_completed(s.lists, s.day_key)
    was_completed = is_completed_on(todo_list, s.day_key)
    if change(todo_list) is False:
        return Mutation(state)

    recompute_list(todo_list, s.day_key, was_completed)
    apply_overall_transition(s, prev_all_done, all_lists_completed(s.lists, s.day_key))
    return Mutation(s, [_update(todo_list)])


def add_task(state: AppState, list_id: str, text: str) -> Mutation:
    text = _clean_text(text, "Task text")

    def change(todo_list: TodoList) -> None:
        todo_list.tasks.append(Task(id=new_local_id(), text=text, done=False))

    return _task_change(state, list_id, change)


def toggle_task(state: AppState, list_id: str, task_id: str, checked: bool) -> Mutation:
    def change(todo_list: TodoList) -> bool:
        for task in todo_list.tasks:
            if task.id == task_id:
                task.done = bool(checked)
                return True
        return False

    return _task_change(state, list_id, change)


def delete_task(state: AppState, list_id: str, task_id: str) -> Mutation:
    def change(todo_list: TodoList) -> bool:
        remaining = [t for t in todo_list.tasks if t.id != task_id]
        if len(remaining) == len(todo_list.tasks):
            return False
        todo_list.tasks = remaining
        return True

    return _task_change(state, list_id, change)


# ── Day boundary ──────────────────────────────────────────────


def daily_rollover(state: AppState, today: str) -> Mutation:
    s = rollover(state, today)
    if s is state:
        return Mutation(state)
    return Mutation(s, [_update(todo_list) for todo_list in s.lists])
