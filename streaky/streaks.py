"""Streak state machine for lists and the overall record.

The list/overall helpers mutate the record they are given. Callers hand them
records that belong to a freshly deep-copied AppState (see ``streaky.actions``)
so the previous snapshot is never touched. ``rollover`` copies on its own.
"""

from __future__ import annotations

import copy
import logging

from streaky.clock import yesterday_label
from streaky.models import AppState, Overall, StreakSnapshot, TodoList


logger = logging.getLogger(__name__)


# ── Lists ─────────────────────────────────────────────────────


def is_completed_on(todo_list: TodoList, day: str) -> bool:
    return todo_list.completed_today and todo_list.last_completed_date == day


def increment_list(todo_list: TodoList, today: str) -> None:
    """Mark *todo_list* completed today, carrying the streak from yesterday."""
    todo_list.streak_before_today = todo_list.streak
    todo_list.prev_last_completed_date = todo_list.last_completed_date
    if todo_list.last_completed_date == yesterday_label(today):
        todo_list.streak += 1
    else:
        todo_list.streak = 1
    todo_list.last_completed_date = today
    todo_list.completed_today = True


def rollback_list(todo_list: TodoList, today: str) -> None:
    """Undo today's increment by restoring the pre-increment pair."""
    if todo_list.last_completed_date != today:
        todo_list.completed_today = False
        return
    prev_streak = todo_list.streak_before_today
    todo_list.streak = prev_streak if prev_streak is not None else 0
    todo_list.last_completed_date = todo_list.prev_last_completed_date
    todo_list.completed_today = False
    todo_list.clear_snapshot()


def recompute_list(todo_list: TodoList, today: str, was_completed: bool) -> None:
    """Apply the streak transition after a task add/toggle/delete.

    *was_completed* is ``is_completed_on(todo_list, today)`` evaluated before
    the task change.
    """
    now_completed = todo_list.all_tasks_done()
    if now_completed and not was_completed:
        increment_list(todo_list, today)
    elif was_completed and not now_completed:
        rollback_list(todo_list, today)
    else:
        todo_list.completed_today = now_completed


def rollover_list(todo_list: TodoList, old_day: str) -> None:
    if not is_completed_on(todo_list, old_day):
        todo_list.streak = 0
    todo_list.completed_today = False
    for task in todo_list.tasks:
        task.done = False
    todo_list.clear_snapshot()


# ── Overall ───────────────────────────────────────────────────


def all_lists_completed(lists: list[TodoList], today: str) -> bool:
    """True when every list is completed today. No lists is never all done."""
    if not lists:
        return False
    return all(is_completed_on(todo_list, today) for todo_list in lists)


def apply_overall_transition(
    state: AppState, prev_all_done: bool, now_all_done: bool
) -> None:
    """Move the overall streak when the all-lists-done flag flips.

    Going back from all-done decrements and backdates instead of restoring a
    snapshot: re-completing the same day then carries from yesterday and lands
    on the pre-decrement value when that value was above 1.
    """
    today = state.day_key
    overall = state.overall
    yest = yesterday_label(today)

    if not prev_all_done and now_all_done:
        state.overall_before_today = StreakSnapshot(
            streak=overall.streak,
            last_completed_date=overall.last_completed_date,
        )
        if overall.last_completed_date == yest:
            overall.streak += 1
        else:
            overall.streak = 1
        overall.completed_today = True
        overall.last_completed_date = today
        state.overall_dirty = True
        return

    if prev_all_done and not now_all_done:
        overall.streak = max(0, overall.streak - 1)
        overall.last_completed_date = yest if overall.streak > 0 else None
        overall.completed_today = False
        state.overall_before_today = None
        state.overall_dirty = True


def rollover_overall(overall: Overall, old_day: str) -> None:
    if not (overall.completed_today and overall.last_completed_date == old_day):
        overall.streak = 0
    overall.completed_today = False


# ── Daily rollover ────────────────────────────────────────────


def rollover(state: AppState, today: str) -> AppState:
    """Close out ``state.day_key`` and open *today*.

    Returns *state* itself when it is already on *today*.
    """
    if state.day_key == today:
        return state

    s = copy.deepcopy(state)
    old_day = s.day_key
    for todo_list in s.lists:
        rollover_list(todo_list, old_day)

    before = copy.copy(s.overall)
    rollover_overall(s.overall, old_day)
    s.overall_before_today = None
    if s.overall != before:
        s.overall_dirty = True

    s.day_key = today
    logger.info("Rolled over %s -> %s (%d lists)", old_day, today, len(s.lists))
    return s
