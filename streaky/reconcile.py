"""Optimistic local state kept in step with the record store.

All state changes run synchronously on the event loop: an action builds a new
AppState from the current one and the reconciler swaps it in. Writes run as
separate asyncio tasks afterwards. When one completes it merges only the field
it owns (a list id, the overall dirty flag) into whatever snapshot is current,
so a slow response never overwrites newer local edits.

Failed writes are logged and dropped. A list is re-pushed whole on its next
change; the overall record stays dirty and is retried on every state change
until a write goes through.
"""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import logging
from datetime import datetime
from typing import Any, Callable

from streaky import actions
from streaky.actions import Mutation, WriteIntent
from streaky.clock import now_ist, seconds_until_next_midnight, today_str
from streaky.errors import AuthError, NotFoundError, StoreError, ValidationError
from streaky.models import AppState, is_server_id
from streaky.session import Session
from streaky.store import RecordStore


logger = logging.getLogger(__name__)

MIN_TIMER_DELAY = 1.0


class Reconciler:
    def __init__(
        self,
        store: RecordStore,
        session: Session | None = None,
        *,
        clock: Callable[[], datetime] = now_ist,
        min_timer_delay: float = MIN_TIMER_DELAY,
    ) -> None:
        self.store = store
        self.session = session
        self.clock = clock
        self.min_timer_delay = min_timer_delay
        self.state = AppState(day_key=today_str(clock()))
        self.booted = False
        self.logged_out = False
        self.failures: list[StoreError] = []
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._overall_flush: asyncio.Task | None = None

    # ── Lifecycle ─────────────────────────────────────────────

    async def start(self) -> bool:
        """Load records, catch up a missed day boundary, arm the midnight timer.

        Returns False when the initial load failed; the timer is armed anyway.
        """
        try:
            lists, overall = await asyncio.gather(
                self.store.get_lists(), self.store.get_overall()
            )
        except StoreError as e:
            logger.warning("Initial load failed: %s", e)
            self._record(e)
            self._schedule_rollover()
            return False

        stored_day = self.session.day_key if self.session else None
        self.state = AppState(
            day_key=stored_day or today_str(self.clock()),
            overall=overall,
            lists=lists,
        )
        self.booted = True

        if self.state.day_key != today_str(self.clock()):
            self._rollover()
        elif self.session:
            self.session.remember_day(self.state.day_key)
        self._schedule_rollover()
        return True

    def stop(self) -> None:
        self._clear_timer()

    async def drain(self) -> None:
        """Wait for every in-flight write, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Mutations ─────────────────────────────────────────────

    def dispatch(self, action: Callable[..., Mutation], *args: Any) -> AppState:
        try:
            mutation = action(self.state, *args)
        except ValidationError as e:
            logger.debug("Rejected %s: %s", action.__name__, e)
            return self.state
        return self._apply(mutation)

    def add_list(self, title: str) -> AppState:
        return self.dispatch(actions.add_list, title)

    def rename_list(self, list_id: str, title: str) -> AppState:
        return self.dispatch(actions.rename_list, list_id, title)

    def delete_list(self, list_id: str) -> AppState:
        return self.dispatch(actions.delete_list, list_id)

    def add_task(self, list_id: str, text: str) -> AppState:
        return self.dispatch(actions.add_task, list_id, text)

    def toggle_task(self, list_id: str, task_id: str, checked: bool) -> AppState:
        return self.dispatch(actions.toggle_task, list_id, task_id, checked)

    def delete_task(self, list_id: str, task_id: str) -> AppState:
        return self.dispatch(actions.delete_task, list_id, task_id)

    def _apply(self, mutation: Mutation) -> AppState:
        if mutation.state is self.state:
            return self.state
        self.state = mutation.state
        for intent in mutation.intents:
            self._spawn(self._guarded(self._persist(intent)))
        self._kick_overall()
        return self.state

    # ── Day boundary ──────────────────────────────────────────

    def _rollover(self) -> None:
        self._apply(actions.daily_rollover(self.state, today_str(self.clock())))
        if self.session:
            self.session.remember_day(self.state.day_key)

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_rollover(self) -> None:
        self._clear_timer()
        delay = max(seconds_until_next_midnight(self.clock()), self.min_timer_delay)
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_midnight)
        logger.debug("Next rollover in %.0fs", delay)

    def _on_midnight(self) -> None:
        self._timer = None
        self._rollover()
        self._schedule_rollover()

    # ── Persistence ───────────────────────────────────────────

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _record(self, error: StoreError) -> None:
        if isinstance(error, AuthError):
            self.logged_out = True
        elif isinstance(error, NotFoundError):
            self.failures.append(error)

    async def _guarded(self, coro) -> None:
        try:
            await coro
        except StoreError as e:
            logger.warning("Write failed: %s", e)
            self._record(e)

    async def _persist(self, intent: WriteIntent) -> None:
        if intent.kind == actions.CREATE_LIST:
            await self._create(intent)
        elif intent.kind == actions.UPDATE_LIST:
            if is_server_id(intent.list_id):
                await self.store.update_list(intent.list_id, intent.todo_list)
        elif intent.kind == actions.DELETE_LIST:
            if is_server_id(intent.list_id):
                await self.store.delete_list(intent.list_id)

    async def _create(self, intent: WriteIntent) -> None:
        saved = await self.store.create_list(intent.todo_list)
        if self.state.find_list(intent.list_id) is None:
            # deleted locally while the create was in flight
            await self.store.delete_list(saved.id)
            return

        s = copy.deepcopy(self.state)
        current = s.find_list(intent.list_id)
        current.id = saved.id
        self.state = s
        self._kick_overall()
        await self.store.update_list(saved.id, current)

    def _kick_overall(self) -> None:
        if not self.booted or self.logged_out or not self.state.overall_dirty:
            return
        if self._overall_flush is not None and not self._overall_flush.done():
            return
        self._overall_flush = self._spawn(self._flush_overall())

    async def _flush_overall(self) -> None:
        while self.state.overall_dirty:
            written = copy.copy(self.state.overall)
            try:
                await self.store.put_overall(written)
            except StoreError as e:
                logger.warning("Overall write failed, will retry: %s", e)
                self._record(e)
                return
            if self.state.overall == written:
                self.state = dataclasses.replace(self.state, overall_dirty=False)
                return
