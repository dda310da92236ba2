"""Streaky core library — streak engine, reconciliation and storage.

Public API re-exports for convenient imports:
    from streaky import today_str, toggle_task, Reconciler, ...
"""

__version__ = "0.1.0"

# Calendar
from streaky.clock import (
    IST,
    now_ist,
    today_str,
    yesterday_label,
    tomorrow_label,
    next_midnight,
    seconds_until_next_midnight,
)

# Errors
from streaky.errors import (
    StreakyError,
    ValidationError,
    StoreError,
    TransientStoreError,
    NotFoundError,
    AuthError,
)

# Models
from streaky.models import (
    Task,
    TodoList,
    Overall,
    StreakSnapshot,
    AppState,
    from_server,
    to_server,
    is_server_id,
    new_local_id,
)

# Streak engine
from streaky.streaks import (
    is_completed_on,
    increment_list,
    rollback_list,
    recompute_list,
    rollover_list,
    all_lists_completed,
    apply_overall_transition,
    rollover_overall,
    rollover,
)

# Actions
from streaky.actions import (
    WriteIntent,
    Mutation,
    add_list,
    rename_list,
    delete_list,
    add_task,
    toggle_task,
    delete_task,
    daily_rollover,
)

# Persistence & reconciliation
from streaky.session import Session
from streaky.store import RecordStore, HttpRecordStore
from streaky.reconcile import Reconciler
