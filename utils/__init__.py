"""Utility modules for cross-cutting concerns."""

from utils.timezone import Clock, now_utc, to_utc, today_utc, add_days, fixed_clock
from utils.actor_context import (
    SYSTEM_ACTOR,
    get_current_actor,
    set_current_actor,
    clear_current_actor,
    actor_context,
)
