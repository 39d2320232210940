"""
Unit tests for smarthome_alarm.core.timers.

Validates:
- ManualScheduler fires callbacks in due-time order, ties by scheduling order
- cancelled callbacks never fire
- TimerTable keeps at most one timer per category
- cancel / cancel_prefix / cancel_all bookkeeping (optionally keeping categories)
"""

from __future__ import annotations

from datetime import timedelta
from typing import List

from smarthome_alarm.core.timers import ManualScheduler, TimerCategory, TimerTable, chirp_category


def test_manual_scheduler_fires_in_order() -> None:
    s = ManualScheduler()
    fired: List[str] = []

    s.call_later(2, lambda: fired.append("b"))
    s.call_later(1, lambda: fired.append("a"))
    s.call_later(2, lambda: fired.append("c"))

    s.advance(1.5)
    assert fired == ["a"]
    s.advance(0.5)
    assert fired == ["a", "b", "c"]
    assert s.monotonic() == 2.0
    assert s.now() == s.start + timedelta(seconds=2)


def test_manual_scheduler_skips_cancelled() -> None:
    s = ManualScheduler()
    fired: List[int] = []
    h = s.call_later(1, lambda: fired.append(1))
    h.cancel()

    assert s.pending() == 0
    assert s.next_due() is None
    s.advance(5)
    assert fired == []


def test_manual_scheduler_runs_callbacks_scheduled_during_advance() -> None:
    s = ManualScheduler()
    fired: List[float] = []

    def first() -> None:
        fired.append(s.monotonic())
        s.call_later(1, lambda: fired.append(s.monotonic()))

    s.call_later(1, first)
    s.advance(3)
    assert fired == [1.0, 2.0]


def test_timer_table_replaces_timer_of_same_category() -> None:
    s = ManualScheduler()
    table = TimerTable(s)
    fired: List[str] = []

    table.schedule(TimerCategory.EXIT, 5, lambda: fired.append("old"))
    table.schedule(TimerCategory.EXIT, 5, lambda: fired.append("new"))

    assert s.pending() == 1
    s.advance(5)
    assert fired == ["new"]
    assert not table.active(TimerCategory.EXIT)


def test_timer_table_cancel_helpers() -> None:
    s = ManualScheduler()
    table = TimerTable(s)

    table.schedule(TimerCategory.ENTRY, 1, lambda: None)
    table.schedule(chirp_category("a"), 1, lambda: None)
    table.schedule(chirp_category("b"), 1, lambda: None)

    assert table.active_categories() == ["chirp:a", "chirp:b", "entry"]
    assert table.cancel(TimerCategory.ENTRY) is True
    assert table.cancel(TimerCategory.ENTRY) is False

    table.cancel_prefix("chirp:")
    assert table.active_categories() == []

    table.schedule(TimerCategory.PRE_ALARM, 1, lambda: None)
    table.schedule(TimerCategory.SILENT_EVENT, 1, lambda: None)
    table.cancel_all()
    assert s.pending() == 0


def test_cancel_all_can_keep_categories() -> None:
    s = ManualScheduler()
    table = TimerTable(s)
    fired: List[str] = []

    table.schedule(TimerCategory.ENTRY, 1, lambda: fired.append("entry"))
    table.schedule(chirp_category("siren"), 1, lambda: fired.append("chirp"))
    table.schedule(TimerCategory.SILENT_EVENT, 2, lambda: fired.append("silent"))

    table.cancel_all(keep=(TimerCategory.SILENT_EVENT,))

    assert table.active_categories() == ["silent_event"]
    s.advance(2)
    assert fired == ["silent"]
