"""
Alarm escalation.

Implements the policy/mode dispatch for a fired sensor and the timed path
``entry_delay -> alarm_pre -> alarm_full``, as well as silent events.

Notes
-----
Both trigger origins (rising edge and "changed since arming") enter through
:meth:`AlarmEscalation.handle_trigger`, so the sensor policy is applied the
same way regardless of how the trigger was detected.
"""

from __future__ import annotations

import logging

from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.core.mode_controller import ModeController
from smarthome_alarm.core.outputs import OutputDriver
from smarthome_alarm.core.timers import TimerCategory
from smarthome_alarm.domain.events import EventSeverity, EventType
from smarthome_alarm.domain.models import ControlMode, SensorDefinition, SensorPolicy

logger = logging.getLogger(__name__)

SILENT_EVENT_HOLD_S = 10.0


class AlarmEscalation:
    """
    Escalation state machine driven by sensor triggers and timers.

    Parameters
    ----------
    core
        Shared core state.
    modes
        Mode controller used to commit every transition.
    outputs
        Output driver (alarm-duration expiry).
    """

    def __init__(self, core: CoreState, modes: ModeController, outputs: OutputDriver) -> None:
        self._core = core
        self._modes = modes
        self._outputs = outputs

    def handle_trigger(self, sensor: SensorDefinition) -> None:
        """
        Dispatch a fired sensor according to its policy and the current mode.

        - ``silent`` sensors always produce a silent event
        - ``disarmed``/``arming``: ignored
        - ``armed_perimeter`` with a mask without ``perimeter``: ignored
        - ``entry_delay``: ``instant`` sensors escalate, delayed ones are ignored
        - ``alarm_pre``/``alarm_full``: only the last-trigger record is updated
        - otherwise ``entryDelay`` starts the entry delay, ``instant`` escalates
        """
        mode = self._core.mode

        if sensor.policy == SensorPolicy.SILENT:
            self.silent_event(sensor)
            return
        if mode in (ControlMode.DISARMED, ControlMode.ARMING):
            logger.debug("Trigger of %s ignored in %s", sensor.id, mode.value)
            return
        if mode == ControlMode.ARMED_PERIMETER and not sensor.is_relevant_for(mode):
            logger.debug("Trigger of %s ignored, not part of the perimeter", sensor.id)
            return
        if mode == ControlMode.ENTRY_DELAY:
            if sensor.policy == SensorPolicy.INSTANT:
                self.trigger_alarm(sensor, "instant_during_entry")
            return
        if mode in (ControlMode.ALARM_PRE, ControlMode.ALARM_FULL):
            self._core.record_last_trigger("alarm_triggered", sensor, mode)
            return

        if sensor.policy == SensorPolicy.ENTRY_DELAY:
            self.start_entry_delay(sensor)
        else:
            self.trigger_alarm(sensor, "instant_trigger")

    # --- entry delay ---
    def start_entry_delay(self, sensor: SensorDefinition) -> None:
        core = self._core
        delay = core.config.entry_delay_sec
        self._cancel_entry_timers()
        self._modes.commit(ControlMode.ENTRY_DELAY)
        core.record_last_trigger("entry_delay", sensor)
        core.events.emit(
            EventType.ENTRY_DELAY_STARTED,
            EventSeverity.INFO,
            f"Entry delay started ({sensor.name or sensor.id})",
            mode=ControlMode.ENTRY_DELAY,
            sensor=sensor,
        )
        if delay == 0:
            self.trigger_alarm(sensor, "entry_delay_elapsed")
            return

        core.store.update(entry_remaining=delay)
        core.timers.schedule(TimerCategory.ENTRY, delay, lambda: self.trigger_alarm(sensor, "entry_delay_elapsed"))
        self._schedule_entry_tick(delay)

    def _schedule_entry_tick(self, remaining: int) -> None:
        def _tick() -> None:
            left = max(remaining - 1, 0)
            self._core.store.update(entry_remaining=left)
            if left > 0:
                self._schedule_entry_tick(left)

        self._core.timers.schedule(TimerCategory.ENTRY_COUNTDOWN, 1, _tick)

    def _cancel_entry_timers(self) -> None:
        self._core.timers.cancel(TimerCategory.ENTRY)
        self._core.timers.cancel(TimerCategory.ENTRY_COUNTDOWN)

    # --- escalation ---
    def trigger_alarm(self, sensor: SensorDefinition, reason: str) -> None:
        """Leave the entry delay and enter pre-alarm (if configured) or full alarm."""
        self._cancel_entry_timers()
        self._core.store.update(entry_remaining=0)
        if self._core.config.pre_alarm_sec > 0:
            self.start_pre_alarm(sensor, reason)
        else:
            self.start_full_alarm(sensor, reason)

    def start_pre_alarm(self, sensor: SensorDefinition, reason: str) -> None:
        core = self._core
        core.timers.cancel(TimerCategory.PRE_ALARM)
        self._modes.commit(ControlMode.ALARM_PRE)
        core.store.update(alarm_active=True)
        core.record_last_trigger(reason, sensor, ControlMode.ALARM_PRE)
        core.events.emit(
            EventType.ALARM_PRE_STARTED,
            EventSeverity.WARNING,
            f"Pre-alarm started ({sensor.name or sensor.id})",
            mode=ControlMode.ALARM_PRE,
            sensor=sensor,
        )
        core.timers.schedule(
            TimerCategory.PRE_ALARM,
            core.config.pre_alarm_sec,
            lambda: self.start_full_alarm(sensor, "alarm_pre_elapsed"),
        )

    def start_full_alarm(self, sensor: SensorDefinition, reason: str) -> None:
        core = self._core
        core.timers.cancel(TimerCategory.PRE_ALARM)
        core.timers.cancel(TimerCategory.ALARM_DURATION)
        self._outputs.reset_timeout()
        core.store.update(alarm_active=True, outputs_active=True)
        self._modes.commit(ControlMode.ALARM_FULL)
        core.record_last_trigger(reason, sensor, ControlMode.ALARM_FULL)
        core.events.emit(
            EventType.ALARM_FULL_STARTED,
            EventSeverity.ALARM,
            f"Full alarm started ({sensor.name or sensor.id})",
            mode=ControlMode.ALARM_FULL,
            sensor=sensor,
        )
        duration = core.config.alarm_duration_sec
        if duration > 0:
            core.timers.schedule(TimerCategory.ALARM_DURATION, duration, self._outputs.expire)

    # --- silent ---
    def silent_event(self, sensor: SensorDefinition) -> None:
        """Record a silent event; the mode never changes."""
        core = self._core
        core.record_last_trigger("silent_trigger", sensor)
        core.events.emit(
            EventType.SILENT_EVENT,
            EventSeverity.INFO,
            f"Silent event ({sensor.name or sensor.id})",
            sensor=sensor,
        )
        count = core.store.snapshot().silent_event_count + 1
        core.store.update(silent_event=True, silent_event_count=count)
        core.timers.schedule(TimerCategory.SILENT_EVENT, SILENT_EVENT_HOLD_S, self._clear_silent_event)

    def _clear_silent_event(self) -> None:
        self._core.store.update(silent_event=False)
