"""
Arming sequencer.

Drives ``disarmed -> arming -> armed_full | armed_perimeter`` and the
disarm from any mode.

Arming
------
1. Cancel every running timer except the silent-event hold, and drop the
   countdowns and alarm flags of the cycle being replaced.
2. Compute the open sensors for the target mode (mode-relevant, not
   bypassed, currently reading the trigger value). Unreadable sensors are
   put into trouble and left out.
3. Apply the open-sensor policy (block / auto-bypass / strict bypass).
4. Commit ``arming`` and run the exit delay with a 1 Hz countdown.
5. Finalize: capture baseline and arming snapshot, commit the target mode.
"""

from __future__ import annotations

import logging
from typing import List

from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.core.mode_controller import ModeController
from smarthome_alarm.core.outputs import OutputDriver
from smarthome_alarm.core.sensors.normalizer import Readable
from smarthome_alarm.core.sensors.trouble_tracker import TroubleTracker
from smarthome_alarm.core.timers import TimerCategory
from smarthome_alarm.domain.events import EventSeverity, EventType
from smarthome_alarm.domain.models import ARMED_MODES, ControlMode

logger = logging.getLogger(__name__)


class ArmingSequencer:
    """
    Arm/disarm orchestration.

    Parameters
    ----------
    core
        Shared core state.
    modes
        Mode controller.
    outputs
        Output driver (silence reset, post-alarm chirp).
    trouble
        Trouble tracker updated while reading sensors at arm time.
    """

    def __init__(
        self,
        core: CoreState,
        modes: ModeController,
        outputs: OutputDriver,
        trouble: TroubleTracker,
    ) -> None:
        self._core = core
        self._modes = modes
        self._outputs = outputs
        self._trouble = trouble
        self._target: ControlMode = ControlMode.ARMED_FULL

    @property
    def target(self) -> ControlMode:
        """Armed mode the current (or last) arming cycle is heading to."""
        return self._target

    def arm(self, target: ControlMode) -> bool:
        """
        Start arming towards ``target``.

        Re-requesting the current target while already armed in it, or while
        arming towards it, is ignored.

        Parameters
        ----------
        target
            ``armed_full`` or ``armed_perimeter``.

        Returns
        -------
        bool
            True if an arming cycle was started (or completed immediately),
            False if it was ignored or blocked.
        """
        if target not in ARMED_MODES:
            logger.warning("Cannot arm towards %s", target)
            return False

        core = self._core
        mode = core.mode
        if mode == target or (mode == ControlMode.ARMING and self._target == target):
            logger.info("Arm request for %s ignored, already %s", target.value, mode.value)
            return False

        core.timers.cancel_all(keep=(TimerCategory.SILENT_EVENT,))
        self._abort_cycle()
        self._target = target

        open_sensors = self.open_sensors_for(target)
        core.store.update(open_list=open_sensors)

        bypassed: List[str] = []
        if open_sensors:
            blocked = core.config.block_arming_if_open
            if not blocked and core.config.auto_bypass_open_on_arming:
                for sensor_id in open_sensors:
                    sensor = core.sensors.get(sensor_id)
                    if sensor is not None and sensor.bypassable:
                        bypassed.append(sensor_id)
                if core.config.strict_bypass and len(bypassed) < len(open_sensors):
                    blocked = True
            if blocked:
                self._block(open_sensors)
                return False
            core.bypass.update(bypassed)
            if len(bypassed) < len(open_sensors):
                logger.warning(
                    "Arming with open sensors not bypassed: %s",
                    ", ".join(s for s in open_sensors if s not in bypassed),
                )

        core.store.update(bypassed_list=bypassed)
        self._modes.commit(ControlMode.ARMING)
        core.events.emit(
            EventType.ARMING_STARTED,
            EventSeverity.INFO,
            f"Arming started ({target.value})",
            mode=ControlMode.ARMING,
        )

        delay = core.config.exit_delay_sec
        if delay == 0:
            self.finalize(target)
            return True

        core.store.update(exit_remaining=delay)
        core.timers.schedule(TimerCategory.EXIT, delay, lambda: self.finalize(target))
        self._schedule_exit_tick(delay)
        return True

    def _abort_cycle(self) -> None:
        """Clear what an interrupted exit, entry or alarm cycle left published."""
        self._outputs.reset_timeout()
        self._core.store.update(
            exit_remaining=0,
            entry_remaining=0,
            alarm_active=False,
            outputs_active=False,
            silenced=False,
        )

    def _block(self, open_sensors: List[str]) -> None:
        core = self._core
        self._modes.commit(ControlMode.DISARMED)
        core.record_last_trigger("arming_blocked_open")
        core.store.update(bypassed_list=[])
        core.events.emit(
            EventType.ARMING_BLOCKED,
            EventSeverity.WARNING,
            f"Arming blocked: open sensors ({len(open_sensors)})",
            mode=ControlMode.DISARMED,
        )

    def _schedule_exit_tick(self, remaining: int) -> None:
        def _tick() -> None:
            left = max(remaining - 1, 0)
            self._core.store.update(exit_remaining=left)
            if left > 0:
                self._schedule_exit_tick(left)

        self._core.timers.schedule(TimerCategory.EXIT_COUNTDOWN, 1, _tick)

    def open_sensors_for(self, target: ControlMode) -> List[str]:
        """
        Return ids of mode-relevant, non-bypassed sensors currently open.

        Reading a sensor also updates its trouble membership.
        """
        core = self._core
        open_ids: List[str] = []
        for sensor in core.sensors.all():
            if not sensor.is_relevant_for(target) or sensor.id in core.bypass:
                continue
            value = core.read_sensor(sensor)
            if not isinstance(value, Readable):
                self._trouble.mark_trouble(sensor.id)
                continue
            self._trouble.clear_trouble(sensor.id)
            if value.value == sensor.trigger_value:
                open_ids.append(sensor.id)
        return open_ids

    def finalize(self, target: ControlMode) -> None:
        """Complete the exit delay and commit the armed mode."""
        core = self._core
        core.timers.cancel(TimerCategory.EXIT)
        core.timers.cancel(TimerCategory.EXIT_COUNTDOWN)
        core.store.update(exit_remaining=0)

        if core.config.use_baseline_snapshot:
            self._capture_baseline()
        self._capture_snapshot(target)

        self._modes.commit(target)
        core.record_last_trigger("armed", mode=target)
        core.events.emit(
            EventType.ARMED,
            EventSeverity.INFO,
            f"System armed ({target.value})",
            mode=target,
        )

    def _capture_baseline(self) -> None:
        core = self._core
        core.baseline.clear()
        for sensor in core.sensors.all():
            value = core.read_sensor(sensor)
            if not isinstance(value, Readable):
                self._trouble.mark_trouble(sensor.id)
                continue
            self._trouble.clear_trouble(sensor.id)
            core.baseline[sensor.id] = value.value

    def _capture_snapshot(self, target: ControlMode) -> None:
        core = self._core
        core.snapshot.clear()
        for sensor in core.sensors.all():
            if not sensor.is_relevant_for(target) or sensor.id in core.bypass:
                continue
            value = core.read_sensor(sensor)
            if isinstance(value, Readable):
                core.snapshot[sensor.id] = value.value

    def disarm(self) -> None:
        """
        Disarm from any mode.

        Cancels every timer, clears bypass/baseline/snapshot, resets counters
        and alarm flags, commits ``disarmed`` and emits ``disarmed``. If an
        alarm was active and post-alarm chirp is enabled, chirp outputs run
        their pattern once more.
        """
        core = self._core
        was_alarm = core.store.snapshot().alarm_active

        core.timers.cancel_all()
        core.bypass.clear()
        core.baseline.clear()
        core.snapshot.clear()
        self._outputs.reset_timeout()
        core.store.update(
            exit_remaining=0,
            entry_remaining=0,
            alarm_active=False,
            outputs_active=False,
            silenced=False,
            silent_event=False,
            open_list=[],
            bypassed_list=[],
        )
        self._modes.commit(ControlMode.DISARMED)
        core.record_last_trigger("disarmed")
        core.events.emit(
            EventType.DISARMED,
            EventSeverity.INFO,
            "System disarmed",
            mode=ControlMode.DISARMED,
        )

        if was_alarm and core.config.chirp_after_alarm_disarm and core.config.chirp_sec > 0:
            self._outputs.start_chirp(core.config.chirp_sec)
