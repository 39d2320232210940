from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Union

from smarthome_alarm.core.arming import ArmingSequencer
from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.core.escalation import AlarmEscalation
from smarthome_alarm.core.mode_controller import ModeController
from smarthome_alarm.core.outputs import OutputDriver
from smarthome_alarm.core.sensors.normalizer import Readable
from smarthome_alarm.core.sensors.sensor_monitor import SensorMonitor
from smarthome_alarm.core.sensors.trouble_tracker import TroubleTracker
from smarthome_alarm.core.state_store import PublishedState
from smarthome_alarm.domain.events import EventRecord
from smarthome_alarm.domain.models import Command, ControlMode, SensorUpdate

logger = logging.getLogger(__name__)

IncomingMessage = Union[SensorUpdate, Command]

COMMANDS = ("arm_full", "arm_perimeter", "disarm", "mode", "silenced")


@dataclass
class AlarmController:
    """
    Entry point for sensor updates and commands.

    Responsibilities
    ----------------
    - Route raw sensor updates into the sensor monitor pipeline.
    - Route arm / disarm / mode / silence commands to the arming sequencer,
      the mode controller and the output driver.
    - Report which event records a call produced.

    Notes
    -----
    This controller contains orchestration logic only. It is not thread-safe:
    at runtime every call is made from the alarm worker thread.

    Parameters
    ----------
    core
        Shared core state.
    trouble, outputs, modes, escalation, arming, monitor
        Core components wired by :func:`smarthome_alarm.bootstrap.build_alarm_core`.
    """

    core: CoreState
    trouble: TroubleTracker
    outputs: OutputDriver
    modes: ModeController
    escalation: AlarmEscalation
    arming: ArmingSequencer
    monitor: SensorMonitor

    def start(self) -> None:
        """
        Apply the initial state.

        Commits the current mode so every output receives its value, and
        publishes the trouble state of sensors that currently read garbage.
        Sensor values present at start are not treated as transitions.
        """
        self.modes.commit(self.core.mode)
        for sensor in self.core.sensors.all():
            raw = self.core.source.read(sensor.id)
            if raw is None:
                continue
            value = self.core.read_sensor(sensor)
            if isinstance(value, Readable):
                self.core.runtime[sensor.id].last_value = value.value
            else:
                self.trouble.mark_trouble(sensor.id)

    # --- inbound ---
    def handle_sensor_update(self, sensor_id: str, raw: Any) -> bool:
        """Feed one raw sensor update through the monitor pipeline."""
        return self.monitor.handle_update(sensor_id, raw)

    def arm_full(self) -> bool:
        return self.arming.arm(ControlMode.ARMED_FULL)

    def arm_perimeter(self) -> bool:
        return self.arming.arm(ControlMode.ARMED_PERIMETER)

    def disarm(self) -> None:
        self.arming.disarm()

    def set_mode(self, value: Any) -> bool:
        return self.modes.set_mode_command(value)

    def set_silenced(self, value: Any) -> bool:
        if not isinstance(value, bool):
            logger.warning("Invalid silenced value: %r", value)
            return False
        self.outputs.set_silenced(value)
        return True

    def handle_command(self, name: str, value: Any = True) -> bool:
        """
        Execute one command.

        ``arm_full``, ``arm_perimeter`` and ``disarm`` are edge-triggered:
        only ``True`` acts. ``mode`` takes a mode string, ``silenced`` a bool.
        Unknown commands are logged and ignored.

        Returns
        -------
        bool
            True if the command changed something.
        """
        if name not in COMMANDS:
            logger.warning("Unknown command: %s", name)
            return False
        if name == "mode":
            return self.set_mode(value)
        if name == "silenced":
            return self.set_silenced(value)
        if value is not True:
            logger.debug("Command %s with value %r ignored", name, value)
            return False
        if name == "arm_full":
            return self.arm_full()
        if name == "arm_perimeter":
            return self.arm_perimeter()
        self.disarm()
        return True

    def handle_message(self, msg: IncomingMessage) -> List[EventRecord]:
        """
        Handle one queued message and return the event records it produced.

        Parameters
        ----------
        msg
            Sensor update or command.

        Returns
        -------
        list of EventRecord
            Records emitted while handling the message.
        """
        before = self.core.events.counter
        if isinstance(msg, SensorUpdate):
            self.handle_sensor_update(msg.sensor_id, msg.value)
        else:
            self.handle_command(msg.name, msg.value)
        return self.core.events.records[before:]

    # --- outbound ---
    def snapshot(self) -> PublishedState:
        return self.core.store.snapshot()
