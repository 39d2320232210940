"""
Sensor monitor.

Runs every raw sensor update through a fixed, short-circuiting pipeline and
decides whether the sensor "fired":

1. debounce
2. normalize (unreadable -> trouble)
3. record (clear trouble, remember the event time)
4. baseline tolerance (armed modes, when enabled)
5. runtime bypass
6. change since arming (armed modes, mode-relevant sensors)
7. rising edge towards the trigger value

A fired sensor is handed to :class:`~smarthome_alarm.core.escalation.AlarmEscalation`.
"""

from __future__ import annotations

import logging
from typing import Any

from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.core.escalation import AlarmEscalation
from smarthome_alarm.core.sensors.normalizer import Readable, normalize_sensor_value
from smarthome_alarm.core.sensors.trouble_tracker import TroubleTracker
from smarthome_alarm.domain.models import ARMED_MODES

logger = logging.getLogger(__name__)


class SensorMonitor:
    """
    Per-sensor update pipeline.

    Parameters
    ----------
    core
        Shared core state (registry, runtime state, baseline, snapshot, bypass).
    trouble
        Trouble tracker.
    escalation
        Receiver of fired sensors.
    """

    def __init__(self, core: CoreState, trouble: TroubleTracker, escalation: AlarmEscalation) -> None:
        self._core = core
        self._trouble = trouble
        self._escalation = escalation

    def handle_update(self, sensor_id: str, raw: Any) -> bool:
        """
        Process one raw update.

        Parameters
        ----------
        sensor_id
            Identifier reported by the sensor source.
        raw
            Raw value.

        Returns
        -------
        bool
            True if the update fired the sensor (handed to escalation).
        """
        core = self._core
        sensor = core.sensors.get(sensor_id)
        if sensor is None:
            logger.debug("Update for unknown sensor %s ignored", sensor_id)
            return False
        runtime = core.runtime[sensor_id]
        now = core.scheduler.monotonic()

        debounce = core.debounce_s(sensor)
        if debounce > 0 and runtime.last_event_at is not None and now - runtime.last_event_at < debounce:
            logger.debug("Update for %s dropped by debounce", sensor_id)
            return False

        normalized = normalize_sensor_value(raw, sensor)
        if not isinstance(normalized, Readable):
            self._trouble.mark_trouble(sensor_id)
            return False
        value = normalized.value

        self._trouble.clear_trouble(sensor_id)
        runtime.last_event_at = now

        mode = core.mode
        armed = mode in ARMED_MODES

        if armed and core.config.use_baseline_snapshot:
            baseline = core.baseline.get(sensor_id)
            if baseline is None:
                core.baseline[sensor_id] = value
                logger.debug("Baseline for %s adopted: %s", sensor_id, value)
                return False
            if baseline == value:
                return False
            core.baseline[sensor_id] = value

        if sensor_id in core.bypass:
            logger.debug("Update for bypassed sensor %s ignored", sensor_id)
            return False

        previous = runtime.last_value
        runtime.last_value = value

        if armed and sensor.is_relevant_for(mode):
            armed_value = core.snapshot.get(sensor_id)
            if armed_value is not None and armed_value != value and value == sensor.trigger_value:
                logger.info("Sensor %s changed since arming", sensor_id)
                self._escalation.handle_trigger(sensor)
                return True

        if previous is None or previous == value or value != sensor.trigger_value:
            return False

        logger.info("Sensor %s fired", sensor_id)
        self._escalation.handle_trigger(sensor)
        return True
