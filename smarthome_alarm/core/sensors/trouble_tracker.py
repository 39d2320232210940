from __future__ import annotations

import logging

from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.domain.events import EventSeverity, EventType

logger = logging.getLogger(__name__)


class TroubleTracker:
    """
    Maintains the set of sensors currently reporting unreadable values.

    Both operations are idempotent: an event is emitted only when membership
    actually changes. After every change the aggregate flag and the sorted id
    list are published to the state store.

    Marking a sensor as troubled also forgets its last recorded value, so the
    next readable value is never compared against a reading from before the
    fault.
    """

    def __init__(self, core: CoreState) -> None:
        self._core = core

    def is_troubled(self, sensor_id: str) -> bool:
        return sensor_id in self._core.trouble

    def mark_trouble(self, sensor_id: str) -> bool:
        """
        Add a sensor to the trouble set.

        Returns
        -------
        bool
            True if the sensor was newly added.
        """
        core = self._core
        runtime = core.runtime.get(sensor_id)
        if runtime is not None:
            runtime.last_value = None
        if sensor_id in core.trouble:
            return False

        core.trouble.add(sensor_id)
        self._publish()
        name = core.sensors.name_of(sensor_id)
        core.events.emit(
            EventType.TROUBLE_ADDED,
            EventSeverity.WARNING,
            f"Trouble detected ({name})",
            sensor=core.sensors.get(sensor_id),
            sensor_id=sensor_id,
        )
        return True

    def clear_trouble(self, sensor_id: str) -> bool:
        """
        Remove a sensor from the trouble set.

        Returns
        -------
        bool
            True if the sensor was a member and got removed.
        """
        core = self._core
        if sensor_id not in core.trouble:
            return False

        core.trouble.discard(sensor_id)
        self._publish()
        name = core.sensors.name_of(sensor_id)
        core.events.emit(
            EventType.TROUBLE_REMOVED,
            EventSeverity.INFO,
            f"Trouble cleared ({name})",
            sensor=core.sensors.get(sensor_id),
            sensor_id=sensor_id,
        )
        return True

    def _publish(self) -> None:
        trouble = sorted(self._core.trouble)
        self._core.store.update(trouble_active=bool(trouble), trouble_list=trouble)
