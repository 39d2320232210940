"""
Owning state of one alarm core instance.

`CoreState` bundles everything the core components share: the loaded
configuration, the sensor registry and per-sensor runtime state, the
trouble / bypass / baseline / arming-snapshot collections, the timer table,
the published state store and the event log. Components receive it
explicitly; nothing is global.

All mutation happens on the single serialized execution thread (the caller
thread in tests, the alarm worker thread at runtime).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from smarthome_alarm.core.boundary import OutputSink, SensorSource
from smarthome_alarm.core.config.sensor_config_registry import SensorConfigRegistry
from smarthome_alarm.core.config.yaml_config import AlarmConfig
from smarthome_alarm.core.event_log import EventLog, EventPublisher
from smarthome_alarm.core.sensors.normalizer import NormalizedValue, normalize_sensor_value
from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.core.timers import Scheduler, TimerTable
from smarthome_alarm.domain.models import ControlMode, SensorDefinition, SensorRuntimeState

logger = logging.getLogger(__name__)


@dataclass
class CoreState:
    """
    Shared state container for the alarm core components.

    Parameters
    ----------
    config
        Parsed alarm configuration.
    scheduler
        Time source and delayed-callback scheduler.
    source
        Sensor value source.
    sink
        Output value sink.
    store
        Published state store (created if not given).
    bus
        Optional publisher receiving every event record.

    Attributes
    ----------
    sensors
        Registry of sensor definitions (duplicates resolved, last wins).
    runtime
        Per-sensor runtime state keyed by sensor id.
    trouble
        Ids of sensors currently reporting unreadable values.
    bypass
        Ids auto-bypassed for the current arming cycle.
    baseline
        Baseline snapshot values (only used with ``use_baseline_snapshot``).
    snapshot
        Arming-state snapshot captured when arming finalized.
    timers
        Timer table (one timer per category).
    events
        Event log.
    """

    config: AlarmConfig
    scheduler: Scheduler
    source: SensorSource
    sink: OutputSink
    store: StateStore = field(default_factory=StateStore)
    bus: Optional[EventPublisher] = None

    sensors: SensorConfigRegistry = field(init=False)
    runtime: Dict[str, SensorRuntimeState] = field(init=False)
    trouble: Set[str] = field(default_factory=set, init=False)
    bypass: Set[str] = field(default_factory=set, init=False)
    baseline: Dict[str, bool] = field(default_factory=dict, init=False)
    snapshot: Dict[str, bool] = field(default_factory=dict, init=False)
    timers: TimerTable = field(init=False)
    events: EventLog = field(init=False)

    def __post_init__(self) -> None:
        self.sensors = SensorConfigRegistry()
        self.sensors.load(self.config.sensors)
        self.runtime = {s.id: SensorRuntimeState() for s in self.sensors.all()}
        self.timers = TimerTable(self.scheduler)
        self.events = EventLog(store=self.store, clock=self.scheduler.now, bus=self.bus)
        self.store.update(
            configured=self.config.configured,
            input_count=len(self.sensors),
            output_count=len(self.config.outputs),
        )

    @property
    def mode(self) -> ControlMode:
        return self.store.mode

    def debounce_s(self, sensor: SensorDefinition) -> float:
        """Effective debounce window of a sensor in seconds."""
        ms = sensor.debounce_ms if sensor.debounce_ms is not None else self.config.debounce_ms_default
        return max(0, ms) / 1000.0

    def read_sensor(self, sensor: SensorDefinition) -> NormalizedValue:
        """Read the current raw value of a sensor from the source and normalize it."""
        return normalize_sensor_value(self.source.read(sensor.id), sensor)

    def record_last_trigger(
        self,
        reason: str,
        sensor: Optional[SensorDefinition] = None,
        mode: Optional[ControlMode] = None,
    ) -> None:
        """
        Update the last-trigger record.

        The reason is published as ``"<reason>"`` or ``"<reason>:<mode>"``
        and the sensor as its name (or id, or empty when there is none).
        """
        reason_text = f"{reason}:{mode.value}" if mode is not None else reason
        self.store.update(
            last_trigger_sensor=(sensor.name or sensor.id) if sensor is not None else "",
            last_trigger_time=self.scheduler.now().isoformat(),
            last_reason=reason_text,
        )
