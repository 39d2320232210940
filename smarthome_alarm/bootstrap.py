from __future__ import annotations

from dataclasses import dataclass
from queue import Queue
from typing import Optional

from smarthome_alarm.core.arming import ArmingSequencer
from smarthome_alarm.core.boundary import MemoryStateRegistry, OutputSink, SensorSource
from smarthome_alarm.core.config.yaml_config import AlarmConfig, load_alarm_config
from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.core.escalation import AlarmEscalation
from smarthome_alarm.core.event_log import EventPublisher
from smarthome_alarm.core.mode_controller import ModeController
from smarthome_alarm.core.outputs import OutputDriver
from smarthome_alarm.core.sensors.sensor_monitor import SensorMonitor
from smarthome_alarm.core.sensors.trouble_tracker import TroubleTracker
from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.core.timers import Scheduler
from smarthome_alarm.notification.notification_thread import NotificationWorkerThread
from smarthome_alarm.notification.webhook_notifier import WebhookConfig, WebhookNotifier
from smarthome_alarm.runtime.alarm_worker_thread import WorkerMessage
from smarthome_alarm.runtime.app_runtime import AppRuntime
from smarthome_alarm.runtime.event_bus import EventBus
from smarthome_alarm.runtime.thread_scheduler import ThreadingScheduler
from smarthome_alarm.services.controller import AlarmController


@dataclass(frozen=True)
class AppWiring:
    """Everything the console runner needs to run the system."""
    config: AlarmConfig
    store: StateStore
    registry: MemoryStateRegistry
    controller: AlarmController
    runtime: AppRuntime


def build_alarm_core(
    cfg: AlarmConfig,
    scheduler: Scheduler,
    source: SensorSource,
    sink: OutputSink,
    store: Optional[StateStore] = None,
    bus: Optional[EventPublisher] = None,
) -> AlarmController:
    """
    Wire the core components around one shared `CoreState`.

    Parameters
    ----------
    cfg
        Alarm configuration.
    scheduler
        `ManualScheduler` for tests/simulation or `ThreadingScheduler` at runtime.
    source, sink
        Sensor and output boundary.
    store
        Optional published state store (created if None).
    bus
        Optional event publisher (e.g., EventBus for notifications).

    Returns
    -------
    AlarmController
        Controller exposing updates and commands.
    """
    core = CoreState(
        config=cfg,
        scheduler=scheduler,
        source=source,
        sink=sink,
        store=store or StateStore(),
        bus=bus,
    )
    trouble = TroubleTracker(core)
    outputs = OutputDriver(core)
    modes = ModeController(core, outputs)
    escalation = AlarmEscalation(core, modes, outputs)
    arming = ArmingSequencer(core, modes, outputs, trouble)
    modes.on_disarm = arming.disarm
    monitor = SensorMonitor(core, trouble, escalation)

    return AlarmController(
        core=core,
        trouble=trouble,
        outputs=outputs,
        modes=modes,
        escalation=escalation,
        arming=arming,
        monitor=monitor,
    )


def build_notifier(cfg: AlarmConfig) -> Optional[NotificationWorkerThread]:
    if cfg.webhook is None:
        return None

    auth_header = cfg.webhook.auth_header
    if auth_header and not auth_header.startswith("Bearer "):
        auth_header = f"Bearer {auth_header}"

    return NotificationWorkerThread(
        notifiers=[
            WebhookNotifier(
                WebhookConfig(
                    url=cfg.webhook.url,
                    auth_header=auth_header,
                    timeout_s=cfg.webhook.timeout_s,
                    verify_tls=cfg.webhook.verify_tls,
                )
            )
        ]
    )


def build_alarm_system(
    config_path: Optional[str] = None,
    registry: Optional[MemoryStateRegistry] = None,
    cfg: Optional[AlarmConfig] = None,
) -> AppWiring:
    """
    Build the threaded alarm system.

    Parameters
    ----------
    config_path
        Path to config.yaml (ignored when ``cfg`` is given).
    registry
        Host state registry; a fresh in-memory registry if None.
    cfg
        Already loaded configuration.
    """
    cfg = cfg or load_alarm_config(config_path)
    registry = registry or MemoryStateRegistry()

    # --- STATE ---
    store = StateStore()

    # --- EVENT BUS ---
    bus = EventBus()

    # --- WORKER INBOX + TIMERS ---
    inbox: "Queue[WorkerMessage]" = Queue(maxsize=5000)
    scheduler = ThreadingScheduler(submit=inbox.put)

    # --- NOTIFICATIONS ---
    notifier = build_notifier(cfg)

    # --- CORE ---
    # without a notifier nothing drains the bus
    controller = build_alarm_core(
        cfg, scheduler, registry, registry, store=store, bus=bus if notifier is not None else None
    )

    # --- RUNTIME ---
    runtime = AppRuntime(
        controller=controller,
        source=registry,
        bus=bus,
        store=store,
        inbox=inbox,
        notifier=notifier,
    )

    return AppWiring(config=cfg, store=store, registry=registry, controller=controller, runtime=runtime)
