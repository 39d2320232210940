"""
Output driver.

Maps the current mode and alarm flags to output values and writes them
through the output sink. Also runs the chirp pattern (a 1 Hz toggle of
chirp-capable outputs) while arming or during the entry delay, and the
optional post-alarm chirp after a disarm.
"""

from __future__ import annotations

import logging
from typing import Dict

from smarthome_alarm.core.core_state import CoreState
from smarthome_alarm.core.state_store import PublishedState
from smarthome_alarm.core.timers import CHIRP_PREFIX, chirp_category
from smarthome_alarm.domain.models import (
    CHIRP_MODES,
    ESCALATING_MODES,
    ControlMode,
    OutputDefinition,
    OutputType,
    OutputValue,
)

logger = logging.getLogger(__name__)

CHIRP_INTERVAL_S = 1.0


class OutputDriver:
    """
    Applies output values for the current state.

    An output is active exactly when the mode is ``alarm_pre`` or
    ``alarm_full``, the alarm duration has not elapsed, and (siren outputs
    only) the siren is not silenced. Outputs taking part in a running chirp
    pattern are driven by the pattern until it ends.

    Every write is acknowledged (``ack=True``) and the last-applied values
    are published as one ``outputs_status`` snapshot per recomputation.
    """

    def __init__(self, core: CoreState) -> None:
        self._core = core
        self._outputs = list(core.config.outputs)
        self._last_values: Dict[str, OutputValue] = {}
        self._chirp_on: Dict[str, bool] = {}
        self._timed_out = False

    # --- queries ---
    def is_active(self, output: OutputDefinition, state: PublishedState) -> bool:
        if state.mode not in ESCALATING_MODES or self._timed_out:
            return False
        if output.output_type == OutputType.SIREN and state.silenced:
            return False
        return True

    @property
    def chirping(self) -> bool:
        return bool(self._chirp_on)

    @property
    def last_values(self) -> Dict[str, OutputValue]:
        return dict(self._last_values)

    # --- recomputation ---
    def recompute(self) -> None:
        """Write the target value of every output not driven by a chirp pattern."""
        state = self._core.store.snapshot()
        for output in self._outputs:
            if output.id in self._chirp_on:
                continue
            target = output.active_value if self.is_active(output, state) else output.inactive_value
            self._write(output, target)
        self._publish()

    def on_mode_committed(self, mode: ControlMode) -> None:
        """
        React to a committed mode.

        Starts the chirp pattern when entering ``arming``/``entry_delay``
        (if configured and not already running) and stops it in every other
        mode, then recomputes all outputs.
        """
        if mode in CHIRP_MODES:
            if self._core.config.chirp_sec > 0 and not self._chirp_timers_running():
                # timers may have been cancelled wholesale (re-arm)
                self._chirp_on.clear()
                self.start_chirp(self._core.config.chirp_sec)
        else:
            self.stop_chirp()
        self.recompute()

    def set_silenced(self, silenced: bool) -> None:
        """Set the siren silence flag and recompute."""
        self._core.store.update(silenced=silenced)
        logger.info("Siren %s", "silenced" if silenced else "unsilenced")
        self.recompute()

    def expire(self) -> None:
        """Alarm duration elapsed: outputs go inactive while the mode stays."""
        self._timed_out = True
        self._core.store.update(outputs_active=False)
        logger.info("Alarm duration elapsed, outputs deactivated")
        self.recompute()

    def reset_timeout(self) -> None:
        self._timed_out = False

    # --- chirp pattern ---
    def start_chirp(self, duration_s: int) -> None:
        """
        Toggle every chirp output once per second for ``duration_s`` seconds.

        Each output starts in its active value; when the duration is over it
        returns to the value the current state calls for.
        """
        chirp_outputs = [o for o in self._outputs if o.chirp]
        if duration_s <= 0 or not chirp_outputs:
            return
        for output in chirp_outputs:
            self._chirp_on[output.id] = True
            self._write(output, output.active_value)
            self._schedule_toggle(output, ticks_left=int(duration_s))
        self._publish()

    def stop_chirp(self) -> None:
        """Cancel the chirp pattern; callers recompute afterwards."""
        self._core.timers.cancel_prefix(CHIRP_PREFIX)
        self._chirp_on.clear()

    def _chirp_timers_running(self) -> bool:
        return any(key.startswith(CHIRP_PREFIX) for key in self._core.timers.active_categories())

    def _schedule_toggle(self, output: OutputDefinition, ticks_left: int) -> None:
        def _tick() -> None:
            remaining = ticks_left - 1
            if remaining <= 0:
                self._chirp_on.pop(output.id, None)
                self.recompute()
                return
            on = not self._chirp_on.get(output.id, False)
            self._chirp_on[output.id] = on
            self._write(output, output.active_value if on else output.inactive_value)
            self._publish()
            self._schedule_toggle(output, remaining)

        self._core.timers.schedule(chirp_category(output.id), CHIRP_INTERVAL_S, _tick)

    # --- helpers ---
    def _write(self, output: OutputDefinition, value: OutputValue) -> None:
        self._core.sink.write(output.id, value, ack=True)
        self._last_values[output.id] = value

    def _publish(self) -> None:
        self._core.store.update(outputs_status=dict(self._last_values))
